"""
VCF converter for GWAS QC: builds the per-(sample, variant) genotype store.

Key features:
- Streaming parsing of VCF text (supports .vcf and .vcf.gz)
- Supports arbitrary ploidy; every GT allele becomes one tag
  (REF, ALT, OTHER_ALT or NO_CALL)
- Optional multi-allelic splitting into per-ALT records
- Rows are written to an HDF5 store (pandas/PyTables) in chunks

Store layout: one fixed-format frame per write chunk under
``genotypes/chunk_00000000``, ``genotypes/chunk_00000001``, ... with columns
    contigName, start, end, referenceAllele, alternateAllele, sampleId, alleles

Fixed format keeps strings as variable-length objects, so alleles of any
length (long indels, symbolic SVs) fit in any chunk.

``start`` is 0-based (POS - 1) and ``end`` is start + len(REF). ``alleles``
holds the tags joined with '/', e.g. ``REF/ALT``.
"""
import gzip
import io
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd

from ..utils.data_types import ALT, NO_CALL, OTHER_ALT, REF, STORE_COLUMNS

STORE_KEY = 'genotypes'
DEFAULT_PLOIDY = 2
DEFAULT_WRITE_CHUNK = 100_000

CHUNK_KEY_FORMAT = STORE_KEY + '/chunk_{:08d}'

_GT_SPLIT = re.compile(r'[/|]')
_FORMAT_CACHE: Dict[str, Dict[str, int]] = {}


def _open_text(path):
    """Open VCF text transparently from plain or gzip-compressed files.

    Accepts string or Path-like, and handles .vcf, .vcf.gz, and .vcf.bgz.
    """
    p = str(path)
    pl = p.lower()
    if pl.endswith('.gz') or pl.endswith('.bgz'):
        return io.TextIOWrapper(gzip.open(p, 'rb'))
    return open(p, 'r')


def _parse_samples(header_line):
    # header line starts with #CHROM
    cols = header_line.rstrip('\n').split('\t')
    if len(cols) < 9 or cols[0] != '#CHROM':
        raise ValueError('Malformed VCF header line: missing #CHROM ... FORMAT ...')
    return cols[9:]


def _format_index(fmt_str: str) -> Dict[str, int]:
    cached = _FORMAT_CACHE.get(fmt_str)
    if cached is not None:
        return cached
    keys = fmt_str.split(':') if fmt_str else []
    result = {k: i for i, k in enumerate(keys)}
    _FORMAT_CACHE[fmt_str] = result
    return result


def _split_gt(gt: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Split a GT string into allele tokens; None when the whole call is absent."""
    if gt is None or gt == '' or gt == '.':
        return None
    return tuple(_GT_SPLIT.split(gt))


def _allele_tags(gt_tokens: Tuple[str, ...], alt_index: int) -> Tuple[str, ...]:
    # alt_index is the 1-based index of the ALT this record represents
    tags = []
    for token in gt_tokens:
        if token == '.' or token == '':
            tags.append(NO_CALL)
            continue
        try:
            allele = int(token)
        except ValueError:
            tags.append(NO_CALL)
            continue
        if allele == 0:
            tags.append(REF)
        elif allele == alt_index:
            tags.append(ALT)
        else:
            tags.append(OTHER_ALT)
    return tuple(tags)


def _site_rows(chrom: str,
               pos: int,
               ref: str,
               alt: str,
               alt_index: int,
               sample_ids: List[str],
               gt_values: List[Optional[str]]) -> List[dict]:
    tokens = [_split_gt(gt) for gt in gt_values]
    site_ploidy = max((len(t) for t in tokens if t is not None), default=DEFAULT_PLOIDY)
    start = pos - 1
    end = start + len(ref)
    rows = []
    for sample_id, gt_tokens in zip(sample_ids, tokens):
        if gt_tokens is None:
            tags = (NO_CALL,) * site_ploidy
        else:
            tags = _allele_tags(gt_tokens, alt_index)
        rows.append({
            'contigName': chrom,
            'start': start,
            'end': end,
            'referenceAllele': ref,
            'alternateAllele': alt,
            'sampleId': sample_id,
            'alleles': '/'.join(tags),
        })
    return rows


def iter_vcf_records(vcf_path: Union[str, Path],
                     split_multiallelic: bool = True,
                     include_indels: bool = True):
    """Yield store rows (dicts) for every sample at every retained variant."""
    sample_ids = None
    fh = _open_text(vcf_path)
    try:
        for line in fh:
            if not line or line.startswith('##'):
                continue
            if line.startswith('#CHROM'):
                sample_ids = _parse_samples(line)
                if len(sample_ids) == 0:
                    raise ValueError('VCF contains no sample columns')
                continue
            if sample_ids is None:
                raise ValueError('VCF header not found before data lines')
            parts = line.rstrip('\n').split('\t')
            if len(parts) < 8:
                continue  # malformed
            chrom, pos_str, _vid, ref, alt_str = parts[0], parts[1], parts[2], parts[3], parts[4]
            pos = int(pos_str)

            alt_alleles = alt_str.split(',') if alt_str and alt_str != '.' else []
            if not alt_alleles:
                continue
            if len(alt_alleles) > 1 and not split_multiallelic:
                continue

            fmt = parts[8] if len(parts) >= 9 else ''
            gt_index = _format_index(fmt).get('GT')
            sample_fields = parts[9:]
            if gt_index is None:
                gt_values: List[Optional[str]] = [None] * len(sample_ids)
            else:
                gt_values = []
                for field in sample_fields:
                    toks = field.split(':')
                    gt_values.append(toks[gt_index] if gt_index < len(toks) else None)
                # Trailing samples may be dropped entirely
                gt_values.extend([None] * (len(sample_ids) - len(gt_values)))

            for ai, alt in enumerate(alt_alleles, start=1):
                if not include_indels and (len(ref) != 1 or len(alt) != 1):
                    continue
                for row in _site_rows(chrom, pos, ref, alt, ai, sample_ids, gt_values):
                    yield row
    finally:
        fh.close()

    if sample_ids is None:
        raise ValueError('No header line found; invalid VCF')


def convert_vcf_to_store(vcf_path: Union[str, Path],
                         store_path: Union[str, Path],
                         split_multiallelic: bool = True,
                         include_indels: bool = True,
                         chunk_size: int = DEFAULT_WRITE_CHUNK,
                         verbose: bool = True) -> dict:
    """Convert a VCF into the HDF5 genotype store.

    The store is written to a temporary file and moved into place once
    complete, so an interrupted conversion never leaves a partial store at
    store_path.

    Returns:
        Dictionary with store_path, n_rows, n_samples and n_variants
    """
    vcf_path = Path(vcf_path)
    store_path = Path(store_path)
    if not vcf_path.exists():
        raise FileNotFoundError(f"Genotype file not found: {vcf_path}")
    store_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = store_path.with_name(store_path.name + '.tmp')
    if tmp_path.exists():
        tmp_path.unlink()

    if verbose:
        print(f"   [Convert] Converting {vcf_path} -> {store_path}")

    n_rows = 0
    samples = set()
    variants = set()
    n_chunks = 0
    buffer: List[dict] = []

    def flush(store):
        nonlocal buffer, n_chunks
        if not buffer:
            return
        chunk = pd.DataFrame(buffer, columns=STORE_COLUMNS)
        chunk = chunk.astype({'start': 'int64', 'end': 'int64'})
        store.put(CHUNK_KEY_FORMAT.format(n_chunks), chunk, format='fixed')
        n_chunks += 1
        buffer = []

    try:
        with pd.HDFStore(str(tmp_path), mode='w') as store:
            for row in iter_vcf_records(vcf_path,
                                        split_multiallelic=split_multiallelic,
                                        include_indels=include_indels):
                buffer.append(row)
                n_rows += 1
                samples.add(row['sampleId'])
                variants.add((row['contigName'], row['start'], row['end'],
                              row['referenceAllele'], row['alternateAllele']))
                if len(buffer) >= chunk_size:
                    flush(store)
            flush(store)
        os.replace(tmp_path, store_path)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise

    if verbose:
        print(f"   [Convert] Wrote {n_rows:,} calls ({len(samples)} samples × {len(variants)} variants)")

    return {
        'store_path': store_path,
        'n_rows': n_rows,
        'n_samples': len(samples),
        'n_variants': len(variants),
    }


def read_store(store_path: Union[str, Path], chunk_size: Optional[int] = None):
    """Read the genotype store.

    Returns a single DataFrame with an ``alleles`` column of tag tuples, or
    a generator of such frames when chunk_size is given.
    """
    store_path = Path(store_path)
    if not store_path.exists():
        raise FileNotFoundError(f"Genotype store not found: {store_path}")
    if chunk_size is None:
        chunks = list(_iter_store(store_path, None))
        if not chunks:
            return _empty_store_frame()
        return pd.concat(chunks, ignore_index=True)
    return _iter_store(store_path, chunk_size)


def _chunk_keys(store) -> List[str]:
    """Chunk keys in write order."""
    prefix = f'/{STORE_KEY}/chunk_'
    keys = [k for k in store.keys() if k.startswith(prefix)]
    return sorted(keys, key=lambda k: int(k[len(prefix):]))


def _iter_store(store_path: Path, chunk_size: Optional[int]):
    with pd.HDFStore(str(store_path), mode='r') as store:
        keys = _chunk_keys(store)
        if chunk_size is None:
            for key in keys:
                yield _decode_alleles(store.get(key))
            return

        # Re-slice stored chunks so every yielded frame holds chunk_size rows
        pending: List[pd.DataFrame] = []
        n_pending = 0
        for key in keys:
            frame = store.get(key)
            pending.append(frame)
            n_pending += len(frame)
            while n_pending >= chunk_size:
                merged = pd.concat(pending, ignore_index=True)
                yield _decode_alleles(merged.iloc[:chunk_size])
                rest = merged.iloc[chunk_size:]
                pending = [rest] if len(rest) else []
                n_pending = len(rest)
        if n_pending:
            yield _decode_alleles(pd.concat(pending, ignore_index=True))


def _decode_alleles(frame: pd.DataFrame) -> pd.DataFrame:
    decoded = [tuple(a.split('/')) if a else () for a in frame['alleles']]
    frame = frame.reset_index(drop=True)
    frame['alleles'] = pd.Series(decoded, index=frame.index, dtype=object)
    return frame[STORE_COLUMNS]


def _empty_store_frame() -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype=object) for c in STORE_COLUMNS}).astype(
        {'start': 'int64', 'end': 'int64'}
    )
