"""
Genotype loading: ensure the converted store exists, summarize and filter
"""

import time
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pandas as pd

from ..core.context import GnocchiContext, resolve_context
from ..qc.filters import drop_fully_missing, filter_samples, filter_variants
from ..qc.genotype_states import to_genotype_state_frame, with_variant_names
from ..utils.data_types import GENOTYPE_STATE_COLUMNS, VARIANT_KEY_COLUMNS, summarize_counts
from .load_genotype_vcf import convert_vcf_to_store, read_store

STORE_FILENAME = 'genotype_store.h5'


def detect_file_format(filepath: Union[str, Path]) -> str:
    """Detect genotype file format based on extension and content

    Args:
        filepath: Path to file

    Returns:
        Detected format: 'vcf', 'store' or 'unknown'
    """
    filepath = Path(filepath)

    name_lower = filepath.name.lower()
    if (
        name_lower.endswith('.vcf')
        or name_lower.endswith('.vcf.gz')
        or name_lower.endswith('.vcf.bgz')
    ):
        return 'vcf'
    if name_lower.endswith('.h5') or name_lower.endswith('.hdf5'):
        return 'store'

    try:
        with open(filepath, 'r') as f:
            first_line = f.readline().strip()
        if first_line.startswith('##fileformat=VCF'):
            return 'vcf'
    except (OSError, UnicodeDecodeError):
        pass
    return 'unknown'


def store_path_for(destination: Union[str, Path]) -> Path:
    """Location of the converted store for an output destination.

    The store sits beside the destination so several analyses written to the
    same directory share one conversion.
    """
    return Path(destination).parent / STORE_FILENAME


def ensure_converted(genotypes_path: Union[str, Path],
                     destination: Union[str, Path],
                     overwrite: bool = False,
                     verbose: bool = True) -> Path:
    """Make sure a converted store exists for genotypes_path.

    - store missing: convert
    - store present and overwrite: delete, then convert
    - store present otherwise: reuse as is

    The check-then-convert sequence is not atomic. Callers must not run
    concurrent conversions against the same destination.

    Returns:
        Path to the store
    """
    genotypes_path = Path(genotypes_path)
    if detect_file_format(genotypes_path) == 'store':
        if not genotypes_path.exists():
            raise FileNotFoundError(f"Genotype store not found: {genotypes_path}")
        return genotypes_path

    store_path = store_path_for(destination)
    if store_path.exists():
        if not overwrite:
            if verbose:
                print(f"   [Store] Reusing converted genotypes at {store_path}")
            return store_path
        if verbose:
            print(f"   [Store] Overwrite requested; removing {store_path}")
        store_path.unlink()

    if not genotypes_path.exists():
        raise FileNotFoundError(f"Genotype file not found: {genotypes_path}")
    convert_vcf_to_store(genotypes_path, store_path, verbose=verbose)
    return store_path


def load_genotype_states(store_path: Union[str, Path],
                         ploidy: int,
                         sparse: bool = False,
                         context: Optional[GnocchiContext] = None) -> pd.DataFrame:
    """Read the store chunk by chunk and summarize every chunk.

    Chunks are summarized through context.map, so n_jobs > 1 summarizes
    them on a thread pool.
    """
    context = resolve_context(context)
    chunks = read_store(store_path, chunk_size=context.chunk_size)
    states = context.map(
        lambda chunk: to_genotype_state_frame(chunk, ploidy, sparse=sparse),
        chunks,
    )
    if not states:
        return pd.DataFrame({c: pd.Series(dtype=object) for c in GENOTYPE_STATE_COLUMNS}).astype(
            {'start': 'int64', 'end': 'int64', 'genotypeState': 'int64', 'missingGenotypes': 'int64'}
        )
    return pd.concat(states, ignore_index=True)


def run_genotype_qc(genotype_states: pd.DataFrame,
                    ploidy: int,
                    mind: float,
                    maf: float,
                    geno: float) -> Tuple[pd.DataFrame, Dict[str, Dict[str, int]]]:
    """Apply the sample filter, the variant filter and the fully-missing drop.

    Returns:
        Tuple of (filtered GenotypeState frame, summary of counts per step)
    """
    summary: Dict[str, Dict[str, int]] = {}

    n_samples = genotype_states['sampleId'].nunique()
    sample_filtered = filter_samples(genotype_states, mind, ploidy=ploidy)
    summary['samples'] = summarize_counts(n_samples, sample_filtered['sampleId'].nunique())

    n_variants = _count_variants(sample_filtered)
    variant_filtered = filter_variants(sample_filtered, geno, maf, ploidy=ploidy)
    summary['variants'] = summarize_counts(n_variants, _count_variants(variant_filtered))

    final = drop_fully_missing(variant_filtered, ploidy=ploidy)
    summary['calls'] = summarize_counts(len(genotype_states), len(final))

    return final.reset_index(drop=True), summary


def _count_variants(genotype_states: pd.DataFrame) -> int:
    if genotype_states.empty:
        return 0
    return len(genotype_states[VARIANT_KEY_COLUMNS].drop_duplicates())


def load_and_filter_genotypes(genotypes_path: Union[str, Path],
                              destination: Union[str, Path],
                              ploidy: int,
                              mind: float,
                              maf: float,
                              geno: float,
                              overwrite: bool = False,
                              context: Optional[GnocchiContext] = None,
                              return_summary: bool = False,
                              sparse: bool = False):
    """Load genotypes and return the QC-filtered GenotypeState frame

    Args:
        genotypes_path: VCF (converted on demand) or an existing store
        destination: Output destination; the store is kept beside it
        ploidy: Allele positions per call
        mind: Maximum per-sample missingness
        maf: Minimum minor allele frequency
        geno: Maximum per-variant missingness
        overwrite: Reconvert even when a store already exists
        context: Execution context (chunking, workers, verbosity)
        return_summary: Also return the per-step QC counts
        sparse: Drop calls made only of the literal 'Ref' tag before counting

    Returns:
        GenotypeState frame with a synthetic 'names' column, or a tuple of
        (frame, summary) when return_summary is True
    """
    context = resolve_context(context)
    load_start = time.time()

    store_path = ensure_converted(genotypes_path, destination, overwrite=overwrite,
                                  verbose=context.verbose)
    genotype_states = with_variant_names(
        load_genotype_states(store_path, ploidy, sparse=sparse, context=context)
    )
    context.log(f"   Loaded {len(genotype_states):,} genotype calls")

    final, summary = run_genotype_qc(genotype_states, ploidy, mind, maf, geno)
    context.log(f"   Samples passing mind <= {mind}: {summary['samples']['after']}/{summary['samples']['before']}")
    context.log(f"   Variants passing geno <= {geno}, maf >= {maf}: "
                f"{summary['variants']['after']}/{summary['variants']['before']}")
    context.log(f"   Genotype QC completed in {time.time() - load_start:.2f} seconds")
    if return_summary:
        return final, summary
    return final
