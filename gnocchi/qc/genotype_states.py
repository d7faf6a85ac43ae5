"""
Conversion of raw allele calls into per-(sample, variant) genotype states.

Dosage convention
-----------------
genotypeState counts the alleles tagged ``REF``, so a homozygous reference
call has genotypeState == ploidy and a homozygous alternate call has 0. This
is the opposite direction of the usual ALT-allele dosage; the allele
frequency computed from it in the variant filter is the REF frequency, and
the filter checks both it and its complement against the MAF threshold.
"""

from typing import Any, List

import numpy as np
import pandas as pd

from ..utils.data_types import GENOTYPE_STATE_COLUMNS, NO_CALL, REF

# Tag the sparse pre-filter compares against
SPARSE_REF_TAG = 'Ref'


def variant_name(contig_name: Any, end: Any, alt: Any) -> str:
    """Synthetic variant name: contig_end_alt"""
    return f"{contig_name}_{end}_{alt}"


def _allele_matrix(alleles: pd.Series, ploidy: int) -> np.ndarray:
    """Pad/truncate every allele list to ploidy positions (object array)."""
    n = len(alleles)
    matrix = np.full((n, ploidy), None, dtype=object)
    for i, call in enumerate(alleles):
        if call is None:
            continue
        if isinstance(call, str):
            call = call.split('/') if call else []
        for j, tag in enumerate(list(call)[:ploidy]):
            matrix[i, j] = tag
    return matrix


def to_genotype_state_frame(genotypes: pd.DataFrame,
                            ploidy: int,
                            sparse: bool = False) -> pd.DataFrame:
    """Summarize raw allele calls into GenotypeState rows

    Args:
        genotypes: Frame with columns contigName, start, end, referenceAllele,
                   alternateAllele, sampleId and alleles (list of tags)
        ploidy: Number of allele positions inspected per call
        sparse: If True, keep only calls where at least one position is not
                the literal 'Ref' tag before counting

    Returns:
        DataFrame with GENOTYPE_STATE_COLUMNS
    """
    if ploidy < 1:
        raise ValueError(f"ploidy must be at least 1, got {ploidy}")
    required = ['contigName', 'start', 'end', 'referenceAllele', 'alternateAllele', 'sampleId', 'alleles']
    missing = [c for c in required if c not in genotypes.columns]
    if missing:
        raise ValueError(f"Genotype frame is missing required columns: {missing}")

    alleles = _allele_matrix(genotypes['alleles'], ploidy)

    if sparse:
        keep = np.any(alleles != SPARSE_REF_TAG, axis=1)
        genotypes = genotypes.loc[keep]
        alleles = alleles[keep]

    genotype_state = (alleles == REF).sum(axis=1).astype(np.int64)
    missing_genotypes = (alleles == NO_CALL).sum(axis=1).astype(np.int64)

    frame = pd.DataFrame({
        'contigName': genotypes['contigName'].astype(str).to_numpy(),
        'start': genotypes['start'].astype(np.int64).to_numpy(),
        'end': genotypes['end'].astype(np.int64).to_numpy(),
        'ref': genotypes['referenceAllele'].astype(str).to_numpy(),
        'alt': genotypes['alternateAllele'].astype(str).to_numpy(),
        'sampleId': genotypes['sampleId'].astype(str).to_numpy(),
        'genotypeState': genotype_state,
        'missingGenotypes': missing_genotypes,
    })
    return frame[GENOTYPE_STATE_COLUMNS]


def with_variant_names(genotype_states: pd.DataFrame) -> pd.DataFrame:
    """Return a copy carrying the synthetic variant name in a 'names' column."""
    names: List[str] = [
        variant_name(c, e, a)
        for c, e, a in zip(genotype_states['contigName'], genotype_states['end'], genotype_states['alt'])
    ]
    return genotype_states.assign(names=pd.Series(names, index=genotype_states.index, dtype=object))
