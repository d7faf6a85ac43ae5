"""
Sample and variant quality-control filters over GenotypeState frames
"""

import numpy as np
import pandas as pd

from ..utils.data_types import VARIANT_KEY_COLUMNS


def _check_threshold(name: str, value: float, upper: float = 1.0):
    if not (0.0 <= float(value) <= upper):
        raise ValueError(f"{name} must be within [0, {upper}], got {value}")


def sample_missingness(genotype_states: pd.DataFrame, ploidy: int = 2) -> pd.DataFrame:
    """Per-sample missingness rate

    mind = sum(missingGenotypes) / (n_records * ploidy). The denominator uses
    the configured ploidy rather than a fixed factor of 2; the two agree for
    the diploid default. Samples without any record do not appear.

    Returns:
        DataFrame with columns sampleId, n_records, missCount, mind
    """
    grouped = genotype_states.groupby('sampleId', sort=False)
    stats = grouped.agg(
        n_records=('missingGenotypes', 'size'),
        missCount=('missingGenotypes', 'sum'),
    ).reset_index()
    stats['mind'] = stats['missCount'] / (stats['n_records'] * float(ploidy))
    return stats


def filter_samples(genotype_states: pd.DataFrame, mind: float, ploidy: int = 2) -> pd.DataFrame:
    """Drop every record of samples whose missingness exceeds mind.

    The bound is inclusive: a sample at exactly mind is kept.
    """
    _check_threshold('mind', mind)
    stats = sample_missingness(genotype_states, ploidy=ploidy)
    passing = stats.loc[stats['mind'] <= mind, 'sampleId']
    return genotype_states[genotype_states['sampleId'].isin(passing)]


def variant_statistics(genotype_states: pd.DataFrame, ploidy: int = 2) -> pd.DataFrame:
    """Per-variant missingness and allele frequencies

    Variants are identified by contigName, start, end, ref and alt.
    total is n_records * ploidy (a fixed factor of 2 for the diploid default).
    altFreq is alleleCount / (total - missCount) where alleleCount sums the
    REF dosage; maf is its complement. Variants with no called allele get NaN
    frequencies.

    Returns:
        DataFrame with the variant key columns plus total, missCount,
        alleleCount, genoRate, altFreq and maf
    """
    grouped = genotype_states.groupby(VARIANT_KEY_COLUMNS, sort=False)
    stats = grouped.agg(
        n_records=('genotypeState', 'size'),
        missCount=('missingGenotypes', 'sum'),
        alleleCount=('genotypeState', 'sum'),
    ).reset_index()
    stats['total'] = stats['n_records'] * float(ploidy)
    called = stats['total'] - stats['missCount']
    with np.errstate(divide='ignore', invalid='ignore'):
        alt_freq = np.where(called > 0, stats['alleleCount'] / called.where(called > 0, 1.0), np.nan)
    stats['genoRate'] = stats['missCount'] / stats['total']
    stats['altFreq'] = alt_freq
    stats['maf'] = 1.0 - stats['altFreq']
    return stats


def filter_variants(genotype_states: pd.DataFrame, geno: float, maf: float, ploidy: int = 2) -> pd.DataFrame:
    """Drop every record of variants failing the missingness or MAF bounds.

    A variant is kept iff genoRate <= geno, maf >= maf and altFreq >= maf,
    so whichever allele is minor must reach the threshold. Bounds are
    inclusive. Variants with undefined frequency are dropped.
    """
    _check_threshold('geno', geno)
    _check_threshold('maf', maf, upper=0.5)
    stats = variant_statistics(genotype_states, ploidy=ploidy)
    passing = stats[
        (stats['genoRate'] <= geno)
        & (stats['maf'] >= maf)
        & (stats['altFreq'] >= maf)
    ]
    keys = passing[VARIANT_KEY_COLUMNS]
    if keys.empty:
        return genotype_states.iloc[0:0]
    merged = genotype_states.merge(keys, on=VARIANT_KEY_COLUMNS, how='left', indicator=True)
    mask = (merged['_merge'] == 'both').to_numpy()
    return genotype_states[mask]


def drop_fully_missing(genotype_states: pd.DataFrame, ploidy: int = 2) -> pd.DataFrame:
    """Drop calls where every allele position is a no-call."""
    return genotype_states[genotype_states['missingGenotypes'] != ploidy]
