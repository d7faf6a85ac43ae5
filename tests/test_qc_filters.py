"""Tests for the sample and variant QC filters."""

import numpy as np
import pandas as pd
import pytest

from gnocchi.qc.filters import (
    drop_fully_missing,
    filter_samples,
    filter_variants,
    sample_missingness,
    variant_statistics,
)


def _states(rows):
    """rows: (contig, start, sampleId, genotypeState, missingGenotypes)"""
    return pd.DataFrame(
        [
            {
                'contigName': contig,
                'start': start,
                'end': start + 1,
                'ref': 'A',
                'alt': 'G',
                'sampleId': sample,
                'genotypeState': state,
                'missingGenotypes': missing,
            }
            for contig, start, sample, state, missing in rows
        ]
    )


def test_sample_missingness_uses_ploidy_denominator() -> None:
    states = _states([
        ('1', 10, 'S1', 1, 1),
        ('1', 20, 'S1', 2, 0),
        ('1', 10, 'S2', 0, 2),
        ('1', 20, 'S2', 0, 2),
    ])
    stats = sample_missingness(states, ploidy=2).set_index('sampleId')
    assert stats.loc['S1', 'mind'] == pytest.approx(0.25)
    assert stats.loc['S2', 'mind'] == pytest.approx(1.0)


def test_sample_at_exact_threshold_is_kept() -> None:
    states = _states([
        ('1', 10, 'S1', 1, 1),
        ('1', 20, 'S1', 2, 0),
        ('1', 10, 'S2', 1, 1),
        ('1', 20, 'S2', 0, 1),
    ])
    kept = filter_samples(states, mind=0.25, ploidy=2)
    assert set(kept['sampleId']) == {'S1'}
    assert len(kept) == 2


def test_filter_samples_rejects_out_of_range_threshold() -> None:
    with pytest.raises(ValueError, match="mind"):
        filter_samples(_states([('1', 10, 'S1', 1, 0)]), mind=1.5)


def test_variant_statistics_reports_frequencies() -> None:
    states = _states([
        ('1', 10, 'S1', 2, 0),
        ('1', 10, 'S2', 1, 0),
        ('1', 10, 'S3', 0, 2),
    ])
    stats = variant_statistics(states, ploidy=2)
    assert len(stats) == 1
    row = stats.iloc[0]
    assert row['total'] == 6
    assert row['missCount'] == 2
    assert row['alleleCount'] == 3
    assert row['genoRate'] == pytest.approx(2 / 6)
    assert row['altFreq'] == pytest.approx(0.75)
    assert row['maf'] == pytest.approx(0.25)


@pytest.mark.parametrize("ref_dosages", [(2, 2, 2, 1), (0, 0, 0, 1)])
def test_maf_bound_is_inclusive_in_both_directions(ref_dosages) -> None:
    # 1 minor allele out of 8 called alleles, whichever allele is minor
    states = _states([('1', 10, f"S{i}", d, 0) for i, d in enumerate(ref_dosages)])
    assert len(filter_variants(states, geno=1.0, maf=0.125)) == 4
    assert filter_variants(states, geno=1.0, maf=0.13).empty


def test_monomorphic_variant_fails_any_positive_maf() -> None:
    states = _states([('1', 10, 'S1', 2, 0), ('1', 10, 'S2', 2, 0)])
    assert filter_variants(states, geno=1.0, maf=0.01).empty
    assert len(filter_variants(states, geno=1.0, maf=0.0)) == 2


def test_geno_bound_is_inclusive() -> None:
    states = _states([
        ('1', 10, 'S1', 1, 0),
        ('1', 10, 'S2', 0, 1),
    ])
    # 1 of 4 alleles missing
    assert len(filter_variants(states, geno=0.25, maf=0.0)) == 2
    assert filter_variants(states, geno=0.2, maf=0.0).empty


def test_variants_are_grouped_by_full_identity() -> None:
    states = _states([
        ('1', 10, 'S1', 1, 0),
        ('1', 10, 'S2', 1, 0),
        ('1', 20, 'S1', 2, 0),
        ('1', 20, 'S2', 2, 0),
    ])
    kept = filter_variants(states, geno=1.0, maf=0.1)
    assert kept['start'].unique().tolist() == [10]
    assert len(kept) == 2


def test_variant_without_called_alleles_is_dropped() -> None:
    states = _states([
        ('1', 10, 'S1', 0, 2),
        ('1', 10, 'S2', 0, 2),
    ])
    stats = variant_statistics(states, ploidy=2)
    assert np.isnan(stats['altFreq'].iloc[0])
    assert filter_variants(states, geno=1.0, maf=0.0).empty


def test_filter_variants_validates_bounds() -> None:
    states = _states([('1', 10, 'S1', 1, 0)])
    with pytest.raises(ValueError, match="maf"):
        filter_variants(states, geno=1.0, maf=0.6)
    with pytest.raises(ValueError, match="geno"):
        filter_variants(states, geno=-0.1, maf=0.0)


def test_drop_fully_missing_depends_on_ploidy() -> None:
    states = _states([
        ('1', 10, 'S1', 0, 2),
        ('1', 10, 'S2', 1, 1),
    ])
    assert drop_fully_missing(states, ploidy=2)['sampleId'].tolist() == ['S2']
    assert len(drop_fully_missing(states, ploidy=4)) == 2


def test_missingness_denominator_follows_ploidy() -> None:
    states = _states([
        ('1', 10, 'S1', 2, 2),
        ('1', 10, 'S2', 4, 0),
    ])
    stats = sample_missingness(states, ploidy=4).set_index('sampleId')
    assert stats.loc['S1', 'mind'] == pytest.approx(0.5)
    assert variant_statistics(states, ploidy=4)['genoRate'].iloc[0] == pytest.approx(0.25)
    # the diploid factor would report S1 as fully missing
    assert sample_missingness(states)['mind'].iloc[0] == pytest.approx(1.0)
