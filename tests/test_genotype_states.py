"""Unit tests for allele-call summarization into genotype states."""

import numpy as np
import pandas as pd
import pytest

from gnocchi.qc.genotype_states import (
    _allele_matrix,
    to_genotype_state_frame,
    variant_name,
    with_variant_names,
)
from gnocchi.utils.data_types import GENOTYPE_STATE_COLUMNS


def _calls(alleles, sample_ids=None):
    n = len(alleles)
    return pd.DataFrame({
        'contigName': ['1'] * n,
        'start': [99] * n,
        'end': [100] * n,
        'referenceAllele': ['A'] * n,
        'alternateAllele': ['G'] * n,
        'sampleId': sample_ids or [f"S{i + 1}" for i in range(n)],
        'alleles': pd.Series(alleles, dtype=object),
    })


def test_heterozygous_call_counts_one_ref_allele() -> None:
    frame = to_genotype_state_frame(_calls([('REF', 'ALT')]), ploidy=2)
    assert list(frame.columns) == GENOTYPE_STATE_COLUMNS
    row = frame.iloc[0]
    assert row['sampleId'] == 'S1'
    assert row['ref'] == 'A'
    assert row['alt'] == 'G'
    assert row['genotypeState'] == 1
    assert row['missingGenotypes'] == 0


@pytest.mark.parametrize(
    "alleles,expected_state,expected_missing",
    [
        (('REF', 'REF'), 2, 0),
        (('ALT', 'ALT'), 0, 0),
        (('REF', 'NO_CALL'), 1, 1),
        (('NO_CALL', 'NO_CALL'), 0, 2),
        (('OTHER_ALT', 'REF'), 1, 0),
    ],
)
def test_dosage_and_missing_counts(alleles, expected_state, expected_missing) -> None:
    frame = to_genotype_state_frame(_calls([alleles]), ploidy=2)
    assert frame['genotypeState'].iloc[0] == expected_state
    assert frame['missingGenotypes'].iloc[0] == expected_missing


def test_counts_stay_within_ploidy_bounds() -> None:
    calls = _calls([('REF', 'REF', 'REF', 'REF'), ('NO_CALL',) * 4, ('ALT',)])
    frame = to_genotype_state_frame(calls, ploidy=2)
    assert (frame['genotypeState'] >= 0).all()
    assert (frame['genotypeState'] <= 2).all()
    assert (frame['missingGenotypes'] <= 2).all()
    assert (frame['genotypeState'] + frame['missingGenotypes'] <= 2).all()
    np.testing.assert_array_equal(frame['genotypeState'].to_numpy(), [2, 0, 0])


def test_tetraploid_calls_use_every_position() -> None:
    frame = to_genotype_state_frame(_calls([('REF', 'REF', 'ALT', 'NO_CALL')]), ploidy=4)
    assert frame['genotypeState'].iloc[0] == 2
    assert frame['missingGenotypes'].iloc[0] == 1


def test_slash_joined_strings_are_accepted() -> None:
    matrix = _allele_matrix(pd.Series(['REF/ALT', None], dtype=object), 2)
    assert matrix[0].tolist() == ['REF', 'ALT']
    assert matrix[1].tolist() == [None, None]


def test_sparse_mode_drops_calls_made_only_of_ref_tag() -> None:
    calls = _calls([('Ref', 'Ref'), ('REF', 'ALT'), ('Ref', 'ALT')])
    frame = to_genotype_state_frame(calls, ploidy=2, sparse=True)
    assert frame['sampleId'].tolist() == ['S2', 'S3']


def test_invalid_ploidy_and_missing_columns_raise() -> None:
    with pytest.raises(ValueError, match="ploidy"):
        to_genotype_state_frame(_calls([('REF', 'ALT')]), ploidy=0)
    with pytest.raises(ValueError, match="missing required columns"):
        to_genotype_state_frame(_calls([('REF', 'ALT')]).drop(columns=['alleles']), ploidy=2)


def test_empty_input_yields_empty_frame() -> None:
    frame = to_genotype_state_frame(_calls([]), ploidy=2)
    assert frame.empty
    assert list(frame.columns) == GENOTYPE_STATE_COLUMNS


def test_variant_names_use_contig_end_and_alt() -> None:
    assert variant_name('chr2', 150, 'T') == 'chr2_150_T'
    frame = with_variant_names(to_genotype_state_frame(_calls([('REF', 'ALT')]), ploidy=2))
    assert frame['names'].tolist() == ['1_100_G']
    assert frame['contigName'].tolist() == ['1']
