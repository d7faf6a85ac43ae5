"""
Pairing of filtered genotypes with phenotypes into per-variant observations
"""

from collections import OrderedDict
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from ..utils.data_types import VARIANT_KEY_COLUMNS, ObservationSet, Phenotype, Variant

PairedSamples = Dict[Tuple[Variant, str], List[Tuple[str, float, Tuple[float, ...]]]]


def _phenotype_frame(phenotypes: Sequence[Phenotype]) -> pd.DataFrame:
    return pd.DataFrame({
        'sampleId': pd.Series([p.sampleId for p in phenotypes], dtype=object),
        'phenotype': pd.Series([p.phenotype for p in phenotypes], dtype=object),
        'value': pd.Series([p.value for p in phenotypes], dtype=object),
    })


def gs2variant(row: Mapping[str, Any]) -> Variant:
    """Project a GenotypeState row onto its Variant."""
    names = row.get('names', None)
    return Variant(
        contigName=str(row.get('contigName')),
        start=int(row.get('start')),
        end=int(row.get('end')),
        referenceAllele=str(row.get('ref')),
        alternateAllele=str(row.get('alt')),
        names=None if names is None or pd.isna(names) else str(names),
    )


def pair_samples_with_phenotypes(genotypes: pd.DataFrame,
                                 phenotypes: Sequence[Phenotype]) -> PairedSamples:
    """Join genotype states and phenotypes on sample id and group the pairs.

    Only samples present on both sides contribute.

    Returns:
        Ordered mapping of (Variant, phenotype label) to a list of
        (sampleId, genotypeState, phenotype values)
    """
    pheno_df = _phenotype_frame(phenotypes)
    geno_df = genotypes.assign(sampleId=genotypes['sampleId'].astype(str))
    if 'names' not in geno_df.columns:
        geno_df = geno_df.assign(names=None)
    joined = geno_df.merge(pheno_df, on='sampleId', how='inner')

    paired: PairedSamples = OrderedDict()
    if joined.empty:
        return paired

    group_cols = VARIANT_KEY_COLUMNS + ['names', 'phenotype']
    for key, group in joined.groupby(group_cols, sort=False, dropna=False):
        key_map = dict(zip(group_cols, key))
        variant = gs2variant(key_map)
        paired[(variant, key_map['phenotype'])] = [
            (sample_id, float(state), value)
            for sample_id, state, value in zip(group['sampleId'], group['genotypeState'], group['value'])
        ]
    return paired


def generate_observations(genotypes: pd.DataFrame,
                          phenotypes: Sequence[Phenotype]) -> List[ObservationSet]:
    """Generate the observation sets consumed by site regression models

    Args:
        genotypes: QC-filtered GenotypeState frame
        phenotypes: Phenotype records

    Returns:
        One ObservationSet per (variant, phenotype label), each holding the
        (genotype dosage, feature vector) pairs of every joined sample
    """
    observation_sets = []
    for (variant, label), entries in pair_samples_with_phenotypes(genotypes, phenotypes).items():
        observation_sets.append(ObservationSet(
            variant=variant,
            phenotype=label,
            observations=tuple((state, value) for _, state, value in entries),
            sample_ids=tuple(sample_id for sample_id, _, _ in entries),
        ))
    return observation_sets


def observations_to_dataframe(observation_sets: Sequence[ObservationSet]) -> pd.DataFrame:
    """Flatten observation sets into one row per (variant, phenotype, sample)."""
    rows = []
    for obs_set in observation_sets:
        v = obs_set.variant
        value_names = obs_set.phenotype.split(',')
        sample_ids = obs_set.sample_ids or (None,) * obs_set.n_observations
        for sample_id, (state, value) in zip(sample_ids, obs_set.observations):
            row = {
                'contigName': v.contigName,
                'start': v.start,
                'end': v.end,
                'referenceAllele': v.referenceAllele,
                'alternateAllele': v.alternateAllele,
                'names': v.names,
                'phenotype': obs_set.phenotype,
                'sampleId': sample_id,
                'genotypeState': state,
            }
            if len(value_names) != len(value):
                value_names = [f'value_{i}' for i in range(len(value))]
            row.update(dict(zip(value_names, value)))
            rows.append(row)
    if not rows:
        return pd.DataFrame(columns=['contigName', 'start', 'end', 'referenceAllele', 'alternateAllele',
                                     'names', 'phenotype', 'sampleId', 'genotypeState'])
    return pd.DataFrame(rows)

