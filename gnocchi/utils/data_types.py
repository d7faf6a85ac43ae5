"""
Core data structures for the gnocchi package
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

# Column layout of a GenotypeState frame
GENOTYPE_STATE_COLUMNS = [
    'contigName', 'start', 'end', 'ref', 'alt',
    'sampleId', 'genotypeState', 'missingGenotypes',
]

# Columns that identify a single variant within a GenotypeState frame
VARIANT_KEY_COLUMNS = ['contigName', 'start', 'end', 'ref', 'alt']

# Logical schema of the converted genotype store
STORE_COLUMNS = [
    'contigName', 'start', 'end', 'referenceAllele', 'alternateAllele',
    'sampleId', 'alleles',
]

# Allele tags written by the VCF converter
REF = 'REF'
ALT = 'ALT'
OTHER_ALT = 'OTHER_ALT'
NO_CALL = 'NO_CALL'


@dataclass(frozen=True)
class GenotypeState:
    """One sample's call at one variant locus.

    genotypeState counts alleles tagged REF (a REF dosage) and
    missingGenotypes counts alleles tagged NO_CALL.
    """

    contigName: str
    start: int
    end: int
    ref: str
    alt: str
    sampleId: str
    genotypeState: int
    missingGenotypes: int
    names: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GenotypeState":
        names = row.get('names')
        return cls(
            contigName=str(row['contigName']),
            start=int(row['start']),
            end=int(row['end']),
            ref=str(row['ref']),
            alt=str(row['alt']),
            sampleId=str(row['sampleId']),
            genotypeState=int(row['genotypeState']),
            missingGenotypes=int(row['missingGenotypes']),
            names=None if names is None or pd.isna(names) else str(names),
        )

    def to_variant(self) -> "Variant":
        return Variant(
            contigName=self.contigName,
            start=self.start,
            end=self.end,
            referenceAllele=self.ref,
            alternateAllele=self.alt,
            names=self.names,
        )


@dataclass(frozen=True)
class Variant:
    """Variant identity used as a grouping key for observations."""

    contigName: str
    start: int
    end: int
    referenceAllele: str
    alternateAllele: str
    names: Optional[str] = None


@dataclass(frozen=True)
class Phenotype:
    """Primary phenotype plus covariates for one sample.

    value[0] is the primary phenotype, later entries are covariates in the
    order they were requested. phenotype is the comma-joined column label.
    """

    phenotype: str
    sampleId: str
    value: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'value', tuple(float(v) for v in self.value))

    @property
    def n_values(self) -> int:
        return len(self.value)

    def to_numpy(self) -> np.ndarray:
        """Feature vector as a float64 array"""
        return np.asarray(self.value, dtype=np.float64)


@dataclass(frozen=True)
class ObservationSet:
    """Observations for one (variant, phenotype label) pair.

    observations holds (genotype dosage, feature vector) pairs; sample_ids is
    aligned with observations and kept for reporting only.
    """

    variant: Variant
    phenotype: str
    observations: Tuple[Tuple[float, Tuple[float, ...]], ...]
    sample_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def n_observations(self) -> int:
        return len(self.observations)

    def genotypes(self) -> np.ndarray:
        return np.array([g for g, _ in self.observations], dtype=np.float64)

    def features(self) -> np.ndarray:
        """Feature matrix (n_observations × n_values)"""
        if not self.observations:
            return np.zeros((0, 0), dtype=np.float64)
        return np.array([list(v) for _, v in self.observations], dtype=np.float64)


def genotype_states_from_frame(frame: pd.DataFrame) -> Sequence[GenotypeState]:
    """Materialize a GenotypeState frame as a list of records."""
    return [GenotypeState.from_row(row) for row in frame.to_dict('records')]


def genotype_states_to_frame(states: Sequence[GenotypeState]) -> pd.DataFrame:
    """Build a GenotypeState frame from records."""
    rows = [
        {
            'contigName': s.contigName,
            'start': s.start,
            'end': s.end,
            'ref': s.ref,
            'alt': s.alt,
            'sampleId': s.sampleId,
            'genotypeState': s.genotypeState,
            'missingGenotypes': s.missingGenotypes,
            'names': s.names,
        }
        for s in states
    ]
    frame = pd.DataFrame(rows, columns=GENOTYPE_STATE_COLUMNS + ['names'])
    return frame.astype({'start': np.int64, 'end': np.int64,
                         'genotypeState': np.int64, 'missingGenotypes': np.int64})


def summarize_counts(before: int, after: int) -> Dict[str, int]:
    return {'before': int(before), 'after': int(after), 'dropped': int(before - after)}
