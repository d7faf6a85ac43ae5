"""
gnocchi: genotype/phenotype observation preparation for GWAS

Converts VCF genotypes into a reusable store, applies sample and variant QC,
and pairs per-sample genotype dosages with phenotype and covariate values.
"""

__version__ = "0.1.0"

from .core.context import GnocchiContext
from .data.loaders import load_and_filter_genotypes
from .data.phenotypes import load_phenotypes
from .association.observations import generate_observations
from .pipelines.observations import ObservationPipeline
from .utils.data_types import GenotypeState, ObservationSet, Phenotype, Variant

__all__ = [
    'GnocchiContext',
    'load_and_filter_genotypes',
    'load_phenotypes',
    'generate_observations',
    'ObservationPipeline',
    'GenotypeState',
    'ObservationSet',
    'Phenotype',
    'Variant',
]
