"""
Genotype summarization and quality control filters
"""

from .genotype_states import to_genotype_state_frame
from .filters import drop_fully_missing, filter_samples, filter_variants

__all__ = ['to_genotype_state_frame', 'filter_samples', 'filter_variants', 'drop_fully_missing']
