"""
Pairing of genotypes with phenotypes for association testing
"""

from .observations import generate_observations, pair_samples_with_phenotypes

__all__ = ['generate_observations', 'pair_samples_with_phenotypes']
