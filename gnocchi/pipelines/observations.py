"""
Observation Pipeline Module

Step-wise object that loads phenotypes, runs genotype QC and assembles the
per-variant observation sets handed to site regression models.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from ..association.observations import generate_observations, observations_to_dataframe
from ..core.context import GnocchiContext
from ..data.loaders import load_and_filter_genotypes
from ..data.phenotypes import load_phenotypes
from ..utils.data_types import ObservationSet, Phenotype

DEFAULT_OUTPUT_NAME = 'observations.tsv'


class ObservationPipeline:
    """
    High-level pipeline preparing GWAS observations.

    Typical workflow:
        1. Initialize pipeline with output directory
        2. Load phenotypes (and covariates); headers are validated here, before
           any genotype work starts
        3. Load genotypes, converting the VCF on first use, and apply QC
        4. Pair genotypes with phenotypes into observation sets
        5. Optionally save the flattened observations

    Attributes:
        phenotypes (list): Phenotype records after alignment
        genotype_states (DataFrame): QC-filtered GenotypeState rows
        observation_sets (list): ObservationSet per (variant, phenotype label)
        qc_summary (dict): Counts before/after each genotype QC step
        output_dir (Path): Output directory; the converted store is kept here

    Example:
        >>> from gnocchi.pipelines.observations import ObservationPipeline
        >>>
        >>> pipeline = ObservationPipeline(output_dir='./my_analysis')
        >>> pipeline.load_phenotypes('phenos.txt', pheno_name='status', one_two=True)
        >>> pipeline.load_genotypes('genos.vcf.gz', mind=0.1, maf=0.05, geno=0.1)
        >>> observation_sets = pipeline.generate_observations()
    """

    def __init__(self, output_dir: str = "./gnocchi_results",
                 context: Optional[GnocchiContext] = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.context = context or GnocchiContext()

        self.phenotypes: Optional[List[Phenotype]] = None
        self.genotype_states: Optional[pd.DataFrame] = None
        self.observation_sets: Optional[List[ObservationSet]] = None
        self.qc_summary: Dict[str, Any] = {}

    def log(self, message: str):
        """Internal logger, silenced when the context is not verbose"""
        self.context.log(message)

    def log_step(self, step_name: str, start_time: Optional[float] = None):
        """Log a pipeline step with optional timing"""
        if start_time is not None:
            elapsed = time.time() - start_time
            self.log(f"{step_name} completed in {elapsed:.2f} seconds")
        else:
            self.log(f"{step_name}...")

    @property
    def destination(self) -> Path:
        return self.output_dir / DEFAULT_OUTPUT_NAME

    def load_phenotypes(self,
                        phenotype_file: Union[str, Path],
                        pheno_name: str,
                        one_two: bool = False,
                        covariate_file: Optional[Union[str, Path]] = None,
                        covariate_names: Optional[Union[str, Sequence[str]]] = None) -> List[Phenotype]:
        """
        Load the primary phenotype and optional covariates.

        Raises:
            ValueError: On header problems, unknown columns or a covariate
                        sharing the phenotype's name
        """
        step_start = time.time()
        self.log_step("Step 1: Loading phenotypes")

        include_covariates = covariate_file is not None or covariate_names is not None
        self.phenotypes = load_phenotypes(
            phenotype_file,
            pheno_name,
            one_two=one_two,
            include_covariates=include_covariates,
            covar_file=covariate_file,
            covar_names=covariate_names,
            verbose=self.context.verbose,
        )
        self.qc_summary['phenotypes'] = len(self.phenotypes)

        self.log_step("Phenotype loading", step_start)
        return self.phenotypes

    def load_genotypes(self,
                       genotype_file: Union[str, Path],
                       ploidy: int = 2,
                       mind: float = 0.1,
                       maf: float = 0.01,
                       geno: float = 1.0,
                       overwrite: bool = False,
                       sparse: bool = False) -> pd.DataFrame:
        """
        Load genotypes and apply sample and variant QC.

        The VCF is converted into a store inside output_dir on first use and
        reused afterwards unless overwrite is True. With sparse, calls made only
        of the literal 'Ref' tag are skipped before counting.
        """
        step_start = time.time()
        self.log_step("Step 2: Loading and filtering genotypes")

        self.genotype_states, summary = load_and_filter_genotypes(
            genotype_file,
            self.destination,
            ploidy=ploidy,
            mind=mind,
            maf=maf,
            geno=geno,
            overwrite=overwrite,
            context=self.context,
            return_summary=True,
            sparse=sparse,
        )
        self.qc_summary.update(summary)

        self.log_step("Genotype QC", step_start)
        return self.genotype_states

    def generate_observations(self) -> List[ObservationSet]:
        """
        Pair QC-filtered genotypes with phenotypes.

        Raises:
            ValueError: If phenotypes or genotypes have not been loaded
        """
        if self.phenotypes is None or self.genotype_states is None:
            raise ValueError("Data not loaded. Call load_phenotypes() and load_genotypes() first.")

        step_start = time.time()
        self.log_step("Step 3: Assembling observations")

        self.observation_sets = generate_observations(self.genotype_states, self.phenotypes)
        n_obs = sum(s.n_observations for s in self.observation_sets)
        self.qc_summary['observation_sets'] = len(self.observation_sets)
        self.qc_summary['observations'] = n_obs
        self.log(f"   {len(self.observation_sets)} observation sets with {n_obs} observations")

        self.log_step("Observation assembly", step_start)
        return self.observation_sets

    def save_observations(self, filename: str = DEFAULT_OUTPUT_NAME) -> Path:
        """Write the flattened observations as a tab-separated file."""
        if self.observation_sets is None:
            raise ValueError("No observations. Call generate_observations() first.")
        output_file = self.output_dir / filename
        observations_to_dataframe(self.observation_sets).to_csv(output_file, sep='\t', index=False)
        self.log(f"   Observations written to {output_file}")
        return output_file

    def run(self,
            phenotype_file: Union[str, Path],
            genotype_file: Union[str, Path],
            pheno_name: str,
            covariate_file: Optional[Union[str, Path]] = None,
            covariate_names: Optional[Union[str, Sequence[str]]] = None,
            one_two: bool = False,
            ploidy: int = 2,
            mind: float = 0.1,
            maf: float = 0.01,
            geno: float = 1.0,
            overwrite: bool = False,
            sparse: bool = False,
            save: bool = True) -> List[ObservationSet]:
        """Run every step; phenotype validation happens before genotype work."""
        self.load_phenotypes(phenotype_file, pheno_name, one_two=one_two,
                             covariate_file=covariate_file, covariate_names=covariate_names)
        self.load_genotypes(genotype_file, ploidy=ploidy, mind=mind, maf=maf, geno=geno,
                            overwrite=overwrite, sparse=sparse)
        observation_sets = self.generate_observations()
        if save:
            self.save_observations()
        return observation_sets
