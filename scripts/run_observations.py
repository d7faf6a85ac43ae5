#!/usr/bin/env python3
"""
Prepare GWAS observations: convert genotypes, run QC and pair them with phenotypes
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gnocchi.cli.utils import parse_args, split_names
from gnocchi.core.context import GnocchiContext
from gnocchi.pipelines.observations import ObservationPipeline


def main(argv=None):
    args = parse_args(argv)
    destination = Path(args.destination)

    context = GnocchiContext(chunk_size=args.chunk_size, n_jobs=args.n_jobs,
                             verbose=not args.quiet)
    pipeline = ObservationPipeline(output_dir=str(destination.parent), context=context)

    # 1. Phenotypes first so header errors surface before any conversion
    pipeline.load_phenotypes(
        phenotype_file=args.phenotypes,
        pheno_name=args.pheno_name,
        one_two=args.one_two,
        covariate_file=args.covar_file,
        covariate_names=split_names(args.covar_names),
    )

    # 2. Genotypes
    pipeline.load_genotypes(
        genotype_file=args.genotypes,
        ploidy=args.ploidy,
        mind=args.mind,
        maf=args.maf,
        geno=args.geno,
        overwrite=args.overwrite,
        sparse=args.sparse,
    )

    # 3. Observations
    pipeline.generate_observations()
    pipeline.save_observations(destination.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
