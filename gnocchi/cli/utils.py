import argparse
from typing import List, Optional, Sequence

from ..core.context import DEFAULT_CHUNK_SIZE


def split_names(raw: Optional[str]) -> Optional[List[str]]:
    """Helper to split a comma-separated column list

    Names are kept exactly as written, surrounding spaces included; header
    labels are matched exactly. Empty entries are dropped.
    """
    if raw is None:
        return None
    names = [name for name in raw.split(',') if name]
    return names or None


def _check_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> argparse.Namespace:
    if not 0.0 <= args.mind <= 1.0:
        parser.error(f"--mind must be between 0 and 1, got {args.mind}")
    if not 0.0 <= args.geno <= 1.0:
        parser.error(f"--geno must be between 0 and 1, got {args.geno}")
    if not 0.0 <= args.maf <= 0.5:
        parser.error(f"--maf must be between 0 and 0.5, got {args.maf}")
    if args.ploidy < 1:
        parser.error(f"--ploidy must be at least 1, got {args.ploidy}")
    if args.chunk_size < 1:
        parser.error(f"--chunk-size must be positive, got {args.chunk_size}")
    if args.n_jobs == 0 or args.n_jobs < -1:
        parser.error(f"--n-jobs must be -1 or a positive integer, got {args.n_jobs}")
    if (args.covar_file is None) != (args.covar_names is None):
        parser.error("--covar-file and --covar-names must be given together")
    return args


def parse_args(argv: Optional[Sequence[str]] = None):
    """Parse command line arguments for the observation pipeline"""
    parser = argparse.ArgumentParser(
        description="Prepare GWAS observations with gnocchi",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Required arguments
    parser.add_argument("--genotypes", "-g", required=True,
                       help="Genotype file (VCF, optionally gzipped, or a converted .h5 store)")
    parser.add_argument("--phenotypes", "-p", required=True,
                       help="Phenotype file (tab or space delimited, sample id first, header required)")
    parser.add_argument("--pheno-name", required=True,
                       help="Column holding the primary phenotype")

    # Optional arguments
    parser.add_argument("--destination", "-o", default="./gnocchi_results/observations.tsv",
                       help="Output file; the converted genotype store is kept beside it")
    parser.add_argument("--covar-file", default=None,
                       help="Optional covariate file")
    parser.add_argument("--covar-names", default=None,
                       help="Comma-separated list of covariate column names")
    parser.add_argument("--one-two", action='store_true',
                       help="Primary phenotype is encoded 1/2; shift it to 0/1")
    parser.add_argument("--overwrite", action='store_true',
                       help="Reconvert the genotypes even if a store already exists")
    parser.add_argument("--sparse", action='store_true',
                       help="Skip calls made only of the literal 'Ref' tag before summarizing")

    # Thresholds
    parser.add_argument("--ploidy", type=int, default=2,
                       help="Allele copies per call")
    parser.add_argument("--mind", type=float, default=0.1,
                       help="Maximum per-sample missingness")
    parser.add_argument("--maf", type=float, default=0.01,
                       help="Minimum minor allele frequency")
    parser.add_argument("--geno", type=float, default=1.0,
                       help="Maximum per-variant missingness")

    # Execution
    parser.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
                       help="Store rows read per chunk")
    parser.add_argument("--n-jobs", type=int, default=1,
                       help="Worker threads for chunk processing (-1 = all CPUs)")
    parser.add_argument("--quiet", action='store_true',
                       help="Suppress progress output")

    return _check_args(parser, parser.parse_args(argv))
