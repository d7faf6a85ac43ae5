"""CLI utility to convert a VCF into the genotype store used by the pipeline."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from ..data.load_genotype_vcf import DEFAULT_WRITE_CHUNK, convert_vcf_to_store
from ..data.loaders import STORE_FILENAME, detect_file_format


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a VCF (plain or gzipped) into an HDF5 genotype store for fast reuse.",
    )
    parser.add_argument('-i', '--input', required=True, help='Path to the input VCF')
    parser.add_argument('-o', '--output', default=None,
                        help=f'Output store path (default: {STORE_FILENAME} beside the input)')
    parser.add_argument('--chunk-size', type=int, default=DEFAULT_WRITE_CHUNK,
                        help='Number of rows buffered per write')
    parser.add_argument('--no-split-multiallelic', dest='split_multiallelic', action='store_false',
                        help='Skip multi-allelic sites instead of splitting them per ALT')
    parser.add_argument('--snps-only', dest='include_indels', action='store_false',
                        help='Skip sites whose REF or ALT is longer than one base')
    parser.add_argument('--overwrite', action='store_true',
                        help='Replace an existing store')
    parser.set_defaults(split_multiallelic=True, include_indels=True)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        parser.error(f"Input file '{input_path}' does not exist")
    if detect_file_format(input_path) != 'vcf':
        parser.error(f"Input file '{input_path}' is not a VCF")
    if args.chunk_size < 1:
        parser.error(f"--chunk-size must be positive, got {args.chunk_size}")

    output_path = Path(args.output) if args.output else input_path.parent / STORE_FILENAME
    if output_path.exists() and not args.overwrite:
        parser.error(f"Output store '{output_path}' already exists; pass --overwrite to replace it")

    result = convert_vcf_to_store(
        input_path,
        output_path,
        split_multiallelic=args.split_multiallelic,
        include_indels=args.include_indels,
        chunk_size=args.chunk_size,
    )

    print(f"Converted genotypes: {result['n_samples']} samples × {result['n_variants']} variants")
    print(f"  Rows: {result['n_rows']}")
    print(f"  Store: {result['store_path']}")
    return 0


if __name__ == '__main__':  # pragma: no cover
    raise SystemExit(main())
