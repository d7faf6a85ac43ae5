"""
Phenotype and covariate loading for observation assembly
"""

import math
import warnings
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..utils.data_types import Phenotype

MISSING_VALUE = -9.0


def is_missing(value: str) -> bool:
    """Checks if a phenotype value matches the missing value sentinel

    Args:
        value: Raw field text

    Returns:
        True if the value parses to exactly -9.0, is not finite (nan, inf),
        contains a digit-grouping underscore or does not parse as a number
        at all, False otherwise
    """
    if isinstance(value, str) and "_" in value:
        return True
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return True
    return not math.isfinite(parsed) or parsed == MISSING_VALUE


def _split_names(names: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(names, str):
        return names.split(',')
    return list(names)


def load_file_and_check_header(path: Union[str, Path],
                               variables: Union[str, Sequence[str]],
                               is_covars: bool = False) -> Tuple[List[str], List[str], List[int], str]:
    """Read a delimited phenotype/covariate file and validate its header

    The header decides the delimiter: tab if it splits into at least two
    tab-separated columns, otherwise a single space.

    Args:
        path: Path to the phenotype or covariate file
        variables: Comma-separated column names (or a list) that must appear
                   in the header
        is_covars: Whether the file holds covariates (used in messages)

    Returns:
        Tuple of (lines including the header, column labels, indices of the
        requested columns in request order, delimiter)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the header has fewer than 2 columns or a requested
                    column is absent
    """
    path = Path(path)
    contents = "Covariates" if is_covars else "Phenotypes"
    if not path.exists():
        raise FileNotFoundError(f"{contents} file not found: {path}")

    with open(path, 'r') as f:
        lines = f.read().splitlines()
    if not lines:
        raise ValueError(f"{contents} file '{path}' is empty; a header line is required.")

    header = lines[0]
    delimiter = '\t' if len(header.split('\t')) >= 2 else ' '
    column_labels = header.split(delimiter)

    if len(column_labels) < 2:
        raise ValueError(
            f"{contents} file must have a minimum of 2 tab delimited columns. The first being some "
            "form of sampleID, the rest being phenotype values. A header with column labels must also be present."
        )

    indices = []
    for variable in _split_names(variables):
        if variable not in column_labels:
            raise ValueError(f"{variable} doesn't match any of the phenotypes specified in the header of '{path}'.")
        indices.append(column_labels.index(variable))

    return lines, column_labels, indices, delimiter


def _key_rows(lines: Sequence[str], header: Sequence[str], delimiter: str, source: str) -> Dict[str, List[str]]:
    """Split data lines and key them by sample id, keeping the first record per id."""
    header_line = delimiter.join(header)
    keyed: Dict[str, List[str]] = {}
    n_dups = 0
    for line in lines:
        if line == header_line:
            continue
        fields = line.split(delimiter)
        sample_id = fields[0]
        if sample_id == '':
            continue
        if sample_id in keyed:
            n_dups += 1
            continue
        keyed[sample_id] = fields
    if n_dups:
        warnings.warn(
            f"Detected {n_dups} duplicated {source} records by sample ID; retaining only the first occurrence for each duplicated ID."
        )
    return keyed


def combine_and_filter_phenotypes(one_two: bool,
                                  phenotypes: Sequence[str],
                                  header: Sequence[str],
                                  primary_index: int,
                                  delimiter: str,
                                  covariates: Optional[Sequence[str]] = None,
                                  covariate_header: Optional[Sequence[str]] = None,
                                  covariate_indices: Optional[Sequence[int]] = None,
                                  covariate_delimiter: Optional[str] = None) -> List[Phenotype]:
    """Join phenotype and covariate rows and build one Phenotype per sample.

    Args:
        one_two: If True, the primary phenotype is encoded 1/2 and is shifted
                 to 0/1
        phenotypes: Lines of the phenotype file (header line is skipped)
        header: Phenotype column labels
        primary_index: Index of the primary phenotype column
        delimiter: Phenotype file delimiter
        covariates: Lines of the covariate file, if any
        covariate_header: Covariate column labels
        covariate_indices: Indices of the requested covariate columns
        covariate_delimiter: Covariate file delimiter (defaults to delimiter)

    Returns:
        List of Phenotype records in phenotype file order. Samples missing
        from either file, rows too short to hold every requested column and
        rows with a missing requested value are dropped.
    """
    header = list(header)
    rows = _key_rows(phenotypes, header, delimiter, 'phenotype')

    if covariates is not None:
        if covariate_header is None or covariate_indices is None:
            raise ValueError("covariate_header and covariate_indices are required with covariates.")
        covariate_header = list(covariate_header)
        pheno_name = header[primary_index]
        covariate_names = [covariate_header[i] for i in covariate_indices]
        if pheno_name in covariate_names:
            raise ValueError("One or more of the covariates has the same name as phenoName.")

        covariate_rows = _key_rows(covariates, covariate_header,
                                   covariate_delimiter or delimiter, 'covariate')
        joined = [
            (sample_id, fields + covariate_rows[sample_id])
            for sample_id, fields in rows.items()
            if sample_id in covariate_rows
        ]
        full_header = header + covariate_header
        indices = [primary_index] + [i + len(header) for i in covariate_indices]
    else:
        joined = list(rows.items())
        full_header = header
        indices = [primary_index]

    label = ','.join(full_header[i] for i in indices)
    min_fields = max(max(indices) + 1, 2)

    result = []
    for sample_id, fields in joined:
        if len(fields) < min_fields:
            continue
        if any(is_missing(fields[i]) for i in indices):
            continue
        values = [float(fields[i]) for i in indices]
        if one_two:
            values[0] -= 1.0
        result.append(Phenotype(phenotype=label, sampleId=sample_id, value=tuple(values)))
    return result


def load_phenotypes(phenotypes_path: Union[str, Path],
                    pheno_name: str,
                    one_two: bool = False,
                    include_covariates: bool = False,
                    covar_file: Optional[Union[str, Path]] = None,
                    covar_names: Optional[Union[str, Sequence[str]]] = None,
                    verbose: bool = True) -> List[Phenotype]:
    """Load the primary phenotype and optional covariates

    Args:
        phenotypes_path: Phenotype file (sample id first, header required)
        pheno_name: Column holding the primary phenotype
        one_two: Shift a 1/2 encoded binary phenotype to 0/1
        include_covariates: Whether to join covariates
        covar_file: Covariate file
        covar_names: Comma-separated covariate column names (or a list)
        verbose: Print progress lines

    Returns:
        List of Phenotype records
    """
    if verbose:
        print(f"   Loading phenotypes from {phenotypes_path}")
    lines, header, index_list, delimiter = load_file_and_check_header(phenotypes_path, pheno_name)
    primary_index = index_list[0]

    if include_covariates:
        if covar_file is None or covar_names is None:
            raise ValueError("Covariates requested but covar_file and covar_names were not both provided.")
        if verbose:
            print(f"   Loading covariates from {covar_file}")
        covariates, covar_header, covar_indices, covar_delimiter = load_file_and_check_header(
            covar_file, covar_names, is_covars=True
        )
        if pheno_name in _split_names(covar_names):
            raise ValueError("One or more of the covariates has the same name as phenoName.")
        phenotypes = combine_and_filter_phenotypes(
            one_two, lines, header, primary_index, delimiter,
            covariates=covariates,
            covariate_header=covar_header,
            covariate_indices=covar_indices,
            covariate_delimiter=covar_delimiter,
        )
    else:
        phenotypes = combine_and_filter_phenotypes(one_two, lines, header, primary_index, delimiter)

    if verbose:
        print(f"   Loaded {len(phenotypes)} samples with complete phenotype records")
    return phenotypes
