"""Load Biscuit BED files into pandas or polars tables.

Parsing is left to pandas.read_csv / polars.read_csv, or to pysam for
tabix-indexed region queries; make_bsseq() only ever sees the resulting table.
"""

import gzip
import os
from typing import Any, Optional

# Third party modules
import numpy as np
import pandas as pd
import polars as pl
import pysam

from tqdm import tqdm
from bed2bsseq.params import (
    CONTEXT_SUFFIX,
    BiscuitParams,
    sample_names_from_columns,
)

# Biscuit writes missing beta/coverage values as "."
NA_STRING = "."


def _open_text(path: str):
    if path.endswith(".gz"):
        return gzip.open(path, "rt")
    return open(path, "rt", encoding="utf-8")


def read_header(path: str) -> Optional[list[str]]:
    """Return the column names from a "#chr\\tstart..." header line, if present."""
    with _open_text(path) as f:
        first_line = f.readline().rstrip("\n")
    if not first_line.startswith("#"):
        return None
    return [c.lstrip("#") for c in first_line.split("\t")]


def read_sample_names(path: str) -> Optional[list[str]]:
    """Derive sample names from the header's "<name>.beta" columns, if present."""
    header = read_header(path)
    if header is None:
        return None
    return sample_names_from_columns(header) or None


def _expected_columns(header: Optional[list[str]], params: BiscuitParams) -> list[str]:
    """Decide which column names the file carries, checking them against params."""
    if header is None:
        return params.col_names

    kept = [c for c in header if not c.endswith(CONTEXT_SUFFIX)]
    missing = [c for c in params.selected_cols if c not in kept]
    if missing:
        raise ValueError(f"Columns missing from BED header: {missing}")
    return header


def _polars_dtypes(columns: list[str], params: BiscuitParams) -> list:
    """Column dtypes for polars, so types are never guessed from the first rows."""
    numeric = set(params.beta_cols) | set(params.covg_cols)
    dtypes = []
    for col in columns:
        if col in ("start", "end"):
            dtypes.append(pl.Int64)
        elif col in numeric:
            dtypes.append(pl.Float64)
        else:
            dtypes.append(pl.Utf8)
    return dtypes


def _tabix_rows(path: str, region: str, verbose: bool = False) -> list[list[str]]:
    try:
        tabix = pysam.TabixFile(path)  # type: ignore # pylint: disable=no-member
    except OSError as exc:
        raise FileNotFoundError(
            f"Region queries need a bgzipped, tabix-indexed BED: {path}"
        ) from exc

    with tabix:
        rows = [
            line.split("\t")
            for line in tqdm(tabix.fetch(region=region), disable=not verbose)
        ]
    if verbose:
        tqdm.write(f"\tFetched {len(rows):,} rows from {region}")
    return rows


def load_biscuit_bed(
    path: str,
    params: BiscuitParams,
    region: Optional[str] = None,
    verbose: bool = False,
) -> Any:
    """Read a Biscuit BED into the table type named by params.how.

    Args
    ----------
    path : str
        Path to the BED file (plain, gzipped or bgzipped).
    params : BiscuitParams
        Describes the expected columns and the table backend.
    region : str, optional
        Only load rows overlapping this region, e.g. "chr11:1-200000".
        Requires a bgzipped, tabix-indexed file.
    verbose : bool, optional
        Verbose output.

    Returns
    -------
    pandas.DataFrame or polars.DataFrame
        Coordinate columns plus the beta/coverage columns; ".context"
        columns are dropped.

    Raises
    -------
    FileNotFoundError
        If the file cannot be read (or lacks a tabix index for region queries).
    ValueError
        If the columns do not match params.
    """
    if not os.access(path, os.R_OK):
        raise FileNotFoundError(f"Cannot read BED file: {os.path.abspath(path)}")

    header = read_header(path)
    columns = _expected_columns(header, params)
    selected = [c for c in columns if not c.endswith(CONTEXT_SUFFIX)]

    if verbose:
        print(f"\tReading {path} ({len(selected)} columns) as a {params.how} table")

    if region is not None:
        rows = _tabix_rows(path, region, verbose=verbose)
        bad = [i for i, r in enumerate(rows) if len(r) != len(columns)]
        if bad:
            raise ValueError(
                f"Row {bad[0]} of {region} has {len(rows[bad[0]])} fields, "
                f"expected {len(columns)}"
            )
        frame = pd.DataFrame(rows, columns=columns)[selected]
        frame = frame.replace(NA_STRING, np.nan)
        for col in selected:
            if col != "chr":
                frame[col] = pd.to_numeric(frame[col], errors="coerce")
        if params.how == "polars":
            return pl.DataFrame(frame.to_dict(orient="list"))
        return frame

    if params.how == "polars":
        table = pl.read_csv(
            path,
            separator="\t",
            has_header=False,
            skip_rows=1 if header is not None else 0,
            new_columns=columns,
            schema_overrides=_polars_dtypes(columns, params),
            null_values=NA_STRING,
        )
        if table.width != len(columns):
            raise ValueError(f"{table.width} columns in {path}, expected {len(columns)}")
        return table.select(selected)

    table = pd.read_csv(
        path,
        sep="\t",
        header=None,
        skiprows=1 if header is not None else 0,
        na_values=NA_STRING,
        dtype={0: str},
    )
    if table.shape[1] != len(columns):
        raise ValueError(f"{table.shape[1]} columns in {path}, expected {len(columns)}")
    table.columns = columns
    return table[selected]


def check_biscuit_bed(
    path: str,
    sample_names: Optional[list[str]] = None,
    how: str = "pandas",
    sparse: bool = False,
    has_context: Optional[bool] = None,
) -> BiscuitParams:
    """Build BiscuitParams for a BED file, taking sample names from its header if needed.

    has_context says whether each beta/coverage pair is followed by a
    ".context" column; by default it is read from the header (False for
    headerless files).

    Raises
    -------
    FileNotFoundError
        If the file cannot be read.
    ValueError
        If no sample names were given and the header does not provide any.
    """
    if not os.access(path, os.R_OK):
        raise FileNotFoundError(f"Cannot read BED file: {os.path.abspath(path)}")

    header = read_header(path)
    if sample_names is None and header is not None:
        sample_names = sample_names_from_columns(header)
    if has_context is None:
        has_context = header is not None and any(
            c.endswith(CONTEXT_SUFFIX) for c in header
        )
    if not sample_names:
        raise ValueError(
            f"No sample names given and none found in the header of {path}"
        )
    return BiscuitParams.from_sample_names(
        sample_names, how=how, sparse=sparse, has_context=has_context
    )
