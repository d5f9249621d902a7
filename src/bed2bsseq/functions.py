"""Core functions for bed2bsseq."""

from typing import Any, Callable, Optional, Sequence, Union

# Third party modules
import numpy as np
import scipy.sparse

from bed2bsseq.backends import TableBackend, backend_for_table, get_backend
from bed2bsseq.bsseq import (
    BSseq,
    LabeledMatrix,
    build_bsseq,
    simplify_sample_names,
)
from bed2bsseq.exceptions import (
    DimensionMismatchError,
    MissingValueResolutionError,
    NegativeCoverageError,
    SampleCountMismatchError,
)
from bed2bsseq.params import BiscuitParams
from bed2bsseq.positions import GenomicPosition, make_positions

Matrix = Union[np.ndarray, scipy.sparse.csr_matrix]

# Matrix roles, also the replacement for "beta" in column names
MATRIX_ROLES = ("M", "Cov")
BETA_TOKEN = "beta"


def fix_nas(x: np.ndarray, fill_value: float = 0, sparse: bool = False) -> Matrix:
    """Replace every missing (NaN) cell of x with fill_value.

    Args
    ----------
    x : numpy.ndarray
        A 2-D float matrix, NaN marking missing cells.
    fill_value : float, optional
        Replacement for missing cells (default 0).
    sparse : bool, optional
        Return a scipy.sparse.csr_matrix, with zeros stored implicitly.

    Returns
    -------
    numpy.ndarray or scipy.sparse.csr_matrix
        A copy of x without missing cells.

    Raises
    -------
    MissingValueResolutionError
        If the fill value (or anything left in the matrix) is not finite.
    """
    if not np.isfinite(fill_value):
        raise MissingValueResolutionError(
            f"Cannot resolve missing values with a non-finite fill value: {fill_value}"
        )

    filled = np.where(np.isnan(x), fill_value, x)

    unresolved = np.argwhere(~np.isfinite(filled))
    if unresolved.size > 0:
        row, col = unresolved[0]
        raise MissingValueResolutionError(
            f"{len(unresolved):,} cells are still not finite after filling, "
            f"first at row {row}, column {col}"
        )

    if sparse:
        return scipy.sparse.csr_matrix(filled)
    return filled


def reconstruct_matrices(
    tbl: Any,
    params: BiscuitParams,
    verbose: bool = False,
) -> tuple[LabeledMatrix, LabeledMatrix]:
    """Rebuild methylated-read and coverage counts from beta/coverage columns.

    M = round(beta * coverage) and Cov = coverage, with missing cells set to
    zero according to params.fill_policy. Both come back as
    rows x samples integer matrices, even for a single sample, labeled with
    the source column names.

    Raises
    -------
    DimensionMismatchError
        If params lists a different number of beta and coverage columns.
    NegativeCoverageError
        If any coverage value is below zero.
    """
    if len(params.beta_cols) != len(params.covg_cols):
        raise DimensionMismatchError(
            f"{len(params.beta_cols)} beta columns but "
            f"{len(params.covg_cols)} coverage columns"
        )

    backend: TableBackend = (
        get_backend(params.how) if params.how else backend_for_table(tbl)
    )
    if verbose:
        print(f"\tSlicing {len(params.beta_cols)} sample(s) from a {backend.name} table")

    beta = backend.slice_columns(tbl, params.beta_cols)
    covg = backend.slice_columns(tbl, params.covg_cols)

    with np.errstate(invalid="ignore"):
        negative = np.argwhere(covg < 0)
    if negative.size > 0:
        row, col = negative[0]
        raise NegativeCoverageError(
            f"{len(negative):,} negative coverage values, first at row {row} "
            f"in column '{params.covg_cols[col]}'"
        )

    # numpy rounds half to even, like R's round()
    methylated = np.round(beta * covg)

    # Keep 0 <= M <= Cov where both are known (beta outside [0, 1] breaks it)
    with np.errstate(invalid="ignore"):
        too_high = methylated > covg
        too_low = methylated < 0
    if verbose and (too_high.any() or too_low.any()):
        print(
            f"\tClamping {int(too_high.sum() + too_low.sum()):,} methylated "
            "counts outside [0, coverage]"
        )
    methylated = np.where(too_high, covg, methylated)
    methylated = np.where(too_low, 0, methylated)

    M = fix_nas(methylated, fill_value=0, sparse=params.sparse)
    Cov = fix_nas(covg, fill_value=0, sparse=params.sparse)

    return (
        LabeledMatrix(M.astype(np.int64), None, tuple(params.beta_cols)),
        LabeledMatrix(Cov.astype(np.int64), None, tuple(params.covg_cols)),
    )


def fix_names(
    x: LabeledMatrix,
    positions: Sequence[GenomicPosition],
    what: str = "M",
    verbose: bool = False,
) -> LabeledMatrix:
    """Give x row names from positions (if it has none) and role-tagged column names.

    The first "beta" in each column name becomes what ("M" or "Cov").
    Running this again on its own output changes nothing.

    Raises
    -------
    ValueError
        If what is not "M" or "Cov".
    """
    if what not in MATRIX_ROLES:
        raise ValueError(f"what must be one of {MATRIX_ROLES}, not {what!r}")

    row_names = x.row_names
    if row_names is None:
        if verbose:
            print("\tAdding row names...")
        row_names = tuple(str(p) for p in positions)

    col_names = tuple(str(c).replace(BETA_TOKEN, what, 1) for c in x.col_names)
    return LabeledMatrix(x.values, row_names, col_names)


def make_bsseq(
    tbl: Any,
    params: BiscuitParams,
    simplify: bool = False,
    verbose: bool = False,
    simplifier: Optional[Callable[[BSseq], BSseq]] = None,
) -> BSseq:
    """Make an in-memory BSseq from a Biscuit BED table.

    The whole table is converted at once; tables that do not fit in memory
    must be split (e.g. by region) by the caller.

    Args
    ----------
    tbl : pandas.DataFrame or polars.DataFrame
        Columns chr, start, end and the beta/coverage columns named in params.
    params : BiscuitParams
        Column names, backend tag, fill policy and sample metadata.
    simplify : bool, optional
        Simplify sample names by dropping shared suffixes such as ".hg19".
    verbose : bool, optional
        Verbose output.
    simplifier : callable, optional
        Replacement for simplify_sample_names.

    Returns
    -------
    BSseq
        Positions with non-zero total coverage, M, Cov and params.pdata.

    Raises
    -------
    MalformedCoordinateError
        If start/end are non-numeric or end < start.
    DimensionMismatchError
        If the beta and coverage column counts differ.
    SampleCountMismatchError
        If pdata does not have one row per column pair.
    NegativeCoverageError
        If a coverage value is below zero.
    MissingValueResolutionError
        If a missing cell survives the fill step.
    """
    backend = get_backend(params.how) if params.how else backend_for_table(tbl)
    positions = make_positions(
        backend.get_column(tbl, "chr"),
        backend.get_column(tbl, "start"),
        backend.get_column(tbl, "end"),
    )
    if verbose:
        print(f"\tPositions: {len(positions):,}")

    M, Cov = reconstruct_matrices(tbl, params, verbose=verbose)
    Cov = fix_names(Cov, positions, what="Cov", verbose=verbose)
    M = fix_names(M, positions, what="M", verbose=verbose)

    sample_names = params.sample_names
    if len(sample_names) != M.shape[1]:
        raise SampleCountMismatchError(
            f"{len(sample_names)} samples in pdata but {M.shape[1]} "
            "beta/coverage column pairs"
        )
    M = LabeledMatrix(M.values, M.row_names, tuple(sample_names))
    Cov = LabeledMatrix(Cov.values, Cov.row_names, tuple(sample_names))

    if verbose:
        print("Creating BSseq object...")
    res = build_bsseq(positions, M, Cov, params.pdata, rm_zero_cov=True, verbose=verbose)
    if simplify:
        res = (simplifier or simplify_sample_names)(res)
    return res
