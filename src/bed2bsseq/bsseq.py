"""The BSseq container: positions, methylated counts, coverage and sample data."""

import os
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union

# Third party modules
import numpy as np
import pandas as pd
import scipy.sparse

from bed2bsseq.exceptions import SampleCountMismatchError
from bed2bsseq.positions import GenomicPosition

Matrix = Union[np.ndarray, scipy.sparse.csr_matrix]


@dataclass(frozen=True)
class LabeledMatrix:
    """A count matrix with optional row names and column names."""

    values: Matrix
    row_names: Optional[tuple[str, ...]]
    col_names: tuple[str, ...]

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape


class BSseq:
    """Methylated-read counts (M) and total coverage (Cov) per position and sample.

    Rows of M and Cov follow positions; columns follow pdata["sample_name"].
    Instances are not modified after construction: methods that change
    anything return a new BSseq.
    """

    def __init__(
        self,
        positions: Sequence[GenomicPosition],
        M: Matrix,
        Cov: Matrix,
        pdata: pd.DataFrame,
        row_names: Optional[Sequence[str]] = None,
    ):
        """Bind positions, matrices and sample metadata.

        Row names default to the string form of each position.

        Raises
        -------
        ValueError
            If the matrix shapes disagree with each other, with the number of
            positions, with the number of row names, or with the number of
            samples.
        """
        self.positions = tuple(positions)
        self.M = M
        self.Cov = Cov

        if M.shape != Cov.shape:
            raise ValueError(f"M {M.shape} and Cov {Cov.shape} shapes differ")
        if M.shape[0] != len(self.positions):
            raise ValueError(
                f"{M.shape[0]} matrix rows for {len(self.positions)} positions"
            )
        if M.shape[1] != len(pdata):
            raise ValueError(f"{M.shape[1]} matrix columns for {len(pdata)} samples")

        if row_names is None:
            row_names = [str(p) for p in self.positions]
        if len(row_names) != M.shape[0]:
            raise ValueError(f"{len(row_names)} row names for {M.shape[0]} matrix rows")
        self._row_names = tuple(str(r) for r in row_names)

        # Sample names double as the pData row names
        self.pdata = pdata.copy()
        self.pdata.index = pd.Index(
            [str(s) for s in self.pdata["sample_name"]], name=None
        )

    def __repr__(self) -> str:
        kind = "sparse" if self.is_sparse else "dense"
        return (
            f"BSseq({self.shape[0]:,} positions x {self.shape[1]} samples, {kind}; "
            f"samples: {', '.join(self.sample_names)})"
        )

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def shape(self) -> tuple[int, int]:
        return self.M.shape

    @property
    def is_sparse(self) -> bool:
        return scipy.sparse.issparse(self.M)

    @property
    def sample_names(self) -> list[str]:
        return list(self.pdata.index)

    @property
    def row_names(self) -> list[str]:
        return list(self._row_names)

    def labeled(self, what: str = "M") -> LabeledMatrix:
        """Return M or Cov with its row names and sample names attached."""
        if what not in ("M", "Cov"):
            raise ValueError(f"what must be 'M' or 'Cov', not {what!r}")
        values = self.M if what == "M" else self.Cov
        return LabeledMatrix(values, self._row_names, tuple(self.sample_names))

    def total_coverage(self) -> np.ndarray:
        """Coverage summed over samples, one value per position."""
        return np.asarray(self.Cov.sum(axis=1)).ravel()

    def get_meth(self) -> np.ndarray:
        """Raw methylation fractions M / Cov (NaN where Cov is zero)."""
        m = self.M.toarray() if self.is_sparse else self.M
        cov = self.Cov.toarray() if self.is_sparse else self.Cov
        with np.errstate(divide="ignore", invalid="ignore"):
            beta = m / cov
        beta[cov == 0] = np.nan
        return beta

    def with_sample_names(self, sample_names: Sequence[str]) -> "BSseq":
        """Return a copy whose samples are renamed (same order)."""
        if len(sample_names) != self.shape[1]:
            raise ValueError(
                f"{len(sample_names)} names given for {self.shape[1]} samples"
            )
        pdata = self.pdata.assign(sample_name=[str(s) for s in sample_names])
        return BSseq(self.positions, self.M, self.Cov, pdata, row_names=self._row_names)

    def save(self, prefix: str) -> list[str]:
        """Write the container next to prefix and return the written paths.

        M and Cov go to <prefix>.M.npz / <prefix>.Cov.npz (compressed SciPy
        sparse format, whatever the in-memory representation), positions and
        pData to tab-separated text.
        """
        paths = {
            "M": prefix + ".M.npz",
            "Cov": prefix + ".Cov.npz",
            "positions": prefix + ".positions.tsv",
            "pdata": prefix + ".pdata.tsv",
        }
        scipy.sparse.save_npz(
            paths["M"], scipy.sparse.csr_matrix(self.M), compressed=True
        )
        scipy.sparse.save_npz(
            paths["Cov"], scipy.sparse.csr_matrix(self.Cov), compressed=True
        )
        pd.DataFrame(
            {
                "chr": [p.chrom for p in self.positions],
                "pos": [p.pos for p in self.positions],
            }
        ).to_csv(paths["positions"], sep="\t", index=False)
        self.pdata.to_csv(paths["pdata"], sep="\t", index=False)
        return list(paths.values())

    @classmethod
    def load(cls, prefix: str, sparse: bool = False) -> "BSseq":
        """Read a container written by save().

        Raises
        -------
        FileNotFoundError
            If any of the four files is missing.
        """
        for suffix in (".M.npz", ".Cov.npz", ".positions.tsv", ".pdata.tsv"):
            if not os.path.exists(prefix + suffix):
                raise FileNotFoundError(f"Missing BSseq file: {prefix + suffix}")

        M = scipy.sparse.load_npz(prefix + ".M.npz").tocsr()
        Cov = scipy.sparse.load_npz(prefix + ".Cov.npz").tocsr()
        if not sparse:
            M, Cov = M.toarray(), Cov.toarray()

        positions_df = pd.read_csv(
            prefix + ".positions.tsv", sep="\t", dtype={"chr": str}
        )
        positions = [
            GenomicPosition(chrom, int(pos))
            for chrom, pos in zip(positions_df["chr"], positions_df["pos"])
        ]
        pdata = pd.read_csv(
            prefix + ".pdata.tsv", sep="\t", dtype={"sample_name": str}
        )
        return cls(positions, M, Cov, pdata)


def _check_labels(
    x: LabeledMatrix,
    what: str,
    positions: Sequence[GenomicPosition],
    sample_names: list[str],
) -> None:
    """Raise unless x is labeled by sample names and (if named) by positions."""
    if len(x.col_names) != len(sample_names):
        raise SampleCountMismatchError(
            f"{what} has {len(x.col_names)} columns for {len(sample_names)} samples"
        )
    if list(x.col_names) != sample_names:
        raise ValueError(
            f"{what} column names {list(x.col_names)} do not match samples {sample_names}"
        )
    if x.row_names is not None and list(x.row_names) != [str(p) for p in positions]:
        raise ValueError(f"{what} row names do not match the positions")


def build_bsseq(
    positions: Sequence[GenomicPosition],
    M: Union[LabeledMatrix, Matrix],
    Cov: Union[LabeledMatrix, Matrix],
    pdata: pd.DataFrame,
    rm_zero_cov: bool = True,
    verbose: bool = False,
) -> BSseq:
    """Construct a BSseq, dropping positions nobody covered.

    Args
    ----------
    positions : Sequence[GenomicPosition]
        One position per matrix row.
    M, Cov : LabeledMatrix, numpy.ndarray or scipy.sparse.csr_matrix
        Methylated and total read counts. Labeled matrices must carry the
        pdata sample names as column names and, if they have row names,
        the string form of positions.
    pdata : pandas.DataFrame
        Sample metadata with a "sample_name" column.
    rm_zero_cov : bool, optional
        Drop rows whose coverage summed over all samples is zero.
    verbose : bool, optional
        Verbose output.

    Returns
    -------
    BSseq

    Raises
    -------
    SampleCountMismatchError
        If a labeled matrix has a different number of columns than pdata rows.
    ValueError
        If labels disagree with the sample names or positions.
    """
    sample_names = [str(s) for s in pdata["sample_name"]]
    row_names = None
    for what, x in (("M", M), ("Cov", Cov)):
        if isinstance(x, LabeledMatrix):
            _check_labels(x, what, positions, sample_names)
            if x.row_names is not None:
                row_names = x.row_names
    if isinstance(M, LabeledMatrix):
        M = M.values
    if isinstance(Cov, LabeledMatrix):
        Cov = Cov.values

    bsseq = BSseq(positions, M, Cov, pdata, row_names=row_names)
    if not rm_zero_cov:
        return bsseq

    keep = np.flatnonzero(bsseq.total_coverage() > 0)
    if verbose:
        print(f"\tDropping {len(bsseq) - len(keep):,} zero-coverage positions.")
    if len(keep) == len(bsseq):
        return bsseq

    kept_rows = bsseq.row_names
    return BSseq(
        [bsseq.positions[i] for i in keep],
        bsseq.M[keep],
        bsseq.Cov[keep],
        bsseq.pdata,
        row_names=[kept_rows[i] for i in keep],
    )


# Name tokens are separated by dots or underscores, e.g. "MCF7_Cunha.hg19"
NAME_TOKEN_SEPARATOR = re.compile(r"[._]")


def _simplify_names(names: list[str]) -> list[str]:
    if not names:
        return names
    if len(names) == 1:
        simplified = [names[0].split(".", 1)[0]]
    else:
        tokens = [NAME_TOKEN_SEPARATOR.split(n) for n in names]
        shortest = min(len(t) for t in tokens)
        # Count trailing tokens shared by every sample, keeping at least one
        shared = 0
        while shared < shortest - 1 and len({t[-(shared + 1)] for t in tokens}) == 1:
            shared += 1
        if shared == 0:
            return names
        # Cut at the separator preceding the first shared token
        simplified = []
        for name, toks in zip(names, tokens):
            kept = len(toks) - shared
            cut = [m.start() for m in NAME_TOKEN_SEPARATOR.finditer(name)][kept - 1]
            simplified.append(name[:cut])

    if any(s == "" for s in simplified) or len(set(simplified)) != len(simplified):
        return names
    return simplified


def simplify_sample_names(
    x: Union[BSseq, Sequence[str]],
) -> Union[BSseq, list[str]]:
    """Drop the verbose suffixes shared by all sample names.

    "MCF7.hg19" and "HCT116.hg19" become "MCF7" and "HCT116"; a single sample
    loses everything after its first dot. Names are returned unchanged when
    simplifying would leave an empty or duplicated name.

    Accepts either a BSseq (returns a renamed copy) or a list of names.
    """
    if isinstance(x, BSseq):
        return x.with_sample_names(_simplify_names(x.sample_names))
    return _simplify_names([str(n) for n in x])
