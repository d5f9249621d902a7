"""Parameters describing a Biscuit BED table and how to convert it."""

import enum
from dataclasses import dataclass, field
from typing import Optional, Sequence

# Third party modules
import pandas as pd


# Leading coordinate columns of every Biscuit BED
COORDINATE_COLS = ["chr", "start", "end"]
BETA_SUFFIX = ".beta"
COVG_SUFFIX = ".covg"
CONTEXT_SUFFIX = ".context"


class FillPolicy(enum.Enum):
    """How missing cells are resolved to zero."""

    DENSE_ZERO_FILL = "dense"
    SPARSE_ZERO_FILL = "sparse"

    @property
    def sparse(self) -> bool:
        return self is FillPolicy.SPARSE_ZERO_FILL


@dataclass(frozen=True)
class BiscuitParams:
    """Everything make_bsseq() needs to know about an input table.

    Attributes
    ----------
    beta_cols : list[str]
        Beta-value column names, one per sample, in sample order.
    covg_cols : list[str]
        Coverage column names, one per sample, in sample order.
    pdata : pandas.DataFrame
        Sample metadata; the "sample_name" column gives the final column names.
    how : str, optional
        Table backend tag ("pandas" or "polars"). None picks it from the table type.
    fill_policy : FillPolicy
        Dense (numpy) or sparse (scipy.sparse) zero fill.
    context_cols : list[str]
        Per-sample ".context" columns following each beta/coverage pair in
        the file, if any. They are read and then dropped.
    """

    beta_cols: list[str]
    covg_cols: list[str]
    pdata: pd.DataFrame = field(compare=False)
    how: Optional[str] = "pandas"
    fill_policy: FillPolicy = FillPolicy.DENSE_ZERO_FILL
    context_cols: list[str] = field(default_factory=list)

    @property
    def sparse(self) -> bool:
        return self.fill_policy.sparse

    @property
    def sample_names(self) -> list[str]:
        return [str(s) for s in self.pdata["sample_name"]]

    @property
    def col_names(self) -> list[str]:
        """Expected columns of the file: coordinates, then beta/coverage(/context) per sample."""
        cols = list(COORDINATE_COLS)
        for i, (beta_col, covg_col) in enumerate(zip(self.beta_cols, self.covg_cols)):
            cols += [beta_col, covg_col]
            if self.context_cols:
                cols.append(self.context_cols[i])
        return cols

    @property
    def selected_cols(self) -> list[str]:
        """The columns kept in the loaded table (col_names minus context columns)."""
        return [c for c in self.col_names if c not in self.context_cols]

    @classmethod
    def from_sample_names(
        cls,
        sample_names: Sequence[str],
        how: Optional[str] = "pandas",
        sparse: bool = False,
        pdata: Optional[pd.DataFrame] = None,
        has_context: bool = False,
    ) -> "BiscuitParams":
        """Build parameters for a table whose columns follow Biscuit naming.

        Sample "MCF7" is expected as columns "MCF7.beta" and "MCF7.covg"
        (followed by "MCF7.context" with has_context).
        Extra phenotype columns can be supplied through pdata, which must
        have one row per sample; its "sample_name" column is (re)set here.
        """
        sample_names = [str(s) for s in sample_names]
        if pdata is None:
            pdata = pd.DataFrame(index=range(len(sample_names)))
        else:
            if len(pdata) != len(sample_names):
                raise ValueError(
                    f"pdata has {len(pdata)} rows for {len(sample_names)} samples"
                )
            pdata = pdata.reset_index(drop=True)
        pdata = pdata.assign(sample_name=sample_names)

        return cls(
            beta_cols=[s + BETA_SUFFIX for s in sample_names],
            covg_cols=[s + COVG_SUFFIX for s in sample_names],
            pdata=pdata,
            how=how,
            fill_policy=(
                FillPolicy.SPARSE_ZERO_FILL if sparse else FillPolicy.DENSE_ZERO_FILL
            ),
            context_cols=(
                [s + CONTEXT_SUFFIX for s in sample_names] if has_context else []
            ),
        )


def sample_names_from_columns(columns: Sequence[str]) -> list[str]:
    """Recover sample names from "<name>.beta" column headers."""
    return [
        c[: -len(BETA_SUFFIX)]
        for c in (str(c).lstrip("#") for c in columns)
        if c.endswith(BETA_SUFFIX)
    ]
