"""Table backends: column slicing for pandas and polars data frames.

Both backends hand the rest of the package plain numpy arrays, so the count
arithmetic never needs to know which data frame library produced the table.
Missing values ("." in a Biscuit BED, NaN/None/null in memory) always come
back as NaN.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

# Third party modules
import numpy as np
import pandas as pd
import polars as pl


class TableBackend(ABC):
    """Column access for one kind of in-memory table."""

    name: str = ""

    @abstractmethod
    def column_names(self, table: Any) -> list[str]:
        """Return the table's column names, in order."""

    @abstractmethod
    def get_column(self, table: Any, name: str) -> np.ndarray:
        """Return one column as a 1-D numpy array (values untouched)."""

    @abstractmethod
    def slice_columns(self, table: Any, names: Sequence[str]) -> np.ndarray:
        """Return the named columns as a float64 matrix of shape (rows, len(names))."""

    def check_columns(self, table: Any, names: Sequence[str]) -> None:
        """Raise KeyError naming any column missing from the table."""
        present = set(self.column_names(table))
        missing = [n for n in names if n not in present]
        if missing:
            raise KeyError(f"Columns not found in {self.name} table: {missing}")


class PandasBackend(TableBackend):
    """pandas.DataFrame tables (as read by pandas.read_csv)."""

    name = "pandas"

    def column_names(self, table: pd.DataFrame) -> list[str]:
        return [str(c) for c in table.columns]

    def get_column(self, table: pd.DataFrame, name: str) -> np.ndarray:
        self.check_columns(table, [name])
        return table[name].to_numpy()

    def slice_columns(self, table: pd.DataFrame, names: Sequence[str]) -> np.ndarray:
        names = list(names)
        self.check_columns(table, names)
        # Coerce first: nullable dtypes and "." strings both end up as NaN
        sliced = table.loc[:, names].apply(pd.to_numeric, errors="coerce")
        values = sliced.to_numpy(dtype=np.float64, na_value=np.nan)
        return values.reshape(len(table), len(names))


class PolarsBackend(TableBackend):
    """polars.DataFrame tables (as read by polars.read_csv)."""

    name = "polars"

    def column_names(self, table: pl.DataFrame) -> list[str]:
        return list(table.columns)

    def get_column(self, table: pl.DataFrame, name: str) -> np.ndarray:
        self.check_columns(table, [name])
        return table.get_column(name).to_numpy()

    def slice_columns(self, table: pl.DataFrame, names: Sequence[str]) -> np.ndarray:
        names = list(names)
        self.check_columns(table, names)
        if not names:
            return np.empty((table.height, 0), dtype=np.float64)
        sliced = table.select(
            [pl.col(n).cast(pl.Float64, strict=False).fill_nan(None) for n in names]
        )
        values = sliced.to_numpy().astype(np.float64)
        return values.reshape(table.height, len(names))


BACKENDS: dict[str, TableBackend] = {
    backend.name: backend for backend in (PandasBackend(), PolarsBackend())
}


def get_backend(how: str) -> TableBackend:
    """Look up a backend by its tag ("pandas" or "polars").

    Raises
    -------
    ValueError
        If the tag is unknown.
    """
    try:
        return BACKENDS[how]
    except KeyError as exc:
        raise ValueError(
            f"Unknown table backend {how!r}, expected one of {sorted(BACKENDS)}"
        ) from exc


def backend_for_table(table: Any) -> TableBackend:
    """Pick the backend matching a table's type."""
    if isinstance(table, pl.DataFrame):
        return BACKENDS["polars"]
    if isinstance(table, pd.DataFrame):
        return BACKENDS["pandas"]
    raise TypeError(f"Unsupported table type: {type(table).__name__}")
