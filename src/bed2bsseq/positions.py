"""Single-base genomic positions derived from BED coordinate columns."""

import re
from dataclasses import dataclass
from typing import Sequence

# Third party modules
import numpy as np

from bed2bsseq.exceptions import MalformedCoordinateError


# e.g. "chr1:12345-12345" or "chr1:12345"
POSITION_PATTERN = re.compile(r"^(?P<chrom>.+):(?P<start>\d+)(?:-(?P<end>\d+))?$")


@dataclass(frozen=True)
class GenomicPosition:
    """A width-1 genomic coordinate (strand-agnostic).

    The string form is "chrom:pos-pos", which from_string() parses back.
    """

    chrom: str
    pos: int

    def __str__(self) -> str:
        return f"{self.chrom}:{self.pos}-{self.pos}"

    @classmethod
    def from_string(cls, value: str) -> "GenomicPosition":
        """Parse "chr1:12345-12345" (or the short "chr1:12345") into a position.

        Raises
        -------
        ValueError
            If the string is not a width-1 position.
        """
        match = POSITION_PATTERN.match(value)
        if match is None:
            raise ValueError(f"Not a genomic position: {value!r}")
        start = int(match.group("start"))
        end = int(match.group("end") or start)
        if start != end:
            raise ValueError(f"Position is wider than one base: {value!r}")
        return cls(match.group("chrom"), start)


def _as_int_array(values: Sequence, name: str) -> np.ndarray:
    """Convert a coordinate column to int64, raising MalformedCoordinateError."""
    try:
        as_float = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedCoordinateError(
            f"Non-numeric values in '{name}' column"
        ) from exc

    bad_rows = np.flatnonzero(~np.isfinite(as_float) | (as_float != np.round(as_float)))
    if bad_rows.size > 0:
        raise MalformedCoordinateError(
            f"Missing or non-integral values in '{name}' column", row=int(bad_rows[0])
        )
    return as_float.astype(np.int64)


def make_positions(
    chrom: Sequence,
    start: Sequence,
    end: Sequence,
    fix: str = "end",
) -> tuple[GenomicPosition, ...]:
    """Collapse each (chrom, start, end) interval to a single base.

    Every interval is resized to width 1 anchored at its end (BED intervals
    are (start, end] in 1-based terms) or, with fix="start", at its start.
    Row i of the input is position i of the output; nothing is deduplicated.

    Args
    ----------
    chrom : Sequence
        Chromosome names, one per row.
    start : Sequence
        Interval starts.
    end : Sequence
        Interval ends.
    fix : str, optional
        Which end of the interval to keep: "end" (default) or "start".

    Returns
    -------
    tuple[GenomicPosition, ...]
        One position per input row, in row order.

    Raises
    -------
    MalformedCoordinateError
        If start/end are non-numeric, missing, or end < start.
    ValueError
        If fix is not "start" or "end".
    """
    if fix not in ("start", "end"):
        raise ValueError(f"fix must be 'start' or 'end', not {fix!r}")

    if not len(chrom) == len(start) == len(end):
        raise MalformedCoordinateError(
            f"Coordinate columns differ in length: chr={len(chrom)}, "
            f"start={len(start)}, end={len(end)}"
        )

    starts = _as_int_array(start, "start")
    ends = _as_int_array(end, "end")

    inverted = np.flatnonzero(ends < starts)
    if inverted.size > 0:
        row = int(inverted[0])
        raise MalformedCoordinateError(
            f"End ({ends[row]}) is before start ({starts[row]})", row=row
        )

    anchors = ends if fix == "end" else starts
    return tuple(
        GenomicPosition(str(ch), int(pos)) for ch, pos in zip(chrom, anchors)
    )
