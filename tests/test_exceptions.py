import pytest
from bed2bsseq.exceptions import (
    Bed2BsseqError,
    DimensionMismatchError,
    MalformedCoordinateError,
    MissingValueResolutionError,
    NegativeCoverageError,
    SampleCountMismatchError,
)


@pytest.mark.parametrize(
    "error_class",
    [
        MalformedCoordinateError,
        DimensionMismatchError,
        SampleCountMismatchError,
        MissingValueResolutionError,
        NegativeCoverageError,
    ],
)
def test_errors_share_base_class(error_class) -> None:
    """All errors can be caught as Bed2BsseqError."""
    with pytest.raises(Bed2BsseqError, match="boom"):
        raise error_class("boom")


def test_malformed_coordinate_error_row() -> None:
    """Test that the offending row is reported."""
    assert str(MalformedCoordinateError("bad end", row=3)) == "bad end (row 3)"
    assert str(MalformedCoordinateError("bad end")) == "bad end"
    assert MalformedCoordinateError("bad end", row=3).row == 3
