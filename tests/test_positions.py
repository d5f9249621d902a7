import pytest
from bed2bsseq.exceptions import MalformedCoordinateError
from bed2bsseq.positions import GenomicPosition, make_positions


def test_make_positions_end_anchored() -> None:
    """Test that intervals collapse onto their end base, in row order."""

    positions = make_positions(
        ["chr1", "chr1", "chr2"], [100, 200, 50], [101, 201, 51]
    )

    assert positions == (
        GenomicPosition("chr1", 101),
        GenomicPosition("chr1", 201),
        GenomicPosition("chr2", 51),
    )


def test_make_positions_start_anchored() -> None:
    """Test fix='start'."""

    positions = make_positions(["chr1"], [100], [101], fix="start")
    assert positions == (GenomicPosition("chr1", 100),)


def test_make_positions_keeps_duplicates() -> None:
    """Rows map 1:1 onto positions, so repeated rows are not merged."""

    positions = make_positions(["chr1", "chr1"], [100, 100], [101, 101])
    assert len(positions) == 2
    assert positions[0] == positions[1]


def test_make_positions_float_coordinates() -> None:
    """Integral floats (e.g. from a column with missing values) are accepted."""

    positions = make_positions(["chr1"], [100.0], [101.0])
    assert positions[0].pos == 101
    assert isinstance(positions[0].pos, int)


def test_make_positions_inverted_interval() -> None:
    """Test that end < start raises MalformedCoordinateError."""
    with pytest.raises(MalformedCoordinateError, match=r"before start.*row 1"):
        make_positions(["chr1", "chr1"], [100, 300], [101, 200])


def test_make_positions_non_numeric() -> None:
    """Test that non-numeric coordinates raise MalformedCoordinateError."""
    with pytest.raises(MalformedCoordinateError, match="Non-numeric"):
        make_positions(["chr1"], ["abc"], [101])


def test_make_positions_missing_coordinate() -> None:
    """Test that a missing end raises MalformedCoordinateError."""
    with pytest.raises(MalformedCoordinateError, match="'end'"):
        make_positions(["chr1", "chr1"], [100, 200], [101, None])


def test_make_positions_length_mismatch() -> None:
    """Test that columns of different length raise MalformedCoordinateError."""
    with pytest.raises(MalformedCoordinateError, match="differ in length"):
        make_positions(["chr1"], [100, 200], [101, 201])


def test_make_positions_invalid_fix() -> None:
    """Test that an unknown anchor raises ValueError."""
    with pytest.raises(ValueError, match="fix must be"):
        make_positions(["chr1"], [100], [101], fix="middle")


def test_genomic_position_string_round_trip() -> None:
    """Test str() and from_string()."""

    position = GenomicPosition("chr1", 12345)
    assert str(position) == "chr1:12345-12345"
    assert GenomicPosition.from_string(str(position)) == position
    assert GenomicPosition.from_string("chr1:12345") == position
    # Contig names may themselves contain colons
    assert GenomicPosition.from_string("HLA:A*01:5-5") == GenomicPosition("HLA:A*01", 5)


def test_genomic_position_from_string_invalid() -> None:
    """Test that wide or malformed strings raise ValueError."""
    with pytest.raises(ValueError, match="wider than one base"):
        GenomicPosition.from_string("chr1:100-200")
    with pytest.raises(ValueError, match="Not a genomic position"):
        GenomicPosition.from_string("chr1")
