"""Custom exceptions for bed2bsseq."""


class Bed2BsseqError(Exception):
    """Base exception for all bed2bsseq errors."""

    pass


class MalformedCoordinateError(Bed2BsseqError):
    """Start/end coordinates are missing, non-numeric or inverted."""

    def __init__(self, message, row=None):
        super().__init__(message)
        self.row = row

    def __str__(self):
        msg = super().__str__()
        if self.row is not None:
            msg += f" (row {self.row})"
        return msg


class DimensionMismatchError(Bed2BsseqError):
    """The number of beta columns differs from the number of coverage columns."""

    pass


class SampleCountMismatchError(Bed2BsseqError):
    """The sample metadata does not describe every matrix column."""

    pass


class MissingValueResolutionError(Bed2BsseqError):
    """A missing value survived the fill step."""

    pass


class NegativeCoverageError(Bed2BsseqError):
    """A coverage column holds a negative read count."""

    pass
