"""
Error taxonomy for elevation decoding.

Fatal errors derive from DecodeError (a ValueError) so that callers which
already guard decode calls with ``except ValueError`` keep working.
Degraded recovery is not an error: it is reported as a warning and the
decode continues.
"""


class DecodeError(ValueError):
    """Base class for fatal decode failures."""

    pass


class StructuralError(DecodeError):
    """Raised when a signature or header cannot be read."""

    pass


class UnsupportedFormatError(DecodeError):
    """Raised for recognized formats that have no decoder.

    Attributes:
        descriptor: FormatDescriptor of the rejected file
        guidance: Conversion hint for the user
    """

    def __init__(self, message, descriptor=None):
        super().__init__(message)
        self.descriptor = descriptor
        self.guidance = descriptor.guidance_text if descriptor is not None else ""


class EmptyDatasetError(DecodeError):
    """Raised when parsing yields zero usable samples."""

    pass


class DegradedRecoveryWarning(UserWarning):
    """Emitted when grid dimensions had to be inferred from the data."""

    pass
