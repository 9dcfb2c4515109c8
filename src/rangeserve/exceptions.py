# =============================================================================
# Imports
# =============================================================================
from typing import Optional


# =============================================================================
# Classes
# =============================================================================
class RangeServeError(Exception):
    pass


# Range algebra and header parsing.
class RangeError(RangeServeError):
    pass


class InvalidHeader(RangeError):
    """
    Raised when a Range header, or one of its range specifiers, fails to
    parse, or when the header carries more ranges than permitted.

    Attributes:

        position (int): The zero-based index of the offending range
            specifier, or None if the failure applies to the whole header.

    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class InvalidRange(RangeError):
    pass


class Unsatisfiable(RangeError):
    pass


class IncompatibleRanges(RangeError):
    pass


class LengthUnavailable(RangeError):
    pass


# Resource collaborators.
class ResourceError(RangeServeError):
    pass


class NonExistentFile(ResourceError):
    pass


class UnreadableFile(ResourceError):
    pass


class SendFileFailure(ResourceError):
    pass


# Output writers.
class OutputError(RangeServeError):
    pass


class HeadersAlreadySent(OutputError):
    pass

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
