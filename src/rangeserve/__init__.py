from rangeserve.exceptions import (
    HeadersAlreadySent,
    IncompatibleRanges,
    InvalidHeader,
    InvalidRange,
    LengthUnavailable,
    NonExistentFile,
    RangeError,
    RangeServeError,
    ResourceError,
    SendFileFailure,
    Unsatisfiable,
    UnreadableFile,
)
from rangeserve.headers import HeaderSet, get_request_header
from rangeserve.output import (
    FileOutputWriter,
    OutputWriter,
    StreamOutputWriter,
)
from rangeserve.range import DEFAULT_MAX_RANGES, Range, RangeSet
from rangeserve.resource import (
    BytesResource,
    FileResource,
    RangeUnitProvider,
    Resource,
)
from rangeserve.servlet import ResourceServlet

__version__ = '0.1.0'
