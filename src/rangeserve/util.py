# =============================================================================
# Imports
# =============================================================================
import importlib
import logging
import mimetypes
import posixpath
import time
from typing import Optional

# =============================================================================
# Globals
# =============================================================================
DEFAULT_MIME_TYPE = 'application/octet-stream'

WEEKDAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

MONTH_NAMES = [
    None,
    'Jan',
    'Feb',
    'Mar',
    'Apr',
    'May',
    'Jun',
    'Jul',
    'Aug',
    'Sep',
    'Oct',
    'Nov',
    'Dec',
]

# =============================================================================
# Glue
# =============================================================================
if not mimetypes.inited:
    mimetypes.init()

extensions_map = mimetypes.types_map.copy()
extensions_map.update(
    {
        '': DEFAULT_MIME_TYPE,
        '.py': 'text/plain',
        '.c': 'text/plain',
        '.h': 'text/plain',
    }
)


# =============================================================================
# Context Managers
# =============================================================================
class ElapsedTimer:
    """
    Context manager and reusable timer to measure elapsed time.

    Example:
        timer = ElapsedTimer()
        with timer:
            servlet.send_resource(range_set, writer)
        logging.debug(f'Sent in {timer.elapsed:.3f} seconds.')
    """

    def __init__(self):
        self.start = None
        self._elapsed = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._elapsed = time.perf_counter() - self.start

    @property
    def elapsed(self):
        if self._elapsed is None:
            raise ValueError("Timer has not been used in a context yet.")
        return self._elapsed


# =============================================================================
# Helpers
# =============================================================================
def guess_type(path: str) -> str:
    """
    Guesses the MIME type of a file from its extension, falling back to
    `application/octet-stream`.
    """
    (_, ext) = posixpath.splitext(path)
    if ext in extensions_map:
        return extensions_map[ext]
    ext = ext.lower()
    if ext in extensions_map:
        return extensions_map[ext]
    return extensions_map['']


def date_time_string(timestamp: Optional[float] = None) -> str:
    """Return the date and time formatted for a message header."""
    if timestamp is None:
        timestamp = time.time()
    year, month, day, hh, mm, ss, wd, y, z = time.gmtime(timestamp)
    return "%s, %02d %3s %4d %02d:%02d:%02d GMT" % (
        WEEKDAY_NAMES[wd],
        day,
        MONTH_NAMES[month],
        year,
        hh,
        mm,
        ss,
    )


gmtime = date_time_string


def get_class_from_string(class_name: str) -> type:
    """
    Obtains a class object from its dotted name, e.g.
    `rangeserve.http.server.HttpServer`.

    Args:

        class_name (str): Supplies the fully-qualified name of the class.

    Returns:
        type: Returns the class object.

    Raises:
        ValueError: If `class_name` carries no module component.
        ModuleNotFoundError: If the module cannot be located.
        AttributeError: If the module has no such class.
    """
    (module_name, _, name) = class_name.rpartition('.')
    if not module_name:
        raise ValueError(f'Class name must include a module: {class_name}')

    timer = ElapsedTimer()
    with timer:
        module = importlib.import_module(module_name)
        cls = getattr(module, name)

    logging.info(f'Loaded {class_name} in {timer.elapsed:.4f} seconds.')
    return cls

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
