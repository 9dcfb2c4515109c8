# =============================================================================
# Imports
# =============================================================================
import email.utils
import logging
import os
import re
from typing import Dict, Iterable, List, Mapping, Optional

from rangeserve.exceptions import (
    NonExistentFile,
    SendFileFailure,
    Unsatisfiable,
    UnreadableFile,
)
from rangeserve.output import OutputWriter
from rangeserve.range import Range
from rangeserve.util import DEFAULT_MIME_TYPE, date_time_string, guess_type

# =============================================================================
# Aliases
# =============================================================================
basename = os.path.basename
email_quote = email.utils.quote

# =============================================================================
# Globals
# =============================================================================
DEFAULT_CHUNK_SIZE = 8192

CONTROL_CHARS_REGEX = re.compile(r"[\x00-\x1f\x7f]")


# =============================================================================
# Classes
# =============================================================================
class Resource:
    """
    A byte-addressable entity that can be served in whole or in ranges.
    """

    def get_length(self) -> int:
        raise NotImplementedError

    def get_mime_type(self) -> str:
        raise NotImplementedError

    def get_additional_headers(self) -> Dict[str, str]:
        return {}

    def send_data(
        self,
        output_writer: OutputWriter,
        range: Optional[Range] = None,
        unit: Optional[str] = None,
    ) -> None:
        """
        Writes the whole resource, or exactly the bytes described by a
        normalized `range`, to `output_writer`.

        Raises:

            Unsatisfiable: If `unit` is not a unit this resource can serve.

        """
        raise NotImplementedError


class RangeUnitProvider(Resource):
    """
    A resource that declares which range units it supports.  An empty list
    means the resource does not accept ranged requests.
    """

    def get_range_units(self) -> List[str]:
        raise NotImplementedError


class FileResource(RangeUnitProvider):
    """
    A file on the local file system.

    The file is opened by the first call to `send_data()` and the same handle
    is re-positioned for subsequent ranges.  Use the resource as a context
    manager (or call `close()`) to release the handle.

    Args:

        path (str): Supplies the path of the file.

        mime_type (str): Optionally supplies the MIME type of the file's
            contents.  If omitted, it is guessed from the file extension.

        chunk_size (int): Optionally supplies the size of each read from the
            file while sending.

    Raises:

        NonExistentFile: If `path` does not exist or is not a regular file.

        UnreadableFile: If the size of the file cannot be determined.

    """

    def __init__(
        self,
        path: str,
        mime_type: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.chunk_size = chunk_size
        self.local_path = os.path.realpath(path)
        self._handle = None

        if not os.path.isfile(self.local_path):
            raise NonExistentFile(
                f"Local path '{path}' does not exist or is not a file"
            )

        try:
            st = os.stat(self.local_path)
        except OSError as e:
            raise UnreadableFile(
                f"Failed to retrieve size of file '{self.local_path}': {e}"
            ) from e

        self.file_size = st.st_size
        self.last_modified = date_time_string(st.st_mtime)
        self.mime_type = mime_type or guess_type(self.local_path)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f'Chunk size must be positive: {value}')
        self._chunk_size = value

    def _open(self, position: int) -> None:
        if self._handle is None:
            try:
                self._handle = open(self.local_path, 'rb')
            except OSError as e:
                raise SendFileFailure(
                    f"Failed to open '{self.local_path}' for reading: {e}"
                ) from e
            logging.debug("Opened %s for reading.", self.local_path)

        try:
            self._handle.seek(position, os.SEEK_SET)
        except OSError as e:
            raise SendFileFailure(f'Seek to {position} failed: {e}') from e

    def _send_chunk(self, output_writer: OutputWriter, length: int) -> int:
        try:
            data = self._handle.read(min(length, self._chunk_size))
        except OSError as e:
            raise SendFileFailure(f'Read failed: {e}') from e

        if not data:
            raise SendFileFailure(
                f"Unexpected end of file '{self.local_path}' "
                f"({length} byte(s) outstanding)"
            )

        output_writer.send_data(data)
        return len(data)

    def send_data(
        self,
        output_writer: OutputWriter,
        range: Optional[Range] = None,
        unit: Optional[str] = None,
    ) -> None:
        if (unit or 'bytes').lower() != 'bytes':
            raise Unsatisfiable(f'Unit not handled by this resource: {unit}')

        start = 0
        length = self.file_size
        if range is not None:
            start = range.start
            length = range.length

        self._open(start)
        logging.debug(
            "Sending %d byte(s) of %s from offset %d.",
            length,
            self.local_path,
            start,
        )

        while length > 0:
            length -= self._send_chunk(output_writer, length)

    def get_length(self) -> int:
        return self.file_size

    def get_mime_type(self) -> str:
        return self.mime_type

    def get_additional_headers(self) -> Dict[str, str]:
        filename = quote_filename(basename(self.local_path))
        return {
            'Content-Disposition': f'attachment; filename={filename}',
            'Last-Modified': self.last_modified,
        }

    def get_range_units(self) -> List[str]:
        return ['bytes']

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logging.debug("Closed %s.", self.local_path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        return '<FileResource %s (%d bytes)>' % (
            self.local_path,
            self.file_size,
        )


class BytesResource(RangeUnitProvider):
    """
    An in-memory resource.
    """

    def __init__(
        self,
        data: bytes,
        mime_type: str = DEFAULT_MIME_TYPE,
        headers: Optional[Mapping[str, str]] = None,
        range_units: Iterable[str] = ('bytes',),
    ):
        self.data = bytes(data)
        self.mime_type = mime_type
        self.headers = dict(headers or {})
        self.range_units = list(range_units)

    def send_data(
        self,
        output_writer: OutputWriter,
        range: Optional[Range] = None,
        unit: Optional[str] = None,
    ) -> None:
        if unit is not None and unit.lower() not in (
            u.lower() for u in self.range_units
        ):
            raise Unsatisfiable(f'Unit not handled by this resource: {unit}')

        if range is None:
            output_writer.send_data(self.data)
        else:
            output_writer.send_data(self.data[range.start:range.end + 1])

    def get_length(self) -> int:
        return len(self.data)

    def get_mime_type(self) -> str:
        return self.mime_type

    def get_additional_headers(self) -> Dict[str, str]:
        return dict(self.headers)

    def get_range_units(self) -> List[str]:
        return list(self.range_units)


# =============================================================================
# Helpers
# =============================================================================
def quote_filename(name: str) -> str:
    """
    Returns `name` as an RFC 7230 quoted-string for use in a
    Content-Disposition header: control characters are dropped, and
    backslashes and double quotes are escaped.
    """
    name = CONTROL_CHARS_REGEX.sub('', name)
    return '"%s"' % email_quote(name)

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
