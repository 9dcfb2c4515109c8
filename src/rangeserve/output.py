# =============================================================================
# Imports
# =============================================================================
import logging
import sys
from typing import BinaryIO, List, Optional, Tuple

from rangeserve.exceptions import HeadersAlreadySent
from rangeserve.http import DEFAULT_SERVER_RESPONSE, RESPONSES
from rangeserve.util import gmtime


# =============================================================================
# Classes
# =============================================================================
class OutputWriter:
    """
    Response sink.  Each operation is synchronous and applied to the
    underlying transport in call order.
    """

    def set_response_code(self, code: int) -> None:
        raise NotImplementedError

    def send_header(self, name: str, value: str) -> None:
        raise NotImplementedError

    def send_data(self, data: bytes) -> None:
        raise NotImplementedError


class StreamOutputWriter(OutputWriter):
    """
    Writes a raw HTTP/1.1 response to anything with a `write(bytes)` method:
    an asyncio transport, a file opened in binary mode, or standard output
    when no stream is supplied.

    The status line and headers are buffered until the first chunk of data is
    sent, or until `finish()` is called for a response without a body.
    """

    def __init__(
        self,
        stream: Optional[BinaryIO] = None,
        server: str = DEFAULT_SERVER_RESPONSE,
    ):
        if stream is None:
            stream = sys.stdout.buffer
        self.stream = stream
        self.server = server
        self.code = 200
        self.headers: List[Tuple[str, str]] = []
        self.headers_sent = False
        self.bytes_sent = 0

    def _check_headers_not_sent(self):
        if self.headers_sent:
            raise HeadersAlreadySent(
                'Response headers have already been written'
            )

    def set_response_code(self, code: int) -> None:
        self._check_headers_not_sent()
        self.code = code

    def send_header(self, name: str, value: str) -> None:
        self._check_headers_not_sent()
        self.headers.append((name, value))

    def _write_head(self) -> None:
        message = RESPONSES.get(self.code, ('Unknown',))[0]
        lines = [
            'HTTP/1.1 %d %s' % (self.code, message),
            'Server: %s' % self.server,
            'Date: %s' % gmtime(),
        ]
        lines.extend('%s: %s' % header for header in self.headers)
        head = '\r\n'.join(lines) + '\r\n\r\n'
        self.stream.write(head.encode('UTF-8', 'replace'))
        self.headers_sent = True
        logging.debug(
            "Wrote response head: %d %s (%d header(s)).",
            self.code,
            message,
            len(self.headers),
        )

    def send_data(self, data: bytes) -> None:
        if not self.headers_sent:
            self._write_head()
        if data:
            self.stream.write(data)
            self.bytes_sent += len(data)

    def finish(self) -> None:
        if not self.headers_sent:
            self._write_head()


class FileOutputWriter(StreamOutputWriter):
    """
    Writes the response to a local file; handy for inspecting exactly what
    would be put on the wire.

    Example:
        with FileOutputWriter('/tmp/response.txt') as writer:
            servlet.send_resource(range_set, writer)
    """

    def __init__(self, path: str, server: str = DEFAULT_SERVER_RESPONSE):
        self.path = path
        super().__init__(open(path, 'wb'), server)

    def close(self) -> None:
        if not self.stream.closed:
            self.finish()
            self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
