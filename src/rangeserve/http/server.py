# ===============================================================================
# Imports
# ===============================================================================
import argparse
import asyncio
import html
import logging
import os
import re
import urllib.parse
from typing import Dict, Optional, Tuple

from rangeserve.exceptions import (
    InvalidHeader,
    InvalidRange,
    NonExistentFile,
    SendFileFailure,
    Unsatisfiable,
    UnreadableFile,
)
from rangeserve.headers import get_request_header
from rangeserve.http import (
    DEFAULT_ERROR_CONTENT_TYPE,
    DEFAULT_ERROR_MESSAGE,
    RESPONSES,
)
from rangeserve.output import StreamOutputWriter
from rangeserve.range import DEFAULT_MAX_RANGES, RangeSet
from rangeserve.resource import DEFAULT_CHUNK_SIZE, FileResource
from rangeserve.servlet import ResourceServlet
from rangeserve.util import ElapsedTimer, get_class_from_string

# ===============================================================================
# Aliases
# ===============================================================================
html_escape = html.escape
url_unquote = urllib.parse.unquote
url_split = urllib.parse.urlsplit

# ===============================================================================
# Globals
# ===============================================================================
REQUEST_LINE_REGEX = re.compile(
    r'(?P<command>[A-Z]+) (?P<target>\S+) HTTP/(?P<version>[0-9]\.[0-9])'
)

SUPPORTED_VERSIONS = ('1.0', '1.1')


# ===============================================================================
# Helpers
# ===============================================================================
def translate_path(path: str, root: str) -> str:
    """
    Maps the path component of a request target onto a file below `root`.
    Empty, '.' and '..' segments are discarded after percent-decoding, so
    the result never escapes `root`.
    """
    path = url_unquote(url_split(path).path)
    segments = [
        s for s in path.split('/')
        if s and s not in (os.curdir, os.pardir)
    ]
    return os.path.join(root, *segments)


def parse_request_head(data: bytes) -> Tuple[str, str, str, Dict[str, str]]:
    """
    Parses the request line and header block of an HTTP/1.x request.

    Returns:

        tuple: (command, target, version, headers), where `headers` maps
            lower-cased header names to stripped values.

    Raises:

        BadRequest: If the request line, the HTTP version or a header line
            is malformed.

    """
    (head, _, _) = data.partition(b'\r\n\r\n')
    lines = head.decode('latin-1').split('\r\n')

    match = REQUEST_LINE_REGEX.fullmatch(lines[0])
    if not match:
        raise BadRequest('Bad request line (%s)' % lines[0])

    version = match.group('version')
    if version not in SUPPORTED_VERSIONS:
        raise BadRequest('Unsupported HTTP version (%s)' % version)

    headers = {}
    for line in lines[1:]:
        if not line:
            continue
        (name, colon, value) = line.partition(':')
        name = name.strip()
        if not colon or not name:
            raise BadRequest('Malformed header line (%s)' % line)
        headers[name.lower()] = value.strip()

    return (match.group('command'), match.group('target'), version, headers)


# ===============================================================================
# Classes
# ===============================================================================
class BadRequest(Exception):
    pass


class Request:
    __slots__ = (
        'transport',
        'command',
        'path',
        'query',
        'headers',
        'keep_alive',
    )

    def __init__(self, transport):
        self.transport = transport
        self.command = None
        self.path = None
        self.query = {}
        self.headers = {}
        self.keep_alive = False

    def get_header(self, name: str) -> Optional[str]:
        """
        Header lookup handed to `RangeSet.from_request()`.  A `range` query
        parameter stands in for a missing Range header (handy when testing
        from a browser, where typing /foo?range=0-99 is easy).
        """
        value = get_request_header(self.headers, name)
        if value is None and name.lower() == 'range':
            value = self.query.get('range')
            if value is not None and '=' not in value:
                value = 'bytes=' + value
        return value


class HttpServer(asyncio.Protocol):
    """
    Serves files below a document root, honouring Range requests.

    Args:

        root (str): Optionally supplies the document root.  Defaults to the
            current working directory.

        max_ranges (int): Optionally supplies the maximum number of ranges
            accepted in a single Range header.

        chunk_size (int): Optionally supplies the size of each file read.

    """

    def __init__(
        self,
        root: Optional[str] = None,
        max_ranges: int = DEFAULT_MAX_RANGES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.root = root or os.getcwd()
        self.max_ranges = max_ranges
        self.chunk_size = chunk_size
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def data_received(self, data):
        if not data.strip():
            return
        request = Request(self.transport)
        self.process_new_request(request, data)

    def connection_lost(self, exc):
        if exc:
            logging.warning(f'Connection lost: {exc}')
        self.transport = None

    def process_new_request(self, request: Request, data: bytes) -> None:
        try:
            (command, target, version, headers) = parse_request_head(data)
        except BadRequest as e:
            return self.error(request, 400, str(e))

        parts = url_split(target)
        request.command = command
        request.path = parts.path
        request.query = dict(urllib.parse.parse_qsl(parts.query))
        request.headers = headers

        # HTTP/1.1 connections persist unless the client opts out; HTTP/1.0
        # connections only persist if the client asks for it.
        tokens = {
            t.strip().lower()
            for t in headers.get('connection', '').split(',')
        }
        if version == '1.1':
            request.keep_alive = 'close' not in tokens
        else:
            request.keep_alive = 'keep-alive' in tokens

        logging.debug("%s %s (HTTP/%s)", command, target, version)

        func = getattr(self, 'do_%s' % command, None)
        if func is None:
            msg = 'Unsupported method (%s)' % command
            return self.error(request, 501, msg)
        return func(request)

    def do_HEAD(self, request):
        return self.do_GET(request)

    def do_GET(self, request):
        path = translate_path(request.path, self.root)
        logging.debug("Translated path: %s", path)
        if os.path.isdir(path):
            index = os.path.join(path, 'index.html')
            if not os.path.isfile(index):
                msg = 'No index file in directory: %s' % request.path
                return self.error(request, 404, msg)
            path = index

        return self.sendfile(request, path)

    def sendfile(self, request: Request, path: str) -> None:
        """
        Sends a file to the client, in full or in the ranges requested.

        Args:

            request (Request): Supplies the request object.

            path (str): Supplies the path of the file to send.

        Errors:

            A malformed Range header results in a 400 response; a header
            none of whose ranges fit the file, or whose unit the file does
            not support, results in a 416 response with a
            `Content-Range: <unit> */<size>` header.  A missing file results
            in a 404 and an unreadable file in a 500.  If reading fails after
            the response headers have been written, the connection is closed.
        """
        try:
            range_set = RangeSet.from_request(
                request.get_header,
                self.max_ranges,
            )
        except (InvalidHeader, InvalidRange) as e:
            return self.error(request, 400, str(e))

        try:
            resource = FileResource(path, chunk_size=self.chunk_size)
        except NonExistentFile:
            msg = 'File not found: %s' % request.path
            return self.error(request, 404, msg)
        except UnreadableFile as e:
            return self.error(request, 500, str(e))

        writer = StreamOutputWriter(request.transport)
        if not request.keep_alive:
            writer.send_header('Connection', 'close')

        # HEAD requests get the headers a GET would, but no body.
        include_body = request.command != 'HEAD'

        servlet = ResourceServlet(resource)
        timer = ElapsedTimer()
        with resource:
            try:
                with timer:
                    ranges = servlet.send_resource(
                        range_set,
                        writer,
                        include_body=include_body,
                    )
            except Unsatisfiable as e:
                content_range = '%s */%d' % (
                    range_set.unit,
                    resource.get_length(),
                )
                headers = {'Content-Range': content_range}
                return self.error(request, 416, str(e), headers)
            except SendFileFailure as e:
                if not writer.headers_sent:
                    return self.error(request, 500, str(e))
                logging.error("Failed sending %s: %s", path, e)
                request.transport.close()
                return

        writer.finish()
        logging.debug(
            "Sent %s of %s (%d bytes) in %.4f seconds.",
            'all' if ranges is None else '%d range(s)' % len(ranges),
            path,
            writer.bytes_sent,
            timer.elapsed,
        )
        self.end_response(request)

    def error(
        self,
        request: Request,
        code: int,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        (phrase, explain) = RESPONSES[code]
        if not message:
            message = phrase

        logging.error("Error %d: %s", code, message)

        body = DEFAULT_ERROR_MESSAGE % {
            'code': code,
            'message': html_escape(message),
            'explain': explain,
        }
        body = body.encode('UTF-8', 'replace')

        writer = StreamOutputWriter(request.transport)
        writer.set_response_code(code)
        if not request.keep_alive:
            writer.send_header('Connection', 'close')
        writer.send_header('Content-Type', DEFAULT_ERROR_CONTENT_TYPE)
        writer.send_header('Content-Length', str(len(body)))
        for (name, value) in (headers or {}).items():
            writer.send_header(name, value)

        if request.command == 'HEAD':
            writer.finish()
        else:
            writer.send_data(body)

        self.end_response(request)

    def end_response(self, request: Request) -> None:
        if not request.keep_alive:
            logging.debug("Closing connection.")
            request.transport.close()
        else:
            logging.debug("Keeping connection alive.")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description='Serve files with HTTP range support.'
    )
    add = parser.add_argument
    add('--ip', default='0.0.0.0', help='Address to listen on.')
    add('--port', type=int, default=8888, help='Port to listen on.')
    add('--root', default=os.getcwd(), help='Directory to serve.')
    add(
        '--max-ranges',
        type=int,
        default=DEFAULT_MAX_RANGES,
        help='Ranges accepted in one Range header before answering 400.',
    )
    add(
        '--chunk-size',
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help='Bytes read from disk per write.',
    )
    add(
        '--log-level',
        default='CRITICAL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
    )
    add('--debug', action='store_true', help='Run asyncio in debug mode.')
    add(
        '--protocol-class',
        default='rangeserve.http.server.HttpServer',
        help='Dotted name of the asyncio protocol class to serve with.',
    )
    add('--listen-backlog', type=int, default=100)
    return parser.parse_args(argv)


async def serve(args: argparse.Namespace, protocol_class: type) -> None:
    """
    Listens on `args.ip`:`args.port`, creating one `protocol_class` instance
    per connection, until cancelled.
    """
    loop = asyncio.get_running_loop()
    server = await loop.create_server(
        lambda: protocol_class(args.root, args.max_ranges, args.chunk_size),
        args.ip,
        args.port,
        backlog=args.listen_backlog,
        reuse_address=True,
    )
    logging.info(
        'Serving %s on %s:%d (max ranges: %d).',
        args.root,
        args.ip,
        args.port,
        args.max_ranges,
    )
    async with server:
        await server.serve_forever()


def main(argv=None):
    """
    Main entry point for rangeserve.http.server module.
    """
    args = parse_arguments(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format=(
            '%(asctime)s - %(levelname)s - '
            '[thread: %(threadName)s/%(thread)d] - %(message)s '
        )
    )

    protocol_class = get_class_from_string(args.protocol_class)
    asyncio.run(serve(args, protocol_class), debug=args.debug)


if __name__ == '__main__':
    main()

# vim:set ts=8 sw=4 sts=4 tw=78 et                                             :
