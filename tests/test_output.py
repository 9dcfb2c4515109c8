import io

import pytest
from rangeserve.exceptions import HeadersAlreadySent
from rangeserve.output import (
    FileOutputWriter,
    StreamOutputWriter,
)


def split_response(raw):
    (head, body) = raw.split(b'\r\n\r\n', 1)
    lines = head.decode().split('\r\n')
    headers = dict(line.split(': ', 1) for line in lines[1:])
    return (lines[0], headers, body)


def test_stream_writer_writes_head_before_data():
    stream = io.BytesIO()
    writer = StreamOutputWriter(stream)
    writer.set_response_code(206)
    writer.send_header('Content-Range', 'bytes 0-3/10')
    writer.send_data(b'abcd')
    writer.send_data(b'efg')

    (status, headers, body) = split_response(stream.getvalue())
    assert status == 'HTTP/1.1 206 Partial Content'
    assert headers['Content-Range'] == 'bytes 0-3/10'
    assert headers['Server'].startswith('rangeserve/')
    assert headers['Date'].endswith(' GMT')
    assert body == b'abcdefg'
    assert writer.bytes_sent == 7


def test_stream_writer_buffers_until_data():
    stream = io.BytesIO()
    writer = StreamOutputWriter(stream)
    writer.set_response_code(200)
    writer.send_header('Content-Length', '0')
    assert stream.getvalue() == b''
    writer.finish()
    (status, headers, body) = split_response(stream.getvalue())
    assert status == 'HTTP/1.1 200 OK'
    assert body == b''
    writer.finish()
    assert stream.getvalue().count(b'HTTP/1.1') == 1


def test_stream_writer_rejects_late_headers():
    writer = StreamOutputWriter(io.BytesIO())
    writer.send_data(b'x')
    with pytest.raises(HeadersAlreadySent):
        writer.send_header('X-Late', '1')
    with pytest.raises(HeadersAlreadySent):
        writer.set_response_code(500)


def test_file_output_writer(tmp_path):
    path = tmp_path / 'response.txt'
    with FileOutputWriter(str(path)) as writer:
        writer.set_response_code(200)
        writer.send_header('Content-Type', 'text/plain')
        writer.send_data(b'hello')
    (status, headers, body) = split_response(path.read_bytes())
    assert status == 'HTTP/1.1 200 OK'
    assert headers['Content-Type'] == 'text/plain'
    assert body == b'hello'


def test_file_output_writer_without_body(tmp_path):
    path = tmp_path / 'response.txt'
    with FileOutputWriter(str(path)) as writer:
        writer.set_response_code(200)
    assert path.read_bytes().startswith(b'HTTP/1.1 200 OK\r\n')
