import pytest
from rangeserve.output import OutputWriter


class RecordingWriter(OutputWriter):
    def __init__(self):
        self.calls = []

    def set_response_code(self, code):
        self.calls.append(('code', code))

    def send_header(self, name, value):
        self.calls.append(('header', name, value))

    def send_data(self, data):
        self.calls.append(('data', data))

    @property
    def code(self):
        codes = [c[1] for c in self.calls if c[0] == 'code']
        return codes[-1] if codes else None

    @property
    def headers(self):
        return {c[1]: c[2] for c in self.calls if c[0] == 'header'}

    @property
    def body(self):
        return b''.join(c[1] for c in self.calls if c[0] == 'data')


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def data():
    return bytes(i % 251 for i in range(1000))


@pytest.fixture
def data_file(tmp_path, data):
    path = tmp_path / 'data.bin'
    path.write_bytes(data)
    return path
