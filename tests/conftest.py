"""Pytest configuration and fixtures."""

import pytest

from streamform import MultipartStreamer


class RecordingSource:
    """
    Payload source that records where the composed stream was when it was read.

    Fails the test if it is read again after signalling end of data.
    """

    def __init__(self, data: bytes, stream_getter=None):
        self._data = data
        self._offset = 0
        self._stream_getter = stream_getter
        self.exhausted = False
        self.positions: list[int] = []
        self.sizes: list[int] = []
        self.closed = False

    def read(self, size: int) -> bytes:
        if self.exhausted:
            raise AssertionError("payload source read after end of data")
        if self._stream_getter is not None:
            self.positions.append(self._stream_getter().bytes_read)
        self.sizes.append(size)
        chunk = self._data[self._offset:self._offset + size]
        self._offset += len(chunk)
        if not chunk:
            self.exhausted = True
        return chunk

    def close(self):
        self.closed = True


class UnreadableSource:
    """Source that fails on any access; proves registration does not read."""

    def read(self, size):
        raise AssertionError("payload source was read")

    def __iter__(self):
        raise AssertionError("payload source was iterated")


@pytest.fixture
def streamer():
    """Streamer with the fixed boundary "X"."""
    return MultipartStreamer(boundary="X")


@pytest.fixture
def recording_source():
    """Factory for RecordingSource instances."""
    return RecordingSource


@pytest.fixture
def unreadable_source():
    return UnreadableSource()


@pytest.fixture
def payload_file(tmp_path):
    """A small file on disk to upload."""
    path = tmp_path / "report.bin"
    path.write_bytes(b"0123456789" * 10)
    return path
