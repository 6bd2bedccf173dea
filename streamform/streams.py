from __future__ import annotations

import enum
import io
import logging
from collections.abc import Iterable, Iterator
from typing import BinaryIO

from .errors import PayloadLengthError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192


class Segment(enum.Enum):
    HEADER = "header"
    PAYLOAD = "payload"
    TRAILER = "trailer"
    DONE = "done"


class Payload:
    """
    A deferred payload: an unread byte source plus its declared length.

    `source` is either a binary file-like object (anything with ``read(n)``)
    or an iterable of ``bytes`` chunks. Nothing is read until `read` is
    called. When `owned` is true, `close` also closes the source.
    """

    def __init__(
        self,
        source: BinaryIO | Iterable[bytes],
        length: int,
        owned: bool = False,
    ) -> None:
        if isinstance(length, bool) or not isinstance(length, int):
            raise PayloadLengthError(f"Payload length must be an int, got {type(length).__name__}")
        if length < 0:
            raise PayloadLengthError(f"Payload length must not be negative, got {length}")
        self.source = source
        self.length = length
        self.owned = owned
        self.bytes_read = 0
        self._reader = getattr(source, "read", None)
        self._chunks: Iterator[bytes] | None = None
        self._pending = b""
        self._closed = False

    def read(self, size: int) -> bytes:
        """Return up to `size` bytes, or ``b""`` once the source is exhausted."""
        if self._pending:
            data, self._pending = self._pending[:size], self._pending[size:]
        elif self._reader is not None:
            data = self._reader(size) or b""
        else:
            data = self._next_chunk()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Payload source must produce bytes, got {type(data).__name__}")
        if len(data) > size:
            data, self._pending = data[:size], bytes(data[size:])
        self.bytes_read += len(data)
        return data

    def _next_chunk(self) -> bytes:
        if self._chunks is None:
            self._chunks = iter(self.source)  # type: ignore[arg-type]
        for chunk in self._chunks:
            if chunk:
                return chunk
        return b""

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.owned:
            close = getattr(self.source, "close", None)
            if close is not None:
                logger.debug("Closing owned payload source %r", self.source)
                close()

    def __repr__(self) -> str:
        return f"<Payload {self.length} bytes owned={self.owned}>"


class ComposedStream(io.RawIOBase):
    """
    Read-once stream over header buffer + deferred payload + trailer.

    The three segments are served strictly in order. Header and trailer come
    from memory; payload reads are forwarded to the source as they arrive, so
    at most one caller-sized chunk of the payload is held at a time. Reaching
    the end of the trailer or closing the stream releases an owned payload.

    With `verify_length` the payload is counted while it is drained and a
    PayloadLengthError is raised as soon as it disagrees with the declared
    length.
    """

    def __init__(
        self,
        header: bytes,
        payload: Payload | None,
        trailer: bytes,
        verify_length: bool = False,
    ) -> None:
        super().__init__()
        self._header = memoryview(header)
        self._payload = payload
        self._trailer = memoryview(trailer)
        self._verify_length = verify_length
        self._segment = Segment.HEADER
        self._offset = 0
        self._bytes_read = 0
        self._length = len(header) + len(trailer) + (payload.length if payload else 0)

    @property
    def segment(self) -> Segment:
        return self._segment

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def length(self) -> int:
        return self._length

    def __len__(self) -> int:
        return self._length

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        view = memoryview(b).cast("B")
        if not len(view):
            return 0
        while self._segment is not Segment.DONE:
            n = self._read_segment(view)
            if n:
                self._bytes_read += n
                return n
            self._advance()
        return 0

    def _read_segment(self, view: memoryview) -> int:
        if self._segment is Segment.PAYLOAD:
            assert self._payload is not None
            data = self._payload.read(len(view))
            n = len(data)
            view[:n] = data
            if self._verify_length and self._payload.bytes_read > self._payload.length:
                raise PayloadLengthError(
                    f"Payload produced more than the declared {self._payload.length} bytes"
                )
            return n

        source = self._header if self._segment is Segment.HEADER else self._trailer
        n = min(len(view), len(source) - self._offset)
        view[:n] = source[self._offset:self._offset + n]
        self._offset += n
        return n

    def _advance(self) -> None:
        if self._segment is Segment.HEADER:
            self._segment = Segment.PAYLOAD if self._payload is not None else Segment.TRAILER
        elif self._segment is Segment.PAYLOAD:
            assert self._payload is not None
            if self._verify_length and self._payload.bytes_read != self._payload.length:
                raise PayloadLengthError(
                    f"Payload ended after {self._payload.bytes_read} bytes, "
                    f"declared {self._payload.length}"
                )
            self._payload.close()
            self._segment = Segment.TRAILER
        else:
            self._segment = Segment.DONE
        self._offset = 0
        logger.debug("Composed stream entered %s segment", self._segment.value)

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """
        Iterate over the composed body in chunks.

        Args:
            chunk_size: Maximum size of each chunk (default: 8192)

        Yields:
            Bytes of the multipart body, in wire order
        """
        size = chunk_size or DEFAULT_CHUNK_SIZE
        while True:
            chunk = self.read(size)
            if not chunk:
                break
            yield chunk

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._payload is not None:
                self._payload.close()
        finally:
            super().close()

    def __repr__(self) -> str:
        return f"<ComposedStream {self._bytes_read}/{self._length} bytes segment={self._segment.value}>"
