from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from typing import BinaryIO

from .boundary import (
    content_type_for,
    generate_boundary,
    render_disposition,
    render_trailer,
    validate_boundary,
)
from .buffer import HeaderBuffer
from .errors import PayloadLengthError, StreamerSealedError
from .headers import merge_part_headers
from .streams import ComposedStream, Payload

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
COPY_CHUNK_SIZE = 32 * 1024


class MultipartStreamer:
    """
    Build a multipart/form-data body around one large payload that is never
    loaded into memory.

    Small fields and parts are framed into an in-memory buffer as they are
    added. The large payload is only recorded (source and declared length)
    and is read when the stream returned by get_stream() is drained. The
    total body length is known up front, so the body can be sent with a
    Content-Length header instead of chunked encoding.

    Args:
        boundary: Explicit boundary token (validated against RFC 2046)
        boundary_factory: Callable producing a token when `boundary` is not
            given (default: uuid4 hex)
        verify_length: Count payload bytes while streaming and raise
            PayloadLengthError if they disagree with the declared length
    """

    def __init__(
        self,
        boundary: str | None = None,
        boundary_factory: Callable[[], str] | None = None,
        verify_length: bool = False,
    ) -> None:
        if boundary is None:
            boundary = (boundary_factory or generate_boundary)()
        self._boundary = validate_boundary(boundary)
        self._content_type = content_type_for(self._boundary)
        self._trailer = render_trailer(self._boundary)
        self._buffer = HeaderBuffer(self._boundary)
        self._payload: Payload | None = None
        self._payload_headers: list[tuple[str, str]] = []
        self._verify_length = verify_length
        self._stream: ComposedStream | None = None

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def trailer(self) -> bytes:
        return self._trailer

    @property
    def sealed(self) -> bool:
        return self._stream is not None

    @property
    def has_payload(self) -> bool:
        return self._payload is not None

    def _check_building(self) -> None:
        if self._stream is not None:
            raise StreamerSealedError("Streamer has already produced its stream")

    def add_field(self, name: str, value: str | bytes) -> None:
        """Add a small form field. The value is written as-is, without escaping."""
        self._check_building()
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._buffer.open_part(
            merge_part_headers([("Content-Disposition", render_disposition(name))], None)
        )
        self._buffer.write(value)

    def add_fields(self, fields: Mapping[str, str | bytes]) -> None:
        """
        Add several small form fields in mapping iteration order.
        Call add_field() directly when the wire order matters.
        """
        for name, value in fields.items():
            self.add_field(name, value)

    def add_part(
        self,
        name: str,
        content: bytes | str | BinaryIO | Iterable[bytes],
        headers: Mapping[str, object] | None = None,
    ) -> None:
        """
        Add a part with extra headers, copying all of `content` into memory.

        Only meant for small parts; use add_deferred_payload() for anything
        that should not be buffered.

        Args:
            name: Form field name
            content: bytes, str, binary file object or iterable of bytes chunks
            headers: Additional part headers, e.g. {"Content-Type": "application/json"}
        """
        self._check_building()
        part_headers = merge_part_headers(
            [("Content-Disposition", render_disposition(name))], headers
        )
        self._buffer.open_part(part_headers)
        if isinstance(content, str):
            self._buffer.write(content.encode("utf-8"))
        elif isinstance(content, (bytes, bytearray, memoryview)):
            self._buffer.write(bytes(content))
        elif hasattr(content, "read"):
            while True:
                chunk = content.read(COPY_CHUNK_SIZE)  # type: ignore[union-attr]
                if not chunk:
                    break
                self._buffer.write(chunk)
        else:
            for chunk in content:
                self._buffer.write(chunk)

    def add_deferred_payload(
        self,
        name: str,
        filename: str,
        length: int,
        source: BinaryIO | Iterable[bytes],
        headers: Mapping[str, object] | None = None,
        close_source: bool = False,
    ) -> None:
        """
        Register the large payload part without reading from `source`.

        Only one payload is kept: registering another replaces the previous
        one along with its part headers. The payload part is always emitted
        last, after every small field and part. `length` must equal the number
        of bytes `source` will produce; this is not checked unless the
        streamer was created with verify_length=True.

        Args:
            name: Form field name
            filename: Filename reported in Content-Disposition
            length: Declared payload size in bytes
            source: Binary file object or iterable of bytes chunks
            headers: Additional part headers
            close_source: Close `source` when the stream is done with it
        """
        self._check_building()
        payload = Payload(source, length, owned=close_source)
        part_headers = merge_part_headers(
            [("Content-Disposition", render_disposition(name, filename))], headers
        )
        self._set_payload(payload, part_headers)

    def add_reader_with_size(
        self,
        name: str,
        filename: str,
        length: int,
        source: BinaryIO | Iterable[bytes],
    ) -> None:
        """Register the payload with explicit Content-Type and Content-Length part headers."""
        self.add_deferred_payload(
            name,
            filename,
            length,
            source,
            headers={"Content-Type": DEFAULT_CONTENT_TYPE, "Content-Length": length},
        )

    def add_reader_with_headers(
        self,
        name: str,
        filename: str,
        source: BinaryIO | Iterable[bytes],
        headers: Mapping[str, object],
    ) -> None:
        """Register the payload, taking its declared length from the Content-Length header."""
        length = None
        for key, value in headers.items():
            if key.lower() == "content-length":
                length = value
        if length is None:
            raise PayloadLengthError("headers must include Content-Length")
        try:
            length = int(length)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            raise PayloadLengthError(f"Invalid Content-Length header: {length!r}") from None
        self.add_deferred_payload(name, filename, length, source, headers=headers)

    def add_file(self, name: str, path: str | os.PathLike[str], content_type: str | None = None) -> None:
        """
        Register a local file as the payload.

        The file is opened and its size taken now; its contents are read
        while streaming. The handle belongs to the streamer and is closed
        when the stream is closed or drained, when the payload is replaced,
        or when the streamer itself is closed.
        """
        self._check_building()
        fh = open(path, "rb")
        try:
            size = os.fstat(fh.fileno()).st_size
            self.add_deferred_payload(
                name,
                os.path.basename(os.fspath(path)),
                size,
                fh,
                headers={"Content-Type": content_type or DEFAULT_CONTENT_TYPE},
                close_source=True,
            )
        except BaseException:
            fh.close()
            raise

    def _set_payload(self, payload: Payload, headers: list[tuple[str, str]]) -> None:
        previous = self._payload
        self._payload = payload
        self._payload_headers = headers
        if previous is not None:
            logger.debug("Replacing deferred payload %r with %r", previous, payload)
            if previous.source is payload.source:
                payload.owned = payload.owned or previous.owned
            else:
                previous.close()
        else:
            logger.debug("Registered deferred payload %r", payload)

    def _payload_preamble(self) -> bytes:
        if self._payload is None:
            return b""
        return self._buffer.preamble(self._payload_headers)

    def total_length(self) -> int:
        """Size of the whole body in bytes, computed without reading the payload."""
        if self._stream is not None:
            return len(self._stream)
        payload_length = self._payload.length if self._payload is not None else 0
        return len(self._buffer) + len(self._payload_preamble()) + payload_length + len(self._trailer)

    def __len__(self) -> int:
        return self.total_length()

    def get_stream(self) -> ComposedStream:
        """
        Seal the streamer and return the read-once body stream.

        Can only be called once; later calls raise StreamerSealedError.
        """
        self._check_building()
        if self._payload is not None:
            self._buffer.open_part(self._payload_headers)
        header = self._buffer.seal()
        self._stream = ComposedStream(
            header, self._payload, self._trailer, verify_length=self._verify_length
        )
        logger.debug(
            "Sealed multipart body: %d header bytes, %d payload bytes, %d trailer bytes",
            len(header),
            self._payload.length if self._payload is not None else 0,
            len(self._trailer),
        )
        return self._stream

    def prepare_request(self, request):
        """
        Attach the body stream and its Content-Type/Content-Length to `request`.

        `request` needs a mutable `headers` mapping and settable `body` and
        `content_length` attributes, such as streamform.models.Request.
        """
        stream = self.get_stream()
        request.body = stream
        request.headers["Content-Type"] = self._content_type
        request.headers["Content-Length"] = str(len(stream))
        request.content_length = len(stream)
        return request

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
        elif self._payload is not None:
            self._payload.close()

    def __enter__(self) -> MultipartStreamer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "sealed" if self.sealed else "building"
        return (
            f"<MultipartStreamer boundary={self._boundary!r} parts={self._buffer.part_count} "
            f"payload={self._payload!r} {state}>"
        )
