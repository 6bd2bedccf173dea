from __future__ import annotations

from typing import BinaryIO


class Request:
    """
    Outbound HTTP request handed to a transport.

    Headers keep insertion order; `body` may be bytes or a readable binary
    stream such as the one produced by MultipartStreamer.get_stream().
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes | BinaryIO | None = None,
        content_length: int | None = None,
    ) -> None:
        self.method = method.upper()
        self.url = url
        self.headers: dict[str, str] = dict(headers or {})
        self.body = body
        self.content_length = content_length

    @property
    def raw_headers(self) -> list[tuple[str, str]]:
        return list(self.headers.items())

    def __repr__(self) -> str:
        return f"<Request [{self.method}] {self.url}>"
