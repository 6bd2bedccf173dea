from __future__ import annotations

from collections.abc import Iterable

from .errors import StreamerSealedError


class HeaderBuffer:
    """
    Append-only buffer holding the small parts of a multipart body.

    The first part opens with ``--boundary``; later parts open with
    ``\\r\\n--boundary`` so the preceding part body is terminated by the
    delimiter itself. The trailer's leading CRLF closes the last part.
    Once sealed the contents are frozen into ``bytes``.
    """

    def __init__(self, boundary: str) -> None:
        self._delimiter = f"--{boundary}\r\n".encode("ascii")
        self._data = bytearray()
        self._parts = 0
        self._frozen: bytes | None = None

    def __len__(self) -> int:
        if self._frozen is not None:
            return len(self._frozen)
        return len(self._data)

    @property
    def part_count(self) -> int:
        return self._parts

    @property
    def sealed(self) -> bool:
        return self._frozen is not None

    def preamble(self, headers: Iterable[tuple[str, str]]) -> bytes:
        """Render the delimiter and header block the next part would get."""
        lines = [b"\r\n" + self._delimiter if self._parts else self._delimiter]
        for name, value in headers:
            lines.append(f"{name}: {value}\r\n".encode("utf-8"))
        lines.append(b"\r\n")
        return b"".join(lines)

    def open_part(self, headers: Iterable[tuple[str, str]]) -> int:
        """Write the framing for a new part and return the number of bytes written."""
        data = self.preamble(headers)
        self.write(data)
        self._parts += 1
        return len(data)

    def write(self, data: bytes) -> int:
        if self._frozen is not None:
            raise StreamerSealedError("Header buffer has been sealed")
        self._data += data
        return len(data)

    def seal(self) -> bytes:
        if self._frozen is None:
            self._frozen = bytes(self._data)
            self._data = bytearray()
        return self._frozen
