from __future__ import annotations

import string
import uuid

from .errors import BoundaryError

# RFC 2046 bchars, minus the trailing-space rule checked separately.
_BCHARS = frozenset(string.ascii_letters + string.digits + "'()+_,-./:=? ")
MAX_BOUNDARY_LENGTH = 70


def generate_boundary() -> str:
    return uuid.uuid4().hex


def validate_boundary(boundary: str) -> str:
    """
    Check a boundary token against RFC 2046 and return it unchanged.
    Raises BoundaryError for empty, over-long or badly formed tokens.
    """
    if not boundary or len(boundary) > MAX_BOUNDARY_LENGTH:
        raise BoundaryError(
            f"Boundary must be 1-{MAX_BOUNDARY_LENGTH} characters, got {len(boundary)}"
        )
    bad = set(boundary) - _BCHARS
    if bad:
        raise BoundaryError(f"Invalid characters in boundary: {''.join(sorted(bad))!r}")
    if boundary.endswith(" "):
        raise BoundaryError("Boundary must not end with a space")
    return boundary


def escape_quotes(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def content_type_for(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def render_trailer(boundary: str) -> bytes:
    return f"\r\n--{boundary}--\r\n".encode("ascii")


def render_disposition(name: str, filename: str | None = None) -> str:
    value = f'form-data; name="{escape_quotes(name)}"'
    if filename is not None:
        value += f'; filename="{escape_quotes(filename)}"'
    return value
