from __future__ import annotations

from collections.abc import Iterable, Mapping

PART_HEADER_ORDER = ("Content-Disposition", "Content-Type", "Content-Length")

_UNSAFE = str.maketrans("", "", "\r\n\x00")


def _sanitize_header(name: str, value: str) -> tuple[str, str]:
    """Drop CR, LF and NUL, which would otherwise end the header line early."""
    return name.translate(_UNSAFE), value.translate(_UNSAFE)


def canonical_name(name: str) -> str:
    """Canonical MIME header form: ``content-type`` becomes ``Content-Type``."""
    return "-".join(word.capitalize() for word in name.strip().split("-"))


def merge_part_headers(
    default_headers: Iterable[tuple[str, object]],
    user_headers: Mapping[str, object] | None,
    order: Iterable[str] = PART_HEADER_ORDER,
) -> list[tuple[str, str]]:
    """
    Header block for one part: caller headers replace defaults of the same
    name (ignoring case). Names listed in `order` lead; the rest follow in
    the order they were first given.
    """
    by_key: dict[str, tuple[str, str]] = {}
    pairs = list(default_headers) + list((user_headers or {}).items())
    for raw_name, raw_value in pairs:
        name, value = _sanitize_header(canonical_name(raw_name), str(raw_value))
        by_key[name.lower()] = (name, value)

    leading = [by_key.pop(name.lower()) for name in order if name.lower() in by_key]
    return leading + list(by_key.values())
