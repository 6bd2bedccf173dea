"""Tests for streamform.headers module."""

from streamform.headers import _sanitize_header, canonical_name, merge_part_headers


class TestMergePartHeaders:
    """Tests for merge_part_headers function."""

    def test_default_order(self):
        """Test disposition, type and length come first in that order."""
        merged = merge_part_headers(
            [("Content-Disposition", 'form-data; name="f"')],
            {"X-Extra": "1", "Content-Length": 5, "Content-Type": "text/plain"},
        )
        assert merged == [
            ("Content-Disposition", 'form-data; name="f"'),
            ("Content-Type", "text/plain"),
            ("Content-Length", "5"),
            ("X-Extra", "1"),
        ]

    def test_no_user_headers(self):
        """Test defaults pass through when no user headers are given."""
        merged = merge_part_headers([("Content-Disposition", "form-data")], None)
        assert merged == [("Content-Disposition", "form-data")]

    def test_case_insensitive_override(self):
        """Test user headers replace defaults case-insensitively."""
        merged = merge_part_headers(
            [("Content-Type", "application/octet-stream")],
            {"content-type": "image/png"},
        )
        assert merged == [("Content-Type", "image/png")]

    def test_unknown_headers_keep_insertion_order(self):
        """Test headers outside the fixed order keep user order."""
        merged = merge_part_headers([], {"X-B": "2", "X-A": "1"})
        assert merged == [("X-B", "2"), ("X-A", "1")]

    def test_custom_order(self):
        """Test an explicit order list is respected."""
        merged = merge_part_headers([("A", "1"), ("B", "2")], None, order=["B"])
        assert merged == [("B", "2"), ("A", "1")]

    def test_values_are_sanitized(self):
        """Test CRLF injection in values is stripped."""
        merged = merge_part_headers([], {"X-Evil": "a\r\nContent-Type: evil"})
        assert merged == [("X-Evil", "aContent-Type: evil")]


class TestCanonicalName:
    """Tests for canonical_name function."""

    def test_lowercase(self):
        assert canonical_name("content-type") == "Content-Type"

    def test_uppercase(self):
        assert canonical_name("CONTENT-LENGTH") == "Content-Length"

    def test_single_word(self):
        assert canonical_name("etag") == "Etag"

    def test_strips_whitespace(self):
        assert canonical_name(" x-custom ") == "X-Custom"


class TestSanitizeHeader:
    """Tests for _sanitize_header function."""

    def test_removes_crlf_and_nul(self):
        """Test CR, LF and NUL are removed from name and value."""
        name, value = _sanitize_header("X-\r\nTest\x00", "v\r\na\x00l")
        assert name == "X-Test"
        assert value == "val"

    def test_clean_values_unchanged(self):
        """Test clean values pass through unchanged."""
        assert _sanitize_header("X-Test", "value") == ("X-Test", "value")
