"""Tests for domain variant generation."""

from __future__ import annotations

import pytest

from blocklistsync.core.domains import generate_variants


@pytest.mark.parametrize(
    ("domain", "expected"),
    [
        pytest.param("example.com", ["example.com"], id="single"),
        pytest.param(
            "foo.bar.example.com",
            ["foo.bar.example.com", "bar.example.com", "example.com"],
            id="multiple",
        ),
        pytest.param(
            "foo.bar..example.com",
            ["foo.bar..example.com", "bar..example.com", ".example.com", "example.com"],
            id="consecutive-dots",
        ),
        pytest.param("foo", [], id="no-tld"),
        pytest.param("", [], id="empty"),
        pytest.param(
            "foo.example.com/",
            ["foo.example.com/", "example.com/"],
            id="trailing-slash",
        ),
    ],
)
def test_generate_variants(domain: str, expected: list[str]) -> None:
    """Variants should drop one leading label at a time, never the last label alone."""
    assert generate_variants(domain) == expected
