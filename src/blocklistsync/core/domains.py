"""Domain name helpers."""

from __future__ import annotations


def generate_variants(domain: str) -> list[str]:
    """Generate the domain and its parent domains.

    "foo.bar.bad.com" yields itself, "bar.bad.com" and "bad.com" but
    never the bare last label "com". Splitting is literal: empty labels
    and trailing characters are kept as they are.

    Args:
        domain: Domain to expand.

    Returns:
        Variants from most to least specific, empty if there is no dot.
    """
    parts = domain.split(".")
    return [".".join(parts[i:]) for i in range(len(parts) - 1)]
