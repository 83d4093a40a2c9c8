"""Helpers for colon-delimited permission codes.

Format: ``{kind}:{path...}``, e.g. ``menu:nodes:backends``. The first
segment is the kind discriminator; the rest is the permission's path in
the conceptual hierarchy.
"""

from __future__ import annotations

from typing import Optional

SEPARATOR = ":"


def split_code(code: Optional[str]) -> list[str]:
    """Split a code into its segments (empty list for an empty code)."""
    if not code:
        return []
    return code.split(SEPARATOR)


def menu_path(code: Optional[str]) -> Optional[str]:
    """Strip the kind segment from a code.

    Example::

        menu_path("menu:nodes:backends")  # "nodes:backends"
        menu_path("api:clusters:list")    # "clusters:list"
        menu_path("dashboard")            # "dashboard"
        menu_path("")                     # None
    """
    if not code:
        return None
    kind, sep, rest = code.partition(SEPARATOR)
    if not sep:
        return code
    return rest


def parent_code(code: Optional[str]) -> Optional[str]:
    """Return the code of the structural parent, if the code has one.

    Only codes with at least three segments have a parent: ``menu:nodes``
    is a top-level menu, ``menu:nodes:backends`` sits under ``menu:nodes``.
    """
    parts = split_code(code)
    if len(parts) <= 2:
        return None
    return SEPARATOR.join(parts[:-1])


__all__ = [
    "SEPARATOR",
    "menu_path",
    "parent_code",
    "split_code",
]
