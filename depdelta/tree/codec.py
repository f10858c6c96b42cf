"""Hierarchical code paths: dot-delimited, with parenthesized segments kept atomic.

A method code such as ``root.a.B.methods.m(java.lang.String)`` has five
segments; the dots inside the signature never split.
"""

from __future__ import annotations

SEPARATOR = "."

# Grouping segments injected between entities; never user-visible.
METHODS = "methods"
ADDED = "added"
DELETED = "deleted"
SYNTHETIC_SEGMENTS = frozenset({METHODS, ADDED, DELETED})


def segments(code: str) -> list[str]:
    """Split *code* on top-level dots.

    Tracks parenthesis nesting so that ``m(a.b(c.d))`` stays one segment.
    A stray closing parenthesis is kept as a literal character.
    """
    if not code:
        return []
    parts: list[str] = []
    current: list[str] = []
    nesting = 0
    for ch in code:
        if ch == "(":
            nesting += 1
        elif ch == ")" and nesting > 0:
            nesting -= 1
        elif ch == SEPARATOR and nesting == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def join(*parts: str) -> str:
    return SEPARATOR.join(p for p in parts if p)


def depth(code: str) -> int:
    """Number of top-level dot separators plus one (0 for an empty code)."""
    return len(segments(code))


def parent(code: str) -> str | None:
    """Code with its last top-level segment dropped, or None at the top."""
    parts = segments(code)
    if len(parts) < 2:
        return None
    return SEPARATOR.join(parts[:-1])


def ancestors(code: str) -> list[str]:
    """All proper ancestor codes, nearest first."""
    result: list[str] = []
    current = parent(code)
    while current is not None:
        result.append(current)
        current = parent(current)
    return result


def starts_with_segment(code: str, prefix: str) -> bool:
    """True iff *code* is *prefix* extended by exactly one top-level segment."""
    if not prefix:
        return depth(code) == 1
    if not code.startswith(prefix + SEPARATOR):
        return False
    return depth(code) == depth(prefix) + 1


def is_descendant(code: str, ancestor: str) -> bool:
    """True iff *code* strictly extends *ancestor* by whole segments."""
    if not ancestor:
        return bool(code)
    if not code.startswith(ancestor + SEPARATOR):
        return False
    return segments(code)[: depth(ancestor)] == segments(ancestor)


def last_segment(code: str) -> str:
    parts = segments(code)
    return parts[-1] if parts else ""


def is_synthetic(code: str) -> bool:
    """True if *code* names a grouping record (``...methods``, ``...added``)."""
    return last_segment(code) in SYNTHETIC_SEGMENTS


def visible_segments(code: str, root: str = "root") -> list[str]:
    """Segments a user sees: the root and synthetic segments removed."""
    parts = segments(code)
    if parts and parts[0] == root:
        parts = parts[1:]
    return [p for p in parts if p not in SYNTHETIC_SEGMENTS]


def is_well_formed(code: str) -> bool:
    """Balanced parentheses and no empty segments."""
    nesting = 0
    for ch in code:
        if ch == "(":
            nesting += 1
        elif ch == ")":
            nesting -= 1
            if nesting < 0:
                return False
    if nesting != 0:
        return False
    return bool(code) and all(segments(code))
