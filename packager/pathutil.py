from __future__ import annotations

import os


def to_posix(p: str) -> str:
    """Convert host separators to forward slashes.

    Only ``os.sep`` is rewritten: on POSIX a backslash is an ordinary
    filename character and is kept as-is.
    """
    if os.sep != "/":
        return p.replace(os.sep, "/")
    return p


def relative_posix(root: str, path: str) -> str:
    """Return *path* relative to *root* using forward slashes."""
    return to_posix(os.path.relpath(path, start=root))


def norm_path(p: str) -> str:
    """Normalize an archive path to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Resolve '..' against preceding segments; a '..' that climbs above the
      root is kept so containment checks can see it
    """
    p = p.replace("\\", "/").strip("/")
    parts: list[str] = []
    for q in p.split("/"):
        if q in ("", "."):
            continue
        if q == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            else:
                parts.append(q)
            continue
        parts.append(q)
    return "/".join(parts)


def is_within(root: str, target: str) -> bool:
    """True when *target* equals *root* or lies beneath it (both canonical)."""
    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        # Different drives on Windows
        return False


def resolve_within(root: str, rel: str) -> str | None:
    """Join *rel* onto the canonical *root* and canonicalize the result.

    Returns the canonical candidate path, or None when it escapes *root*.
    Absolute entry paths and drive letters are joined as given, so they only
    pass when they already point inside *root*. Symlinks that exist on disk
    are followed by ``realpath``, so a link inside *root* pointing elsewhere
    is treated as an escape.
    """
    root_c = os.path.realpath(root)
    raw = rel.replace("\\", "/")
    if raw.startswith("/"):
        candidate = raw
    else:
        norm = norm_path(raw)
        if norm == ".." or norm.startswith("../"):
            return None
        candidate = os.path.join(root_c, norm) if norm else root_c
    candidate_c = os.path.realpath(candidate)
    if not is_within(root_c, candidate_c):
        return None
    return candidate_c
