"""Include/exclude glob resolution for directory collection.

Patterns are matched with ``wcmatch`` against POSIX-style paths relative to
the collection root, using ``GLOBSTAR`` and ``BRACE``:

- ``*`` and ``?`` never match ``/``; ``**`` as a whole segment matches zero
  or more directories; ``{a,b}`` alternatives may themselves contain ``/``
- include patterns do not match dot-files or dot-directories unless the
  pattern spells the dot out; exclude patterns add ``DOTGLOB`` so
  ``**/.git/**`` catches them
- an exclude pattern ending in ``/**`` also prunes the matching directory,
  so the walk never descends into it
"""

from __future__ import annotations

import os
from typing import Iterator, List, Optional, Sequence, Tuple

from wcmatch import glob as wglob

from .constants import DEFAULT_EXCLUDE, DEFAULT_INCLUDE
from .pathutil import relative_posix


INCLUDE_FLAGS = wglob.GLOBSTAR | wglob.BRACE
EXCLUDE_FLAGS = INCLUDE_FLAGS | wglob.DOTGLOB


def glob_match(rel: str, pattern: str, *, dot: bool = False) -> bool:
    """True when the relative POSIX path *rel* matches *pattern*."""
    return wglob.globmatch(rel, pattern, flags=EXCLUDE_FLAGS if dot else INCLUDE_FLAGS)


def _prune_pattern(pattern: str) -> Optional[str]:
    # "dir/**" prunes whatever "dir" matches; a bare "**" prunes everything
    p = pattern.rstrip("/")
    if p == "**":
        return p
    if p.endswith("/**"):
        return p[:-3]
    return None


class GlobSet:
    """A compiled include/exclude pair."""

    def __init__(self, include: Optional[Sequence[str]] = None, exclude: Optional[Sequence[str]] = None):
        self.include = list(DEFAULT_INCLUDE if include is None else include)
        self.exclude = list(DEFAULT_EXCLUDE if exclude is None else exclude)
        self._prune = [p for p in map(_prune_pattern, self.exclude) if p]

    def is_excluded(self, rel: str) -> bool:
        return bool(self.exclude) and wglob.globmatch(rel, self.exclude, flags=EXCLUDE_FLAGS)

    def is_pruned(self, rel_dir: str) -> bool:
        return bool(self._prune) and wglob.globmatch(rel_dir, self._prune, flags=EXCLUDE_FLAGS)

    def matches(self, rel: str) -> bool:
        if not self.include or not wglob.globmatch(rel, self.include, flags=INCLUDE_FLAGS):
            return False
        return not self.is_excluded(rel)


def iter_files(root: str, globs: GlobSet) -> Iterator[Tuple[str, str]]:
    """Yield ``(relative_posix_path, host_path)`` for matching files under *root*.

    Directories and files are visited in sorted order. The host path is the
    one to open; the relative path is only for matching and recording.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        kept = []
        for d in sorted(dirnames):
            if globs.is_pruned(relative_posix(root, os.path.join(dirpath, d))):
                continue
            kept.append(d)
        dirnames[:] = kept
        for fn in sorted(filenames):
            full = os.path.join(dirpath, fn)
            rel = relative_posix(root, full)
            if globs.matches(rel):
                yield rel, full


def list_files(
    root: str,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[str]:
    return [rel for rel, _full in iter_files(root, GlobSet(include, exclude))]
