from __future__ import annotations

import os
from typing import Callable, List, Optional, Tuple

from .errors import PathTraversalError
from .model import Archive, Entry
from .pathutil import resolve_within
from .reader import read_archive


def plan_extraction(archive: Archive, dest: str) -> List[Tuple[Entry, str]]:
    """Resolve every entry's destination under *dest* without writing anything.

    Raises PathTraversalError on the first entry whose canonical destination
    is not strictly beneath *dest*. Nothing is created on disk, so a rejected
    archive leaves the filesystem untouched.
    """
    root = os.path.realpath(dest)
    plan: List[Tuple[Entry, str]] = []
    for e in archive.entries:
        target = resolve_within(root, e.path)
        # The root itself is not a writable file location
        if target is None or target == root:
            raise PathTraversalError(e.path)
        plan.append((e, target))
    return plan


def extract_archive(
    archive: Archive,
    dest: str,
    *,
    progress: Optional[Callable[[int, int, Entry], None]] = None,
) -> List[str]:
    """Write every entry of *archive* beneath *dest* (created if missing).

    All destinations are validated before the first write. Existing files are
    overwritten; when two entries share a path the later one wins.

    Args:
        archive: Parsed archive to materialize.
        dest: Extraction root.
        progress: Optional callback ``(index, total, entry)`` invoked before
            each file is written.

    Returns:
        The written file paths, in entry order.
    """
    plan = plan_extraction(archive, dest)
    os.makedirs(dest, exist_ok=True)
    written: List[str] = []
    total = len(plan)
    for i, (e, target) in enumerate(plan, 1):
        if progress is not None:
            progress(i, total, e)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(e.data)
        written.append(target)
    return written


def unarchive_file(archive_path: str, dest: str, *, strict: bool = True) -> Archive:
    archive = read_archive(archive_path, strict=strict)
    extract_archive(archive, dest)
    return archive
