from __future__ import annotations

import concurrent.futures as _fut
import mimetypes
import os
from typing import List, Optional, Sequence, Tuple

from .constants import ARCHIVE_VERSION, DEFAULT_MIME_TYPE
from .errors import SourceNotDirectoryError, SourceNotFoundError
from .globmatch import GlobSet, iter_files
from .model import Archive, Entry


def guess_mime_type(path: str) -> str:
    """Best-effort MIME type from the file extension; never raises."""
    mime, _enc = mimetypes.guess_type(path, strict=False)
    return mime or DEFAULT_MIME_TYPE


def _read_entry(item: Tuple[str, str]) -> Entry:
    rel, full = item
    with open(full, "rb") as f:
        data = f.read()
    # Size comes from the bytes read, not a separate stat
    return Entry(path=rel, size=len(data), mime_type=guess_mime_type(rel), data=data)


def collect_entries(
    source: str,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    *,
    jobs: int = 1,
) -> List[Entry]:
    """Read every file under *source* that survives the include/exclude filter.

    Args:
        source: Directory to collect from.
        include: Glob patterns to include (default: everything).
        exclude: Glob patterns to exclude (default: VCS and node_modules dirs).
        jobs: When greater than one, file reads run on a thread pool. The
            returned list keeps discovery order either way.

    Raises:
        SourceNotFoundError: *source* does not exist.
        SourceNotDirectoryError: *source* is not a directory.
    """
    root = os.path.abspath(source)
    if not os.path.exists(root):
        raise SourceNotFoundError(f"Source path does not exist: {root}")
    if not os.path.isdir(root):
        raise SourceNotDirectoryError(f"Source path is not a directory: {root}")

    found = list(iter_files(root, GlobSet(include, exclude)))
    if jobs <= 1 or len(found) < 2:
        return [_read_entry(item) for item in found]
    with _fut.ThreadPoolExecutor(max_workers=jobs) as ex:
        return list(ex.map(_read_entry, found))


def create_archive(
    source: str,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    *,
    jobs: int = 1,
) -> Archive:
    return Archive(version=ARCHIVE_VERSION, entries=collect_entries(source, include, exclude, jobs=jobs))
