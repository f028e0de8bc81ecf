from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence

from .codec import compress_file, get_compression_algorithm
from .constants import ALGORITHM_EXTENSIONS, DEFAULT_ALGORITHM
from .signing import sign_file
from .writer import archive_directory


_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_file_size(n: int) -> str:
    """Human-readable size with two decimals, e.g. ``1.23 MB``."""
    size = float(n)
    unit = 0
    while size >= 1024 and unit < len(_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {_UNITS[unit]}"


def compression_ratio(original: int, compressed: int) -> float:
    """Percentage saved by compression; 0.0 for empty input."""
    if original == 0:
        return 0.0
    return (original - compressed) * 100.0 / original


@dataclass
class PackageResult:
    archive_path: str
    compressed_path: str
    signature_path: Optional[str]
    entry_count: int
    archive_size: int
    compressed_size: int


def create_package(
    source: str,
    output: str,
    algorithm: str = DEFAULT_ALGORITHM,
    *,
    private_key_path: Optional[str] = None,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    level: Optional[int] = None,
) -> PackageResult:
    """Archive *source*, compress the archive and optionally sign it.

    Produces ``<output>.archive``, ``<output><ext>`` (``.gz``, ``.br`` or
    ``.deflate``) and, when *private_key_path* is given, ``<output><ext>.sig``
    holding a detached signature over the compressed file. The intermediate
    archive is left in place; callers decide whether to remove it.
    """
    algorithm = get_compression_algorithm(algorithm)
    archive_path = f"{output}.archive"
    compressed_path = f"{output}{ALGORITHM_EXTENSIONS[algorithm]}"
    signature_path = f"{compressed_path}.sig" if private_key_path else None

    archive = archive_directory(source, archive_path, include, exclude)
    compressed_size = compress_file(archive_path, compressed_path, algorithm, level)
    if signature_path is not None:
        sign_file(compressed_path, signature_path, private_key_path=private_key_path)

    return PackageResult(
        archive_path=archive_path,
        compressed_path=compressed_path,
        signature_path=signature_path,
        entry_count=len(archive),
        archive_size=os.path.getsize(archive_path),
        compressed_size=compressed_size,
    )
