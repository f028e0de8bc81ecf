from __future__ import annotations

import os
from typing import Optional, Sequence

from .bytebuf import ByteWriter
from .collector import create_archive
from .constants import (
    ARCHIVE_MAGIC,
    ENTRY_FIXED_META,
    HEADER_SIZE,
    TABLE_ROW_SIZE,
    U16_MAX,
    U32_MAX,
)
from .model import Archive, Entry


def _entry_fields(entry: Entry) -> tuple[bytes, bytes]:
    if not entry.path:
        raise ValueError("Entry path may not be empty")
    path_b = entry.path.encode("utf-8")
    mime_b = entry.mime_type.encode("utf-8")
    if len(path_b) > U16_MAX:
        raise ValueError(f"Entry path too long ({len(path_b)} bytes): {entry.path[:64]}...")
    if len(mime_b) > U16_MAX:
        raise ValueError(f"MIME type too long ({len(mime_b)} bytes) for {entry.path}")
    if entry.size < 0 or entry.size > U32_MAX:
        raise ValueError(f"Declared size {entry.size} does not fit in 32 bits for {entry.path}")
    return path_b, mime_b


def entry_length(entry: Entry) -> int:
    """Byte length of an encoded entry block (metadata plus content)."""
    path_b, mime_b = _entry_fields(entry)
    return ENTRY_FIXED_META + len(path_b) + len(mime_b) + len(entry.data)


def serialize_archive(archive: Archive) -> bytes:
    """Encode *archive* into one contiguous buffer.

    Layout (little endian):
      magic[4] | version u32 | count u32 | count x (offset u32, length u32) | entry blocks
    Entry block:
      path_len u16 | path | size u32 | mime_len u16 | mime | content

    Offsets are assigned in a single forward pass: the first block starts
    right after the table and each following block right after its
    predecessor. All field widths are validated before anything is written.
    """
    fields = [_entry_fields(e) for e in archive.entries]

    rows = []
    offset = HEADER_SIZE + TABLE_ROW_SIZE * len(archive.entries)
    for entry, (path_b, mime_b) in zip(archive.entries, fields):
        length = ENTRY_FIXED_META + len(path_b) + len(mime_b) + len(entry.data)
        if offset > U32_MAX or length > U32_MAX:
            raise ValueError("Archive exceeds the 4 GiB addressable by 32-bit offsets")
        rows.append((offset, length))
        offset += length

    w = ByteWriter()
    w.write_raw(ARCHIVE_MAGIC)
    w.write_u32(archive.version)
    w.write_u32(len(archive.entries))
    for off, length in rows:
        w.write_u32(off)
        w.write_u32(length)

    for entry, (path_b, mime_b), (off, _length) in zip(archive.entries, fields, rows):
        if w.tell() != off:
            raise RuntimeError(f"entry block for {entry.path!r} starts at {w.tell()}, table says {off}")
        w.write_prefixed(path_b, 2)
        w.write_u32(entry.size)
        w.write_prefixed(mime_b, 2)
        w.write_raw(entry.data)
    return w.getvalue()


def write_archive(archive: Archive, output_path: str) -> int:
    """Serialize *archive* to *output_path*; returns the number of bytes written."""
    buf = serialize_archive(archive)
    parent = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(parent, exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(buf)
    return len(buf)


def archive_directory(
    source: str,
    output_path: str,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    *,
    jobs: int = 1,
) -> Archive:
    archive = create_archive(source, include, exclude, jobs=jobs)
    write_archive(archive, output_path)
    return archive
