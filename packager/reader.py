from __future__ import annotations

from typing import List

from .bytebuf import ByteReader
from .constants import (
    ARCHIVE_MAGIC,
    ARCHIVE_VERSION,
    ENTRY_FIXED_META,
    HEADER_SIZE,
    TABLE_ROW_SIZE,
)
from .errors import (
    CorruptArchiveError,
    InvalidSignatureError,
    TruncatedArchiveError,
    UnsupportedVersionError,
)
from .model import Archive, Entry


def _decode_str(raw: bytes, what: str, index: int) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CorruptArchiveError(f"entry {index}: {what} is not valid UTF-8") from exc


def _read_entry(r: ByteReader, index: int, data_offset: int, entry_len: int, strict: bool) -> Entry:
    total = len(r)
    if data_offset + entry_len > total:
        raise CorruptArchiveError(
            f"entry {index}: block [{data_offset}, {data_offset + entry_len}) exceeds buffer of {total} bytes"
        )
    r.seek(data_offset)
    path = _decode_str(r.read_prefixed(2), "path", index)
    size = r.read_u32()
    mime_type = _decode_str(r.read_prefixed(2), "MIME type", index)
    meta_len = r.pos - data_offset
    if strict:
        if entry_len < meta_len or entry_len - meta_len != size:
            raise CorruptArchiveError(
                f"entry {index} ({path!r}): declared size {size} does not match table length "
                f"{entry_len} minus {meta_len} bytes of metadata"
            )
    data = r.read_raw(size)
    return Entry(path=path, size=size, mime_type=mime_type, data=data)


def parse_archive(buf: bytes, *, strict: bool = True) -> Archive:
    """Decode an archive buffer.

    Raises TruncatedArchiveError, InvalidSignatureError, UnsupportedVersionError
    or CorruptArchiveError. With ``strict`` (the default) each entry's declared
    size must agree with the table's entry length; otherwise the declared size
    alone delimits the content, which is still bounds-checked.
    """
    if len(buf) < HEADER_SIZE:
        raise TruncatedArchiveError(f"Archive too short: {len(buf)} bytes, header needs {HEADER_SIZE}")
    r = ByteReader(buf)
    if r.read_raw(len(ARCHIVE_MAGIC)) != ARCHIVE_MAGIC:
        raise InvalidSignatureError("Invalid archive signature")
    version = r.read_u32()
    if version != ARCHIVE_VERSION:
        raise UnsupportedVersionError(version)
    count = r.read_u32()

    table_end = HEADER_SIZE + count * TABLE_ROW_SIZE
    if table_end > len(buf):
        raise CorruptArchiveError(
            f"Entry table for {count} entries needs {table_end} bytes, buffer has {len(buf)}"
        )
    rows = []
    for _ in range(count):
        rows.append((r.read_u32(), r.read_u32()))

    entries: List[Entry] = []
    for i, (data_offset, entry_len) in enumerate(rows):
        if data_offset < table_end or entry_len < ENTRY_FIXED_META:
            raise CorruptArchiveError(f"entry {i}: invalid table row (offset={data_offset}, length={entry_len})")
        entries.append(_read_entry(r, i, data_offset, entry_len, strict))
    return Archive(version=version, entries=entries)


def read_archive(archive_path: str, *, strict: bool = True) -> Archive:
    with open(archive_path, "rb") as f:
        buf = f.read()
    return parse_archive(buf, strict=strict)


def is_archive(buf: bytes) -> bool:
    """Cheap check for the archive magic; does not validate the rest."""
    return len(buf) >= len(ARCHIVE_MAGIC) and buf[: len(ARCHIVE_MAGIC)] == ARCHIVE_MAGIC
