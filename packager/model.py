from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .constants import ARCHIVE_VERSION, DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class Entry:
    path: str
    size: int
    mime_type: str = DEFAULT_MIME_TYPE
    data: bytes = b""

    @classmethod
    def from_bytes(cls, path: str, data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> "Entry":
        return cls(path=path, size=len(data), mime_type=mime_type, data=bytes(data))


@dataclass
class Archive:
    version: int = ARCHIVE_VERSION
    entries: List[Entry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def total_size(self) -> int:
        return sum(len(e.data) for e in self.entries)
