from __future__ import annotations

import gzip
import os
import zlib
from typing import Optional

import brotli

from .constants import (
    ALGO_BROTLI,
    ALGO_DEFLATE,
    ALGO_GZIP,
    ALGORITHMS,
    DEFAULT_LEVEL,
    EXTENSION_ALGORITHMS,
    GZIP_MAGIC,
    MAX_LEVEL,
)
from .errors import CompressionError


def get_compression_algorithm(name: str) -> str:
    """Map a user-supplied algorithm name onto one of ALGORITHMS."""
    normalized = name.strip().lower()
    if normalized not in ALGORITHMS:
        raise ValueError(f"Unsupported compression algorithm: {name}")
    return normalized


def detect_algorithm_from_extension(path: str) -> Optional[str]:
    _root, ext = os.path.splitext(path)
    return EXTENSION_ALGORITHMS.get(ext.lower())


class Codec:
    def __init__(self, algorithm: str, level: Optional[int] = None):
        self.algorithm = get_compression_algorithm(algorithm)
        self.level = DEFAULT_LEVEL if level is None else level
        max_level = MAX_LEVEL[self.algorithm]
        if self.level < 0 or self.level > max_level:
            raise ValueError(
                f"Invalid compression level {self.level} for {self.algorithm}; expected 0-{max_level}"
            )

    def compress(self, data: bytes) -> bytes:
        if self.algorithm == ALGO_GZIP:
            # mtime=0 keeps output reproducible for identical input
            return gzip.compress(data, compresslevel=self.level, mtime=0)
        if self.algorithm == ALGO_BROTLI:
            return brotli.compress(data, quality=self.level)
        if self.algorithm == ALGO_DEFLATE:
            c = zlib.compressobj(self.level, zlib.DEFLATED, -zlib.MAX_WBITS)
            return c.compress(data) + c.flush()
        raise CompressionError(f"unsupported algorithm: {self.algorithm}")

    def decompress(self, data: bytes) -> bytes:
        try:
            if self.algorithm == ALGO_GZIP:
                return gzip.decompress(data)
            if self.algorithm == ALGO_BROTLI:
                return brotli.decompress(data)
            if self.algorithm == ALGO_DEFLATE:
                d = zlib.decompressobj(-zlib.MAX_WBITS)
                out = d.decompress(data) + d.flush()
                if not d.eof:
                    raise CompressionError("deflate stream is truncated")
                return out
        except (OSError, EOFError, zlib.error, brotli.error) as e:
            raise CompressionError(f"{self.algorithm} decompression failed: {e}") from e
        raise CompressionError(f"unsupported algorithm: {self.algorithm}")


def compress_data(data: bytes, algorithm: str, level: Optional[int] = None) -> bytes:
    return Codec(algorithm, level).compress(data)


def sniff_algorithm(data: bytes) -> Optional[str]:
    """Identify gzip by its magic; other formats carry no reliable header."""
    if data[:2] == GZIP_MAGIC:
        return ALGO_GZIP
    return None


def decompress_data(data: bytes, algorithm: Optional[str] = None) -> bytes:
    """Decompress *data*, detecting the algorithm when none is given.

    Detection order: gzip magic, then a brotli attempt, then raw deflate.
    """
    if algorithm:
        return Codec(algorithm).decompress(data)
    sniffed = sniff_algorithm(data)
    if sniffed is not None:
        return Codec(sniffed).decompress(data)
    for candidate in (ALGO_BROTLI, ALGO_DEFLATE):
        try:
            return Codec(candidate).decompress(data)
        except CompressionError:
            continue
    raise CompressionError(
        "Unable to detect compression algorithm. Please specify the algorithm explicitly."
    )


def compress_file(input_path: str, output_path: str, algorithm: str, level: Optional[int] = None) -> int:
    """Compress *input_path* into *output_path*; returns the compressed size."""
    with open(input_path, "rb") as f:
        data = f.read()
    out = compress_data(data, algorithm, level)
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(out)
    return len(out)


def decompress_file(input_path: str, output_path: str, algorithm: Optional[str] = None) -> int:
    """Decompress *input_path* into *output_path*; returns the decompressed size.

    When *algorithm* is omitted it is taken from the input's extension, and
    failing that detected from the payload.
    """
    if not algorithm:
        algorithm = detect_algorithm_from_extension(input_path)
    with open(input_path, "rb") as f:
        data = f.read()
    out = decompress_data(data, algorithm)
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(out)
    return len(out)
