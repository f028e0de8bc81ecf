"""
packager: archive, compress, and sign directory trees for deployment.

Features:

- DSAP container: fixed header, offset table, and length-prefixed entry blocks
  mapping (path, size, MIME type, content) records to a single buffer.
- Bounds-checked parsing; declared entry sizes are cross-checked against the
  entry table unless lenient parsing is requested.
- Extraction validates every destination before writing, so archives with
  traversal paths are rejected with no filesystem side effects.
- Whole-archive compression (gzip, brotli, raw deflate) with format sniffing.
- Detached Ed25519 signatures via PyCryptodomex, NaCl-compatible raw keys.

See packager.writer / packager.reader for the format and packager.cli for the
command line front end.
"""

__version__ = "0.20.2"

__all__ = [
    "constants",
    "model",
    "collector",
    "writer",
    "reader",
    "extract",
    "codec",
    "signing",
    "pipeline",
]
