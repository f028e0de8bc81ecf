# Magic and version
ARCHIVE_MAGIC = b"DSAP"   # 4 bytes: "DSAP"
ARCHIVE_VERSION = 1

# Header: magic[4], version u32, entry count u32
HEADER_SIZE = 12
TABLE_ROW_SIZE = 8  # data offset u32 + entry length u32

# Entry block metadata: path_len u16 + size u32 + mime_len u16
ENTRY_FIXED_META = 2 + 4 + 2

U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF


# Collection defaults
DEFAULT_INCLUDE = ("**/*",)
DEFAULT_EXCLUDE = ("**/node_modules/**", "**/.git/**")
DEFAULT_MIME_TYPE = "application/octet-stream"


# Compression algorithms (names double as CLI choices)
ALGO_GZIP = "gzip"
ALGO_BROTLI = "brotli"
ALGO_DEFLATE = "deflate"
ALGORITHMS = (ALGO_GZIP, ALGO_BROTLI, ALGO_DEFLATE)

DEFAULT_ALGORITHM = ALGO_GZIP
DEFAULT_LEVEL = 6
MAX_LEVEL = {ALGO_GZIP: 9, ALGO_DEFLATE: 9, ALGO_BROTLI: 11}

ALGORITHM_EXTENSIONS = {
    ALGO_GZIP: ".gz",
    ALGO_BROTLI: ".br",
    ALGO_DEFLATE: ".deflate",
}
EXTENSION_ALGORITHMS = {
    ".gz": ALGO_GZIP,
    ".gzip": ALGO_GZIP,
    ".br": ALGO_BROTLI,
    ".brotli": ALGO_BROTLI,
    ".deflate": ALGO_DEFLATE,
}

GZIP_MAGIC = b"\x1f\x8b"


# Ed25519 raw key/signature sizes (NaCl layout: seed || public key)
SEED_SIZE = 32
PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 64
SIGNATURE_SIZE = 64
