class PackagerError(Exception):
    """Base class for packager-specific errors."""


# Collection
class SourceNotFoundError(PackagerError):
    pass


class SourceNotDirectoryError(PackagerError):
    pass


# Parsing
class TruncatedArchiveError(PackagerError):
    pass


class InvalidSignatureError(PackagerError):
    """The buffer does not start with the archive magic bytes."""


class UnsupportedVersionError(PackagerError):
    def __init__(self, version: int):
        super().__init__(f"Unsupported archive version: {version}")
        self.version = version


class CorruptArchiveError(PackagerError):
    pass


# Extraction
class PathTraversalError(PackagerError):
    def __init__(self, path: str):
        super().__init__(f"Blocked path traversal attempt: {path}")
        self.path = path


# Collaborators
class CompressionError(PackagerError):
    pass


class KeyFormatError(PackagerError):
    pass
