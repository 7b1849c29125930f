import pathlib
from typing import Optional


class LauncherError(Exception):
    """Base class for every error raised by the install pipeline."""


class NotFoundError(LauncherError):
    """A requested version id (or installed runtime) does not exist."""


class TransportError(LauncherError):
    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(f"Failed to download {url}: {message}")
        self.url = url
        self.status = status


class HashMismatchError(LauncherError):
    def __init__(self, path: pathlib.Path, expected: str, actual: str):
        super().__init__(f"Hash mismatch for {path.name}. Expected {expected}, got {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class ParseError(LauncherError):
    def __init__(self, source: str, message: str):
        super().__init__(f"Could not parse {source}: {message}")
        self.source = source


class UnsupportedContainerError(LauncherError):
    def __init__(self, url: str):
        super().__init__(f"Cannot extract {url}: unrecognized archive type (expected .zip or .tar.gz)")
        self.url = url


class LauncherIOError(LauncherError):
    def __init__(self, path: pathlib.Path, message: str):
        super().__init__(f"Filesystem error at {path}: {message}")
        self.path = path
