import enum
import hashlib
import logging
import pathlib
from dataclasses import dataclass
from typing import Optional

import aiofiles

from .errors import HashMismatchError, LauncherIOError

log = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class HashAlgorithm(enum.Enum):
    SHA1 = 'sha1'
    SHA256 = 'sha256'
    SHA512 = 'sha512'


@dataclass(frozen=True)
class HashSpec:
    algorithm: HashAlgorithm
    expected_hex: str

    @classmethod
    def sha1(cls, expected_hex: str) -> 'HashSpec':
        return cls(HashAlgorithm.SHA1, expected_hex)

    @classmethod
    def sha256(cls, expected_hex: str) -> 'HashSpec':
        return cls(HashAlgorithm.SHA256, expected_hex)

    def shard_path(self) -> str:
        """Content-addressed location `<first two hex chars>/<full hash>`."""
        digest = self.expected_hex.lower()
        return f"{digest[:2]}/{digest}"


async def get_file_digest(file_path: pathlib.Path, algorithm: HashAlgorithm) -> str:
    """Calculates the hex digest of a file asynchronously."""
    digest = hashlib.new(algorithm.value)
    try:
        async with aiofiles.open(file_path, 'rb') as f:
            while True:
                chunk = await f.read(CHUNK_SIZE)
                if not chunk:
                    break
                digest.update(chunk)
    except OSError as e:
        raise LauncherIOError(file_path, f"could not read file for {algorithm.value}: {e}") from e
    return digest.hexdigest()


async def verify_file(file_path: pathlib.Path, spec: HashSpec, display_path: Optional[pathlib.Path] = None) -> None:
    """Raises HashMismatchError unless the file's digest equals spec.expected_hex."""
    actual = await get_file_digest(file_path, spec.algorithm)
    if actual.lower() != spec.expected_hex.lower():
        raise HashMismatchError(display_path or file_path, spec.expected_hex, actual)
    log.debug(f"{spec.algorithm.value} verified for {(display_path or file_path).name}")
