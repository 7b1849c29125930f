import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import LauncherPaths
from .download import DownloadItem
from .errors import LauncherIOError, NotFoundError, ParseError
from .hashing import HashSpec
from .http import ContentFetcher
from .rules import OsName, Platform

log = logging.getLogger(__name__)

ADOPTIUM_API_BASE = 'https://api.adoptium.net/v3'
DEFAULT_IMAGE_TYPE = 'jre'
DEFAULT_VENDOR = 'eclipse'
DEFAULT_JVM_IMPL = 'hotspot'


@dataclass(frozen=True)
class RuntimeDescriptor:
    major_version: int
    package_checksum: str
    package_url: str
    release_name: str

    @classmethod
    def from_dict(cls, major_version: int, data: Dict[str, Any]) -> 'RuntimeDescriptor':
        package = data['binary']['package']
        return cls(
            major_version=major_version,
            package_checksum=package['checksum'],
            package_url=package['link'],
            release_name=data['release_name'],
        )


def java_executable_in(runtime_dir: pathlib.Path, os_name: OsName) -> pathlib.Path:
    if os_name is OsName.WINDOWS:
        return runtime_dir / 'bin' / 'java.exe'
    elif os_name is OsName.MACOS:
        return runtime_dir / 'Contents' / 'Home' / 'bin' / 'java'
    return runtime_dir / 'bin' / 'java'


class RuntimeResolver:
    """Resolves the Temurin JRE for a Java major version into an extract item.

    A runtime already extracted under `runtimes/<major>` counts as up to date
    and is not compared against the currently advertised release; delete the
    directory to force a reinstall.
    """

    def __init__(
        self,
        paths: LauncherPaths,
        fetcher: ContentFetcher,
        platform: Platform,
        image_type: str = DEFAULT_IMAGE_TYPE,
        vendor: str = DEFAULT_VENDOR,
        jvm_impl: str = DEFAULT_JVM_IMPL,
    ):
        self.paths = paths
        self.fetcher = fetcher
        self.platform = platform
        self.image_type = image_type
        self.vendor = vendor
        self.jvm_impl = jvm_impl

    def runtime_root(self, major_version: int) -> pathlib.Path:
        return self.paths.runtimes_dir / str(major_version)

    async def query(self, major_version: int) -> RuntimeDescriptor:
        url = f"{ADOPTIUM_API_BASE}/assets/latest/{major_version}/{self.jvm_impl}"
        params = {
            'architecture': self.platform.arch.adoptium,
            'image_type': self.image_type,
            'os': self.platform.os_name.adoptium,
            'vendor': self.vendor,
        }
        log.info(f"Looking up Java {major_version} ({self.image_type}) for {params['os']}-{params['architecture']}...")
        releases = await self.fetcher.get_json(url, params=params)
        if not releases:
            raise NotFoundError(
                f"No {self.jvm_impl} {self.image_type} build of Java {major_version} for {params['os']}-{params['architecture']}"
            )
        try:
            return RuntimeDescriptor.from_dict(major_version, releases[0])
        except (KeyError, TypeError, IndexError) as e:
            raise ParseError(url, f"unexpected release structure ({type(e).__name__}: {e})") from e

    def installed_runtimes(self, major_version: int) -> List[pathlib.Path]:
        """Extracted runtime directories under runtimes/<major>, skipping temporary entries."""
        root = self.runtime_root(major_version)
        try:
            return sorted(
                pathlib.Path(entry.path) for entry in os.scandir(root)
                if entry.is_dir() and not entry.name.startswith('.')
            )
        except FileNotFoundError:
            return []
        except OSError as e:
            raise LauncherIOError(root, f"could not list runtimes: {e}") from e

    async def resolve(self, major_version: int) -> Optional[DownloadItem]:
        """Returns the install item, or None when the runtime is already present."""
        root = self.runtime_root(major_version)
        installed = self.installed_runtimes(major_version)
        if installed:
            log.info(f"Java {major_version} runtime already present at {installed[0]}.")
            return None

        descriptor = await self.query(major_version)
        log.info(f"Resolved Java {major_version} release {descriptor.release_name}")
        return DownloadItem(
            source_url=descriptor.package_url,
            destination_path=root / f"{descriptor.release_name}-{self.image_type}",
            hash=HashSpec.sha256(descriptor.package_checksum),
            extract=True,
        )

    def get_java_path(self, major_version: int) -> pathlib.Path:
        """Finds the java executable inside the installed runtime."""
        for candidate in self.installed_runtimes(major_version):
            java_path = java_executable_in(candidate, self.platform.os_name)
            if java_path.is_file():
                return java_path.resolve()
        raise NotFoundError(f"No runtime found for Java {major_version} in {self.runtime_root(major_version)}")
