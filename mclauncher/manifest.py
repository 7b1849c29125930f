import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiofiles.os

from .config import LauncherPaths
from .download import DownloadExecutor, DownloadItem
from .errors import LauncherIOError, NotFoundError, ParseError
from .hashing import HashSpec

log = logging.getLogger(__name__)

VERSION_MANIFEST_URL = 'https://piston-meta.mojang.com/mc/game/version_manifest_v2.json'


class VersionType(enum.Enum):
    RELEASE = 'release'
    SNAPSHOT = 'snapshot'
    OLD_BETA = 'old_beta'
    OLD_ALPHA = 'old_alpha'


@dataclass(frozen=True)
class VersionSummary:
    id: str
    type: VersionType
    meta_url: str
    meta_hash: HashSpec

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VersionSummary':
        return cls(
            id=data['id'],
            type=VersionType(data['type']),
            meta_url=data['url'],
            meta_hash=HashSpec.sha1(data['sha1']),
        )


@dataclass(frozen=True)
class VersionManifest:
    latest_release_id: str
    latest_snapshot_id: str
    versions: List[VersionSummary]

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = 'version manifest') -> 'VersionManifest':
        try:
            latest = data['latest']
            return cls(
                latest_release_id=latest['release'],
                latest_snapshot_id=latest['snapshot'],
                versions=[VersionSummary.from_dict(v) for v in data['versions']],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(source, f"unexpected structure ({type(e).__name__}: {e})") from e

    def find(self, version_id: str) -> VersionSummary:
        """Exact id lookup."""
        for version in self.versions:
            if version.id == version_id:
                return version
        raise NotFoundError(f"Version {version_id!r} is not listed in the version manifest")

    def latest_release(self) -> VersionSummary:
        return self.find(self.latest_release_id)

    def ids(self, version_type: Optional[VersionType] = None) -> List[str]:
        return [v.id for v in self.versions if version_type is None or v.type is version_type]


class VersionManifestResolver:
    """Fetches the global version index once and keeps it on disk.

    A cached manifest is used as-is, with no freshness check; `refresh()`
    replaces it whole. A cached file that fails to parse is left where it is
    and keeps failing until it is refreshed or removed.
    """

    def __init__(self, paths: LauncherPaths, executor: DownloadExecutor, url: str = VERSION_MANIFEST_URL):
        self.paths = paths
        self.executor = executor
        self.url = url

    async def resolve(self) -> VersionManifest:
        path = self.paths.version_manifest_path
        data = await self.executor.fetch_json(DownloadItem(self.url, path))
        return VersionManifest.from_dict(data, source=str(path))

    async def refresh(self) -> VersionManifest:
        """Downloads a fresh manifest beside the cached one and swaps it in
        only once it has been parsed successfully."""
        path = self.paths.version_manifest_path
        staging = path.with_name(path.name + '.new')
        if await aiofiles.os.path.exists(staging):
            await aiofiles.os.remove(staging)

        log.info('Refreshing version manifest...')
        data = await self.executor.fetch_json(DownloadItem(self.url, staging))
        manifest = VersionManifest.from_dict(data, source=str(staging))
        try:
            await aiofiles.os.replace(staging, path)
        except OSError as e:
            raise LauncherIOError(path, f"could not replace cached manifest: {e}") from e
        log.info(f"Version manifest refreshed ({len(manifest.versions)} versions, latest release {manifest.latest_release_id}).")
        return manifest

    async def find(self, version_id: str) -> VersionSummary:
        manifest = await self.resolve()
        return manifest.find(version_id)
