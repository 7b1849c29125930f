import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import aiofiles.os

from .config import LauncherPaths
from .download import DownloadExecutor, DownloadItem, load_json_file
from .errors import NotFoundError, ParseError
from .hashing import HashSpec
from .manifest import VersionSummary
from .rules import Rule, parse_rules

log = logging.getLogger(__name__)

DEFAULT_JAVA_VERSION = 17


@dataclass(frozen=True)
class ArtifactRef:
    relative_path: str
    url: str
    hash: HashSpec
    size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], relative_path: Optional[str] = None) -> 'ArtifactRef':
        return cls(
            relative_path=relative_path if relative_path is not None else data['path'],
            url=data['url'],
            hash=HashSpec.sha1(data['sha1']),
            size=data.get('size'),
        )


@dataclass(frozen=True)
class Library:
    """A library entry. `artifact` is the jar that goes on the classpath;
    `classifiers` holds the per-platform native jars of pre-1.19 metas and
    `natives` maps an OS name to the classifier key to use there."""
    name: str
    artifact: Optional[ArtifactRef]
    rules: Optional[List[Rule]] = None
    classifiers: Dict[str, ArtifactRef] = field(default_factory=dict)
    natives: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['Library']:
        """Returns None for entries with nothing to download."""
        downloads = data.get('downloads') or {}
        artifact = downloads.get('artifact')
        classifiers = {key: ArtifactRef.from_dict(value) for key, value in (downloads.get('classifiers') or {}).items()}
        if artifact is None and not classifiers:
            log.debug(f"Library {data.get('name', 'N/A')} has no downloadable artifact, ignoring.")
            return None
        return cls(
            name=data.get('name', 'unknown-library'),
            artifact=ArtifactRef.from_dict(artifact) if artifact is not None else None,
            rules=parse_rules(data.get('rules')),
            classifiers=classifiers,
            natives=dict(data.get('natives') or {}),
        )


@dataclass(frozen=True)
class AssetIndexRef:
    id: str
    url: str
    hash: HashSpec
    size: Optional[int] = None
    total_size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssetIndexRef':
        return cls(
            id=data['id'],
            url=data['url'],
            hash=HashSpec.sha1(data['sha1']),
            size=data.get('size'),
            total_size=data.get('totalSize'),
        )


@dataclass(frozen=True)
class SimpleArgument:
    value: str


@dataclass(frozen=True)
class ConditionalArgument:
    # None when the object carries no rules: the values always apply
    rules: Optional[List[Rule]]
    values: List[str]


Argument = Union[SimpleArgument, ConditionalArgument]


def parse_argument(data: Any) -> Argument:
    """Decodes a manifest argument: either a bare string or an object with
    rules and a `value` that is itself a string or a list of strings."""
    if isinstance(data, str):
        return SimpleArgument(data)
    if isinstance(data, dict):
        value = data.get('value')
        if isinstance(value, str):
            values = [value]
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            values = list(value)
        else:
            raise ValueError(f"unsupported argument value {value!r}")
        return ConditionalArgument(rules=parse_rules(data.get('rules')), values=values)
    raise ValueError(f"unsupported argument {data!r}")


@dataclass(frozen=True)
class Arguments:
    game: List[Argument] = field(default_factory=list)
    jvm: List[Argument] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Arguments':
        return cls(
            game=[parse_argument(a) for a in data.get('game') or []],
            jvm=[parse_argument(a) for a in data.get('jvm') or []],
        )


@dataclass(frozen=True)
class VersionMeta:
    id: str
    main_class: str
    assets_id: str
    asset_index: AssetIndexRef
    client_artifact: ArtifactRef
    libraries: List[Library]
    type: str = 'release'
    java_major_version: int = DEFAULT_JAVA_VERSION
    arguments: Optional[Arguments] = None
    legacy_arguments: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = 'version meta') -> 'VersionMeta':
        try:
            version_id = data['id']
            libraries = [Library.from_dict(lib) for lib in data.get('libraries', [])]
            java_version = data.get('javaVersion') or {}
            return cls(
                id=version_id,
                main_class=data['mainClass'],
                assets_id=data['assets'],
                asset_index=AssetIndexRef.from_dict(data['assetIndex']),
                client_artifact=ArtifactRef.from_dict(
                    data['downloads']['client'], relative_path=f"{version_id}/{version_id}.jar"
                ),
                libraries=[lib for lib in libraries if lib is not None],
                type=data.get('type', 'release'),
                java_major_version=int(java_version.get('majorVersion', DEFAULT_JAVA_VERSION)),
                arguments=Arguments.from_dict(data['arguments']) if 'arguments' in data else None,
                legacy_arguments=data.get('minecraftArguments'),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(source, f"unexpected structure ({type(e).__name__}: {e})") from e


class VersionMetaResolver:
    def __init__(self, paths: LauncherPaths, executor: DownloadExecutor):
        self.paths = paths
        self.executor = executor

    def download_item(self, summary: VersionSummary) -> DownloadItem:
        return DownloadItem(
            source_url=summary.meta_url,
            destination_path=self.paths.version_meta_path(summary.id),
            hash=summary.meta_hash,
        )

    async def resolve(self, summary: VersionSummary) -> VersionMeta:
        """Fetches (or reuses) the hash-verified meta document and parses it.
        A document that verifies but does not parse is kept: its bytes are
        valid, the schema is what this launcher does not understand."""
        item = self.download_item(summary)
        log.info(f"Loading version meta for {summary.id}...")
        data = await self.executor.fetch_json(item)
        return VersionMeta.from_dict(data, source=str(item.destination_path))

    async def load(self, version_id: str) -> VersionMeta:
        """Parses an already-cached meta document without network access."""
        path = self.paths.version_meta_path(version_id)
        if not await aiofiles.os.path.exists(path):
            raise NotFoundError(f"Version {version_id!r} is not installed (no {path.name} in {path.parent})")
        data = await load_json_file(path)
        return VersionMeta.from_dict(data, source=str(path))
