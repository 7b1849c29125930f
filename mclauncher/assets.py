import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from .config import LauncherPaths
from .download import DownloadExecutor, DownloadItem
from .errors import ParseError
from .hashing import HashSpec
from .version_meta import VersionMeta

log = logging.getLogger(__name__)

ASSETS_DOWNLOAD_ENDPOINT = 'https://resources.download.minecraft.net'


@dataclass(frozen=True)
class AssetObject:
    hash: str
    size: int = 0


@dataclass(frozen=True)
class AssetIndex:
    objects: Dict[str, AssetObject]

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = 'asset index') -> 'AssetIndex':
        try:
            objects = {}
            for name, details in data['objects'].items():
                asset_hash = details.get('hash')
                if not asset_hash:
                    log.warning(f"Asset '{name}' is missing hash in index, skipping.")
                    continue
                objects[name] = AssetObject(hash=asset_hash.lower(), size=details.get('size', 0))
            return cls(objects)
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError(source, f"unexpected structure ({type(e).__name__}: {e})") from e


class AssetIndexExpander:
    """Turns a version's asset index into one content-addressed item per unique object."""

    def __init__(self, paths: LauncherPaths, executor: DownloadExecutor, endpoint: str = ASSETS_DOWNLOAD_ENDPOINT):
        self.paths = paths
        self.executor = executor
        self.endpoint = endpoint.rstrip('/')

    def index_item(self, meta: VersionMeta) -> DownloadItem:
        ref = meta.asset_index
        return DownloadItem(
            source_url=ref.url,
            destination_path=self.paths.asset_indexes_dir / f"{ref.id}.json",
            hash=ref.hash,
        )

    async def load_index(self, meta: VersionMeta) -> AssetIndex:
        item = self.index_item(meta)
        data = await self.executor.fetch_json(item)
        return AssetIndex.from_dict(data, source=str(item.destination_path))

    def object_item(self, asset_hash: str) -> DownloadItem:
        spec = HashSpec.sha1(asset_hash)
        shard = spec.shard_path()
        return DownloadItem(
            source_url=f"{self.endpoint}/{shard}",
            destination_path=self.paths.asset_objects_dir / shard,
            hash=spec,
        )

    async def expand(self, meta: VersionMeta) -> List[DownloadItem]:
        index = await self.load_index(meta)
        items = []
        seen = set()
        for asset in index.objects.values():
            # several logical names can share one object
            if asset.hash in seen:
                continue
            seen.add(asset.hash)
            items.append(self.object_item(asset.hash))
        log.info(f"Asset index {meta.asset_index.id} lists {len(index.objects)} assets ({len(items)} unique objects).")
        return items
