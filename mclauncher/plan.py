import logging
from typing import List, Optional

from .assets import AssetIndexExpander
from .classpath import client_path, included_libraries
from .config import LauncherPaths
from .download import DownloadExecutor, DownloadItem
from .http import ContentFetcher
from .java import RuntimeResolver
from .manifest import VersionManifestResolver
from .natives import native_artifacts
from .rules import Platform
from .version_meta import ArtifactRef, VersionMeta, VersionMetaResolver

log = logging.getLogger(__name__)


class InstallPlanBuilder:
    """Composes the resolvers into the flat list of items needed to run a version.

    Building reads (and caches) the manifest, the version meta and the asset
    index, but leaves every bulk payload to the executor so the caller knows
    the total before any transfer starts.
    """

    def __init__(
        self,
        paths: LauncherPaths,
        fetcher: ContentFetcher,
        platform: Optional[Platform] = None,
        executor: Optional[DownloadExecutor] = None,
    ):
        self.paths = paths
        self.platform = platform or Platform.current()
        self.executor = executor or DownloadExecutor(fetcher)
        self.manifest_resolver = VersionManifestResolver(paths, self.executor)
        self.meta_resolver = VersionMetaResolver(paths, self.executor)
        self.asset_expander = AssetIndexExpander(paths, self.executor)
        self.runtime_resolver = RuntimeResolver(paths, fetcher, self.platform)

    async def resolve_meta(self, version_id: str) -> VersionMeta:
        summary = await self.manifest_resolver.find(version_id)
        return await self.meta_resolver.resolve(summary)

    def client_item(self, meta: VersionMeta) -> DownloadItem:
        return DownloadItem(
            source_url=meta.client_artifact.url,
            destination_path=client_path(self.paths, meta),
            hash=meta.client_artifact.hash,
        )

    def artifact_item(self, artifact: ArtifactRef) -> DownloadItem:
        return DownloadItem(
            source_url=artifact.url,
            destination_path=self.paths.libraries_dir / artifact.relative_path,
            hash=artifact.hash,
        )

    def library_items(self, meta: VersionMeta) -> List[DownloadItem]:
        """Classpath jars in declaration order, then the platform's native classifier jars."""
        artifacts = [library.artifact for library in included_libraries(meta, self.platform)]
        classpath_paths = {artifact.relative_path for artifact in artifacts}
        artifacts.extend(a for a in native_artifacts(meta, self.platform) if a.relative_path not in classpath_paths)
        return [self.artifact_item(artifact) for artifact in artifacts]

    async def build(self, version_id: str, install_runtime: bool = True) -> List[DownloadItem]:
        meta = await self.resolve_meta(version_id)
        return await self.build_for_meta(meta, install_runtime=install_runtime)

    async def build_for_meta(self, meta: VersionMeta, install_runtime: bool = True) -> List[DownloadItem]:
        plan = [self.client_item(meta)]

        if install_runtime:
            runtime_item = await self.runtime_resolver.resolve(meta.java_major_version)
            if runtime_item is not None:
                plan.append(runtime_item)

        libraries = self.library_items(meta)
        plan.extend(libraries)

        assets = await self.asset_expander.expand(meta)
        plan.extend(assets)

        log.info(f"Install plan for {meta.id}: {len(plan)} items ({len(libraries)} libraries, {len(assets)} assets).")
        return plan
