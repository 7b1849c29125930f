"""Native libraries shipped as classifier jars.

Metas before 1.19 keep LWJGL's platform binaries out of the main artifact:
each library lists them under `downloads.classifiers`, optionally with a
`natives` map from OS name to classifier key (`natives-windows-${arch}`).
The selected jar is downloaded like any other library and then unpacked into
the version's natives directory, which the launch command passes as
`java.library.path`.
"""

import asyncio
import logging
import pathlib
import shutil
from typing import List, Optional

import aiofiles.os

from .archive import extract_jar
from .config import LauncherPaths
from .errors import LauncherIOError
from .rules import Arch, OsName, Platform, is_artifact_included
from .version_meta import ArtifactRef, Library, VersionMeta

log = logging.getLogger(__name__)

NATIVES_EXCLUDE = ('META-INF/',)

# Value substituted for `${arch}` in a `natives` classifier template
_ARCH_SUBSTITUTION = {
    Arch.X86_64: '64',
    Arch.X86: '32',
    Arch.AARCH64: 'arm64',
    Arch.ARM32: 'arm32',
}

# Classifier spellings per OS; newer metas say `macos` where older ones say `osx`
_CLASSIFIER_OS_NAMES = {
    OsName.LINUX: ['linux'],
    OsName.MACOS: ['osx', 'macos'],
    OsName.WINDOWS: ['windows'],
}


def _classifier_keys(library: Library, current: Platform) -> List[str]:
    arch = _ARCH_SUBSTITUTION[current.arch]
    keys = []
    template = library.natives.get(current.os_name.value)
    if template is not None:
        keys.append(template.replace('${arch}', arch))
    os_names = _CLASSIFIER_OS_NAMES[current.os_name]
    keys.extend(f"natives-{name}-{arch}" for name in os_names)
    keys.extend(f"natives-{name}" for name in os_names)
    return keys


def native_artifact(library: Library, current: Platform) -> Optional[ArtifactRef]:
    """The classifier jar this library needs on the given platform, if any.
    It passes through the same rule and path filters as the main artifact."""
    if not library.classifiers:
        return None
    for key in _classifier_keys(library, current):
        artifact = library.classifiers.get(key)
        if artifact is not None:
            return artifact if is_artifact_included(library, artifact, current) else None
    return None


def native_artifacts(meta: VersionMeta, current: Platform) -> List[ArtifactRef]:
    artifacts = []
    seen = set()
    for library in meta.libraries:
        artifact = native_artifact(library, current)
        if artifact is None or artifact.relative_path in seen:
            continue
        seen.add(artifact.relative_path)
        artifacts.append(artifact)
    return artifacts


async def extract_natives(meta: VersionMeta, paths: LauncherPaths, current: Platform) -> pathlib.Path:
    """Rebuilds the version's natives directory from its already downloaded
    classifier jars and returns it. The directory is recreated even when the
    version has no classifier natives."""
    natives_dir = paths.natives_dir(meta.id)
    try:
        if await aiofiles.os.path.isdir(natives_dir):
            log.debug(f"Removing existing natives directory: {natives_dir}")
            await asyncio.get_running_loop().run_in_executor(None, shutil.rmtree, natives_dir)
        await aiofiles.os.makedirs(natives_dir, exist_ok=True)
    except OSError as e:
        raise LauncherIOError(natives_dir, f"could not recreate natives directory: {e}") from e

    artifacts = native_artifacts(meta, current)
    if not artifacts:
        log.info('No native libraries to extract for this platform.')
        return natives_dir

    for artifact in artifacts:
        await extract_jar(paths.libraries_dir / artifact.relative_path, natives_dir, exclude=NATIVES_EXCLUDE)
    log.info(f"Extracted {len(artifacts)} native libraries into {natives_dir}")
    return natives_dir
