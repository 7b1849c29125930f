import pathlib
from typing import List

from .config import LauncherPaths
from .rules import Platform, is_library_included
from .version_meta import Library, VersionMeta


def included_libraries(meta: VersionMeta, platform: Platform) -> List[Library]:
    """Libraries that apply to the platform, in declaration order, each path once."""
    libraries = []
    seen = set()
    for library in meta.libraries:
        if not is_library_included(library, platform):
            continue
        if library.artifact.relative_path in seen:
            continue
        seen.add(library.artifact.relative_path)
        libraries.append(library)
    return libraries


def library_path(paths: LauncherPaths, library: Library) -> pathlib.Path:
    return paths.libraries_dir / library.artifact.relative_path


def client_path(paths: LauncherPaths, meta: VersionMeta) -> pathlib.Path:
    return paths.versions_dir / meta.client_artifact.relative_path


def classpath_entries(meta: VersionMeta, paths: LauncherPaths, platform: Platform) -> List[pathlib.Path]:
    # the JVM resolves classes first-match-wins, so declaration order is kept and the client goes last
    entries = [library_path(paths, library) for library in included_libraries(meta, platform)]
    entries.append(client_path(paths, meta))
    return entries


def build_classpath(meta: VersionMeta, paths: LauncherPaths, platform: Platform) -> str:
    separator = platform.os_name.classpath_separator
    return separator.join(str(entry) for entry in classpath_entries(meta, paths, platform))
