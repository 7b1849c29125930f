from mclauncher.classpath import build_classpath, classpath_entries, included_libraries
from mclauncher.version_meta import VersionMeta

LINUX_ONLY = [{"action": "allow", "os": {"name": "linux"}}]
WINDOWS_ONLY = [{"action": "allow", "os": {"name": "windows"}}]


def test_order_follows_declaration_with_client_last(paths, linux_x64, world):
    world.add_library("com/mojang/logging/1.1.1/logging-1.1.1.jar")
    world.add_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1.jar")
    world.add_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar", LINUX_ONLY)
    meta = VersionMeta.from_dict(world.meta_document())

    entries = classpath_entries(meta, paths, linux_x64)

    assert entries == [
        paths.libraries_dir / "com/mojang/logging/1.1.1/logging-1.1.1.jar",
        paths.libraries_dir / "org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1.jar",
        paths.libraries_dir / "org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar",
        paths.versions_dir / "1.20" / "1.20.jar",
    ]


def test_excluded_libraries_are_left_out(paths, linux_x64, windows_x64, world):
    world.add_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar", LINUX_ONLY)
    world.add_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-windows.jar", WINDOWS_ONLY)
    meta = VersionMeta.from_dict(world.meta_document())

    linux = [lib.artifact.relative_path for lib in included_libraries(meta, linux_x64)]
    windows = [lib.artifact.relative_path for lib in included_libraries(meta, windows_x64)]

    assert linux == ["org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar"]
    assert windows == ["org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-windows.jar"]


def test_duplicate_paths_appear_once(paths, linux_x64, world):
    world.add_library("com/google/guava/guava/31.1-jre/guava-31.1-jre.jar")
    world.add_library("com/google/guava/guava/31.1-jre/guava-31.1-jre.jar")
    meta = VersionMeta.from_dict(world.meta_document())

    assert len(classpath_entries(meta, paths, linux_x64)) == 2


def test_separator_per_os(paths, linux_x64, windows_x64, world):
    world.add_library("com/mojang/brigadier/1.1.8/brigadier-1.1.8.jar")
    meta = VersionMeta.from_dict(world.meta_document())

    linux = build_classpath(meta, paths, linux_x64)
    windows = build_classpath(meta, paths, windows_x64)

    assert linux.split(":") == [str(e) for e in classpath_entries(meta, paths, linux_x64)]
    assert windows.split(";") == [str(e) for e in classpath_entries(meta, paths, windows_x64)]


def test_client_only(paths, linux_x64, world):
    meta = VersionMeta.from_dict(world.meta_document())

    assert build_classpath(meta, paths, linux_x64) == str(paths.versions_dir / "1.20" / "1.20.jar")
