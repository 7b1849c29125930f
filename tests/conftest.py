"""Shared test fixtures for mclauncher."""

from pathlib import Path

import pytest

from helpers import FakeFetcher, VersionWorld
from mclauncher.config import LauncherPaths
from mclauncher.download import DownloadExecutor
from mclauncher.rules import Arch, OsName, Platform


@pytest.fixture
def paths(tmp_path: Path) -> LauncherPaths:
    """Launcher paths rooted in a temporary directory."""
    return LauncherPaths(tmp_path / "data")


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def executor(fetcher: FakeFetcher) -> DownloadExecutor:
    return DownloadExecutor(fetcher)


@pytest.fixture
def linux_x64() -> Platform:
    return Platform(OsName.LINUX, Arch.X86_64)


@pytest.fixture
def windows_x64() -> Platform:
    return Platform(OsName.WINDOWS, Arch.X86_64)


@pytest.fixture
def world(fetcher: FakeFetcher) -> VersionWorld:
    return VersionWorld(fetcher)
