import asyncio
import enum
import logging
import os
import pathlib
import shutil
import tarfile
import tempfile
import zipfile
from typing import Iterable, Optional, Tuple

from .errors import LauncherIOError, UnsupportedContainerError

log = logging.getLogger(__name__)


class ContainerFormat(enum.Enum):
    ZIP = 'zip'
    TAR_GZ = 'tar.gz'


def container_format_for(url: str) -> Optional[ContainerFormat]:
    """Infers the archive type from the URL suffix, ignoring any query string."""
    path = url.split('?', 1)[0].split('#', 1)[0].lower()
    if path.endswith('.zip'):
        return ContainerFormat.ZIP
    if path.endswith('.tar.gz') or path.endswith('.tgz'):
        return ContainerFormat.TAR_GZ
    return None


def require_container_format(url: str) -> ContainerFormat:
    container = container_format_for(url)
    if container is None:
        raise UnsupportedContainerError(url)
    return container


def _extract_zip(zip_path: pathlib.Path, dest_path: pathlib.Path):
    with zipfile.ZipFile(zip_path, 'r') as zip_ref:
        zip_ref.extractall(dest_path)


def _extract_tar(tar_path: pathlib.Path, dest_path: pathlib.Path):
    with tarfile.open(tar_path, "r:gz") as tar_ref:
        if hasattr(tarfile, 'data_filter'):
            tar_ref.extractall(path=dest_path, filter='data')
        else:
            tar_ref.extractall(path=dest_path)


def _extract_into(archive_path: pathlib.Path, container: ContainerFormat, dest_dir: pathlib.Path):
    """Unpacks into a scratch directory beside dest_dir, then moves each
    top-level entry into place so no half-extracted tree is ever visible."""
    scratch = pathlib.Path(tempfile.mkdtemp(prefix='.extract-', dir=dest_dir))
    try:
        if container is ContainerFormat.ZIP:
            _extract_zip(archive_path, scratch)
        else:
            _extract_tar(archive_path, scratch)

        for entry in scratch.iterdir():
            target = dest_dir / entry.name
            if target.exists():
                log.debug(f"Replacing existing {target}")
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            os.replace(entry, target)
    finally:
        shutil.rmtree(scratch, ignore_errors=True)


async def _run_extraction(label: str, archive_path: pathlib.Path, dest_dir: pathlib.Path, func, *args):
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, func, *args)
    except (zipfile.BadZipFile, tarfile.TarError) as e:
        log.error(f"Failed to read {label} archive {archive_path}: {e}")
        raise LauncherIOError(archive_path, f"corrupt {label} archive: {e}") from e
    except OSError as e:
        raise LauncherIOError(dest_dir, f"extraction failed: {e}") from e


async def extract_archive(archive_path: pathlib.Path, container: ContainerFormat, dest_dir: pathlib.Path):
    """Extracts a zip or gzip+tar archive into dest_dir without blocking the event loop."""
    log.info(f"Extracting {container.value} archive to {dest_dir}...")
    await _run_extraction(container.value, archive_path, dest_dir, _extract_into, archive_path, container, dest_dir)
    log.info('Extraction complete.')


def _extract_zip_files(zip_path: pathlib.Path, dest_path: pathlib.Path, exclude: Tuple[str, ...]):
    with zipfile.ZipFile(zip_path, 'r') as zip_ref:
        for member in zip_ref.infolist():
            if member.is_dir() or member.filename.upper().startswith(exclude):
                continue
            zip_ref.extract(member, dest_path)


async def extract_jar(jar_path: pathlib.Path, dest_dir: pathlib.Path, exclude: Iterable[str] = ()):
    """Merges the files of a jar into dest_dir, skipping entries under any of
    the `exclude` prefixes (compared case-insensitively). Unlike
    extract_archive, entries already in dest_dir from other jars are kept."""
    prefixes = tuple(prefix.upper() for prefix in exclude)
    log.debug(f"Extracting {jar_path.name} into {dest_dir}")
    await _run_extraction('jar', jar_path, dest_dir, _extract_zip_files, jar_path, dest_dir, prefixes)
