import argparse
import asyncio
import logging
import pathlib
import shlex
import sys
from typing import List, Optional

from tqdm.asyncio import tqdm

from .classpath import build_classpath
from .config import load_config
from .download import DownloadExecutor, DownloadItem
from .errors import LauncherError
from .http import ContentFetcher
from .launch import build_launch_command
from .natives import extract_natives
from .plan import InstallPlanBuilder
from .rules import Platform

log = logging.getLogger('mclauncher')


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='mclauncher', description='Install a game version and print how to launch it.')
    parser.add_argument('version', nargs='?', help="version id (default: 'version' from launcher_config.json, else latest release)")
    parser.add_argument('--config', type=pathlib.Path, default=pathlib.Path.cwd(),
                        help='directory holding launcher_config.json and config.json')
    parser.add_argument('--base-dir', type=pathlib.Path, help='override the data directory')
    parser.add_argument('--refresh-manifest', action='store_true', help='replace the cached version manifest first')
    parser.add_argument('--no-runtime', action='store_true', help='do not download a Java runtime')
    parser.add_argument('--print-command', action='store_true', help='print the full launch command instead of the classpath')
    parser.add_argument('--verbose', '-v', action='store_true', help='debug logging')
    return parser.parse_args(argv)


async def run_plan(executor: DownloadExecutor, plan: List[DownloadItem], desc: str):
    pbar = tqdm(total=len(plan), desc=desc, unit="file")
    try:
        async for event in executor.run(plan):
            pbar.update(1)
            pbar.set_postfix_str(event.url.rsplit('/', 1)[-1][:40])
    finally:
        pbar.close()


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = load_config(args.config.resolve(), base_dir=args.base_dir)
        platform = Platform.current()
        log.info(f"Detected OS: {platform.os_name.value}, Arch: {platform.arch.value}")
        log.info(f"Data directory: {config.paths.base_dir}")
        install_runtime = config.settings.install_runtime and not args.no_runtime

        async with ContentFetcher() as fetcher:
            executor = DownloadExecutor(fetcher)
            builder = InstallPlanBuilder(config.paths, fetcher, platform=platform, executor=executor)

            if args.refresh_manifest:
                manifest = await builder.manifest_resolver.refresh()
            else:
                manifest = await builder.manifest_resolver.resolve()

            version_id = args.version or config.version or manifest.latest_release_id
            log.info(f"Preparing version {version_id}...")
            meta = await builder.meta_resolver.resolve(manifest.find(version_id))
            plan = await builder.build_for_meta(meta, install_runtime=install_runtime)
            await run_plan(executor, plan, desc=f"Installing {version_id}")
            await extract_natives(meta, config.paths, platform)

        if args.print_command:
            java_path = builder.runtime_resolver.get_java_path(meta.java_major_version)
            command = build_launch_command(
                meta, config.paths, platform, config.account, config.settings,
                java_path=java_path, game_dir=config.paths.base_dir,
            )
            print(shlex.join(command))
        else:
            print(build_classpath(meta, config.paths, platform))
        return 0
    except LauncherError as e:
        log.error(str(e))
        log.debug("Failure details", exc_info=True)
        return 1


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        log.info("Cancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    run()
