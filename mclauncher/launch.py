import logging
import pathlib
from typing import Dict, Iterable, List

from . import __version__
from .classpath import build_classpath
from .config import Account, LauncherPaths, Settings
from .replacer import replace_text
from .rules import OsName, Platform, rules_allow
from .version_meta import Argument, ConditionalArgument, SimpleArgument, VersionMeta

log = logging.getLogger(__name__)

LAUNCHER_NAME = 'mclauncher'

# https://github.com/brucethemoose/Minecraft-Performance-Flags-Benchmarks
OPTIMIZED_FLAGS = [
    '-XX:+UnlockExperimentalVMOptions',
    '-XX:+UnlockDiagnosticVMOptions',
    '-XX:+AlwaysActAsServerClassMachine',
    '-XX:+AlwaysPreTouch',
    '-XX:+DisableExplicitGC',
    '-XX:+UseNUMA',
    '-XX:NmethodSweepActivity=1',
    '-XX:ReservedCodeCacheSize=400M',
    '-XX:NonNMethodCodeHeapSize=12M',
    '-XX:ProfiledCodeHeapSize=194M',
    '-XX:NonProfiledCodeHeapSize=194M',
    '-XX:-DontCompileHugeMethods',
    '-XX:MaxNodeLimit=240000',
    '-XX:NodeLimitFudgeFactor=8000',
    '-XX:+UseVectorCmov',
    '-XX:+PerfDisableSharedMem',
    '-XX:+UseFastUnorderedTimeStamps',
    '-XX:+UseCriticalJavaThreadPriority',
    '-XX:ThreadPriorityPolicy=1',
    '-XX:AllocatePrefetchStyle=3',
    '-XX:+UseShenandoahGC',
    '-XX:ShenandoahGCMode=iu',
    '-XX:ShenandoahGuaranteedGCInterval=1000000',
]

LEGACY_JVM_ARGUMENTS = [
    '-Djava.library.path=${natives_directory}',
    '-cp',
    '${classpath}',
]


def memory_flags(settings: Settings, platform: Platform) -> List[str]:
    flags = [f"-Xmx{settings.memory}", f"-Xms{settings.memory}"]
    if settings.optimize_jvm:
        flags.extend(OPTIMIZED_FLAGS)
        if platform.os_name is OsName.LINUX:
            flags.append('-XX:+UseTransparentHugePages')
    if platform.os_name is OsName.MACOS:
        flags.append('-XstartOnFirstThread')
    return flags


def expand_arguments(arguments: Iterable[Argument], replacements: Dict[str, str], platform: Platform) -> List[str]:
    expanded = []
    for argument in arguments:
        if isinstance(argument, SimpleArgument):
            expanded.append(replace_text(argument.value, replacements))
        elif isinstance(argument, ConditionalArgument):
            if rules_allow(argument.rules, platform):
                expanded.extend(replace_text(value, replacements) for value in argument.values)
        else:
            raise TypeError(f"Unsupported argument {argument!r}")
    return expanded


def placeholder_values(
    meta: VersionMeta,
    paths: LauncherPaths,
    platform: Platform,
    account: Account,
    game_dir: pathlib.Path,
) -> Dict[str, str]:
    return {
        '${natives_directory}': str(paths.natives_dir(meta.id)),
        '${library_directory}': str(paths.libraries_dir),
        '${classpath_separator}': platform.os_name.classpath_separator,
        '${launcher_name}': LAUNCHER_NAME,
        '${launcher_version}': __version__,
        '${classpath}': build_classpath(meta, paths, platform),
        '${auth_player_name}': account.username,
        '${version_name}': meta.id,
        '${game_directory}': str(game_dir),
        '${assets_root}': str(paths.assets_dir),
        '${game_assets}': str(paths.assets_dir),
        '${assets_index_name}': meta.assets_id,
        '${auth_uuid}': account.uuid,
        '${auth_access_token}': account.access_token,
        '${auth_session}': account.access_token,
        '${clientid}': f"{LAUNCHER_NAME}/{__version__}",
        '${auth_xuid}': account.xuid,
        '${user_type}': account.user_type,
        '${user_properties}': '{}',
        '${version_type}': meta.type,
    }


def build_launch_command(
    meta: VersionMeta,
    paths: LauncherPaths,
    platform: Platform,
    account: Account,
    settings: Settings,
    java_path: pathlib.Path,
    game_dir: pathlib.Path,
) -> List[str]:
    """Assembles the full java invocation for a version. Spawning it is the caller's job."""
    replacements = placeholder_values(meta, paths, platform, account, game_dir)

    if meta.arguments is not None:
        jvm_args = expand_arguments(meta.arguments.jvm, replacements, platform)
        game_args = expand_arguments(meta.arguments.game, replacements, platform)
    else:
        jvm_args = [replace_text(arg, replacements) for arg in LEGACY_JVM_ARGUMENTS]
        game_args = [replace_text(arg, replacements) for arg in (meta.legacy_arguments or '').split()]

    flags = memory_flags(settings, platform)
    # modern metas repeat -XstartOnFirstThread in their own jvm arguments
    jvm_args = [arg for arg in jvm_args if arg not in flags]

    command = [
        str(java_path),
        *flags,
        *jvm_args,
        meta.main_class,
        *game_args,
    ]
    log.debug(f"Launch command has {len(command)} arguments")
    return command
