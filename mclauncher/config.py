import json
import logging
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import ParseError
from .replacer import replace_text

log = logging.getLogger(__name__)

LAUNCHER_CONFIG_FILENAME = 'launcher_config.json'
USER_CONFIG_FILENAME = 'config.json'
DEFAULT_BASE_DIRNAME = '.mc_launcher_data'


@dataclass(frozen=True)
class LauncherPaths:
    """Every on-disk location the pipeline reads or writes, derived from one base directory."""
    base_dir: pathlib.Path

    @property
    def meta_dir(self) -> pathlib.Path:
        return self.base_dir / 'meta'

    @property
    def version_manifest_path(self) -> pathlib.Path:
        return self.meta_dir / 'version_manifest.json'

    @property
    def versions_meta_dir(self) -> pathlib.Path:
        return self.meta_dir / 'versions'

    def version_meta_path(self, version_id: str) -> pathlib.Path:
        return self.versions_meta_dir / f"{version_id}.json"

    @property
    def assets_dir(self) -> pathlib.Path:
        return self.base_dir / 'assets'

    @property
    def asset_indexes_dir(self) -> pathlib.Path:
        return self.assets_dir / 'indexes'

    @property
    def asset_objects_dir(self) -> pathlib.Path:
        return self.assets_dir / 'objects'

    @property
    def libraries_dir(self) -> pathlib.Path:
        return self.base_dir / 'libraries'

    @property
    def runtimes_dir(self) -> pathlib.Path:
        return self.base_dir / 'runtimes'

    @property
    def versions_dir(self) -> pathlib.Path:
        return self.base_dir / 'versions'

    def client_jar_path(self, version_id: str) -> pathlib.Path:
        return self.versions_dir / version_id / f"{version_id}.jar"

    def natives_dir(self, version_id: str) -> pathlib.Path:
        return self.versions_dir / version_id / f"{version_id}-natives"


@dataclass(frozen=True)
class Account:
    """Resolved account handed over by the authentication subsystem."""
    username: str = 'Player'
    uuid: str = '00000000-0000-0000-0000-000000000000'
    access_token: str = '00000000000000000000000000000000'
    xuid: str = '0'
    user_type: str = 'msa'


@dataclass(frozen=True)
class Settings:
    memory: str = '2G'
    optimize_jvm: bool = False
    install_runtime: bool = True


@dataclass
class LauncherConfig:
    paths: LauncherPaths
    version: Optional[str] = None
    account: Account = field(default_factory=Account)
    settings: Settings = field(default_factory=Settings)


def _read_json(path: pathlib.Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a JSON object")
    return data


def load_launcher_config(path: pathlib.Path) -> Dict[str, Any]:
    """Loads launcher_config.json, replacing ':thisdir:' with the file's directory.
    A missing file yields an empty config."""
    if not path.exists():
        log.debug(f"{path} not found, using defaults.")
        return {}
    try:
        raw = _read_json(path)
    except (ValueError, OSError) as e:
        log.error(f"Error parsing {path.name}: {e}")
        raise ParseError(str(path), str(e)) from e
    this_dir = str(path.parent.resolve())
    return {key: replace_text(value, {':thisdir:': this_dir}) for key, value in raw.items()}


def load_user_config(path: pathlib.Path) -> Dict[str, Any]:
    """Loads config.json. Unreadable user config falls back to defaults."""
    if not path.exists():
        return {}
    try:
        return _read_json(path)
    except (ValueError, OSError) as e:
        log.warning(f"Could not read {path.name}: {e}. Using defaults.")
        return {}


def account_from_config(cfg: Dict[str, Any]) -> Account:
    defaults = Account()
    return Account(
        username=cfg.get('auth_player_name') or defaults.username,
        uuid=cfg.get('auth_uuid') or defaults.uuid,
        access_token=cfg.get('auth_access_token') or defaults.access_token,
        xuid=cfg.get('auth_xuid') or defaults.xuid,
    )


def settings_from_config(cfg: Dict[str, Any]) -> Settings:
    defaults = Settings()
    return Settings(
        memory=str(cfg.get('memory') or defaults.memory),
        optimize_jvm=bool(cfg.get('optimize_jvm', defaults.optimize_jvm)),
        install_runtime=bool(cfg.get('install_runtime', defaults.install_runtime)),
    )


def load_config(config_dir: pathlib.Path, base_dir: Optional[pathlib.Path] = None) -> LauncherConfig:
    """Builds the launcher configuration from the files in config_dir.

    Precedence for the base directory: explicit argument, then `basepath` in
    launcher_config.json, then `<config_dir>/.mc_launcher_data`.
    """
    launcher_config = load_launcher_config(config_dir / LAUNCHER_CONFIG_FILENAME)
    user_config = load_user_config(config_dir / USER_CONFIG_FILENAME)

    if base_dir is None:
        base_dir = pathlib.Path(launcher_config.get('basepath', config_dir / DEFAULT_BASE_DIRNAME))

    return LauncherConfig(
        paths=LauncherPaths(base_dir.expanduser().resolve()),
        version=launcher_config.get('version'),
        account=account_from_config(user_config),
        settings=settings_from_config(user_config),
    )
