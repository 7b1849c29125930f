"""Platform filtering for libraries and arguments.

Two independent predicates decide whether a library applies to the running
platform, and both must pass:

* `rules_allow` evaluates the manifest's explicit rule list. A library that
  declares rules is included only if some `allow` rule matches.
* `artifact_path_allowed` inspects the artifact path for a natives classifier
  or an architecture token that names another platform.

Manifests are inconsistent about which mechanism they use, so neither one is
trusted alone.
"""

import enum
import logging
import platform
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

log = logging.getLogger(__name__)


class OsName(enum.Enum):
    LINUX = 'linux'
    MACOS = 'osx'
    WINDOWS = 'windows'

    @property
    def adoptium(self) -> str:
        return 'mac' if self is OsName.MACOS else self.value

    @property
    def classpath_separator(self) -> str:
        return ';' if self is OsName.WINDOWS else ':'


class Arch(enum.Enum):
    X86_64 = 'x86_64'
    X86 = 'x86'
    AARCH64 = 'aarch64'
    ARM32 = 'arm32'

    @property
    def adoptium(self) -> str:
        return {
            Arch.X86_64: 'x64',
            Arch.X86: 'x32',
            Arch.AARCH64: 'aarch64',
            Arch.ARM32: 'arm',
        }[self]


def get_os_name() -> OsName:
    """Gets the current OS."""
    system = platform.system()
    if system == 'Windows': return OsName.WINDOWS
    elif system == 'Darwin': return OsName.MACOS
    elif system == 'Linux': return OsName.LINUX
    else: raise OSError(f"Unsupported platform: {system}")


def get_arch_name() -> Arch:
    """Gets the current CPU architecture."""
    machine = platform.machine().lower()
    if machine in ['amd64', 'x86_64']: return Arch.X86_64
    elif machine in ['i386', 'i686', 'x86']: return Arch.X86
    elif machine in ['arm64', 'aarch64']: return Arch.AARCH64
    elif machine.startswith('arm') and '64' not in machine: return Arch.ARM32
    else:
        log.warning(f"Unsupported architecture: {platform.machine()}. Falling back to 'x86_64'. This might cause issues.")
        return Arch.X86_64


@dataclass(frozen=True)
class Platform:
    os_name: OsName
    arch: Arch

    @classmethod
    def current(cls) -> 'Platform':
        return cls(get_os_name(), get_arch_name())


class RuleAction(enum.Enum):
    ALLOW = 'allow'
    DISALLOW = 'disallow'


@dataclass(frozen=True)
class Rule:
    action: RuleAction = RuleAction.ALLOW
    os_name: Optional[OsName] = None
    os_arch: Optional[Arch] = None
    has_features: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Rule':
        action = RuleAction(data.get('action', 'allow'))
        os_data = data.get('os') or {}
        os_name = OsName(os_data['name']) if 'name' in os_data else None
        os_arch = _ARCH_TOKENS.get(os_data['arch']) if 'arch' in os_data else None
        return cls(
            action=action,
            os_name=os_name,
            os_arch=os_arch,
            has_features=bool(data.get('features')),
        )

    def matches(self, current: Platform) -> bool:
        # feature-gated rules (demo user, custom resolution...) never apply to an install
        if self.has_features:
            return False
        if self.os_name is not None and self.os_name is not current.os_name:
            return False
        if self.os_arch is not None and self.os_arch is not current.arch:
            return False
        return True


def parse_rules(data: Optional[List[Dict[str, Any]]]) -> Optional[List[Rule]]:
    if data is None:
        return None
    return [Rule.from_dict(rule) for rule in data]


def rules_allow(rules: Optional[Iterable[Rule]], current: Platform) -> bool:
    """Allow-list with implicit deny: no rules means included; otherwise at
    least one matching allow rule is required and no matching disallow."""
    if rules is None:
        return True
    allowed = False
    for rule in rules:
        if not rule.matches(current):
            continue
        if rule.action is RuleAction.DISALLOW:
            return False
        allowed = True
    return allowed


# Tokens found in artifact paths and rule `os.arch` values
_ARCH_TOKENS = {
    'x86_64': Arch.X86_64,
    'x64': Arch.X86_64,
    'amd64': Arch.X86_64,
    'x86': Arch.X86,
    'i386': Arch.X86,
    'aarch64': Arch.AARCH64,
    'aarch_64': Arch.AARCH64,
    'arm64': Arch.AARCH64,
    'arm32': Arch.ARM32,
}

_NATIVES_OS = {
    'linux': OsName.LINUX,
    'macos': OsName.MACOS,
    'osx': OsName.MACOS,
    'windows': OsName.WINDOWS,
}

# `${arch}` in legacy natives classifiers expands to a bitness
_NATIVES_ARCH = dict(_ARCH_TOKENS, **{'64': Arch.X86_64, '32': Arch.X86})

_NATIVES_RE = re.compile(r'natives-(linux|macos|osx|windows)(?:-(\w+))?')
_TOKEN_SPLIT_RE = re.compile(r'[/\-]')


def _strip_extension(path: str) -> str:
    return path[:-4] if path.endswith('.jar') else path


def natives_classifier_allowed(path: str, current: Platform) -> bool:
    """A `natives-<os>[-<arch>]` classifier must name the current OS and
    architecture. A classifier without an arch suffix denotes x86_64."""
    match = _NATIVES_RE.search(_strip_extension(path))
    if match is None:
        return True
    os_token, arch_token = match.groups()
    if _NATIVES_OS[os_token] is not current.os_name:
        return False
    arch = _NATIVES_ARCH.get(arch_token, Arch.X86_64) if arch_token else Arch.X86_64
    return arch is current.arch


def arch_tokens_allowed(path: str, current: Platform) -> bool:
    """Every architecture token in the path (e.g. `x86_64`, `aarch_64`) must
    name the current architecture."""
    for token in _TOKEN_SPLIT_RE.split(_strip_extension(path)):
        arch = _ARCH_TOKENS.get(token)
        if arch is not None and arch is not current.arch:
            return False
    return True


def artifact_path_allowed(path: str, current: Platform) -> bool:
    return natives_classifier_allowed(path, current) and arch_tokens_allowed(path, current)


def is_artifact_included(library, artifact, current: Platform) -> bool:
    """Conjunction of the library's rule list and the path filters of one of its artifacts."""
    included = rules_allow(library.rules, current) and artifact_path_allowed(artifact.relative_path, current)
    if not included:
        log.debug(f"Skipping library {artifact.relative_path} on {current.os_name.value}/{current.arch.value}")
    return included


def is_library_included(library, current: Platform) -> bool:
    """Whether the library's main artifact belongs on the classpath.
    Entries that only ship native classifiers never do."""
    if library.artifact is None:
        return False
    return is_artifact_included(library, library.artifact, current)
