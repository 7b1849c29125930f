import pytest

from mclauncher.hashing import HashSpec
from mclauncher.rules import (
    Arch,
    OsName,
    Platform,
    Rule,
    RuleAction,
    arch_tokens_allowed,
    is_library_included,
    natives_classifier_allowed,
    parse_rules,
    rules_allow,
)
from mclauncher.version_meta import ArtifactRef, Library

LINUX = Platform(OsName.LINUX, Arch.X86_64)
WINDOWS = Platform(OsName.WINDOWS, Arch.X86_64)
MACOS = Platform(OsName.MACOS, Arch.X86_64)
MACOS_ARM = Platform(OsName.MACOS, Arch.AARCH64)
LINUX_ARM = Platform(OsName.LINUX, Arch.AARCH64)


def make_library(path, rules=None):
    artifact = ArtifactRef(relative_path=path, url=f"https://libraries.minecraft.net/{path}", hash=HashSpec.sha1("0" * 40))
    return Library(name=path, artifact=artifact, rules=parse_rules(rules))


def test_allow_linux_rule():
    library = make_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1.jar", [{"action": "allow", "os": {"name": "linux"}}])

    assert is_library_included(library, LINUX)
    assert not is_library_included(library, WINDOWS)
    assert not is_library_included(library, MACOS)


def test_no_rules_included_everywhere():
    library = make_library("com/mojang/brigadier/1.1.8/brigadier-1.1.8.jar")

    for current in (LINUX, WINDOWS, MACOS, MACOS_ARM, LINUX_ARM):
        assert is_library_included(library, current)


def test_rule_without_os_matches_any_os():
    assert rules_allow(parse_rules([{"action": "allow"}]), WINDOWS)


def test_empty_match_is_implicit_deny():
    rules = parse_rules([{"action": "allow", "os": {"name": "osx"}}])
    assert not rules_allow(rules, LINUX)


def test_matching_disallow_excludes():
    rules = parse_rules([{"action": "allow"}, {"action": "disallow", "os": {"name": "osx"}}])

    assert rules_allow(rules, LINUX)
    assert not rules_allow(rules, MACOS)


def test_feature_rules_never_match():
    rules = parse_rules([{"action": "allow", "features": {"is_demo_user": True}}])
    assert not rules_allow(rules, LINUX)


def test_rule_arch():
    rule = Rule.from_dict({"action": "allow", "os": {"name": "windows", "arch": "x86"}})

    assert rule == Rule(RuleAction.ALLOW, OsName.WINDOWS, Arch.X86)
    assert rule.matches(Platform(OsName.WINDOWS, Arch.X86))
    assert not rule.matches(WINDOWS)


@pytest.mark.parametrize("path,current,expected", [
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar", LINUX, True),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar", WINDOWS, False),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-macos.jar", MACOS, True),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-macos.jar", MACOS_ARM, False),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-macos-arm64.jar", MACOS_ARM, True),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-macos-arm64.jar", MACOS, False),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-windows-x86.jar", WINDOWS, False),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-windows-x86.jar", Platform(OsName.WINDOWS, Arch.X86), True),
    ("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1.jar", MACOS_ARM, True),
])
def test_natives_classifier(path, current, expected):
    assert natives_classifier_allowed(path, current) is expected


@pytest.mark.parametrize("path,current,expected", [
    ("io/netty/netty-transport-native-epoll/4.1.82/netty-transport-native-epoll-4.1.82-linux-x86_64.jar", LINUX, True),
    ("io/netty/netty-transport-native-epoll/4.1.82/netty-transport-native-epoll-4.1.82-linux-x86_64.jar", LINUX_ARM, False),
    ("io/netty/netty-transport-native-epoll/4.1.82/netty-transport-native-epoll-4.1.82-linux-aarch_64.jar", LINUX, False),
    ("io/netty/netty-transport-native-epoll/4.1.82/netty-transport-native-epoll-4.1.82-linux-aarch_64.jar", LINUX_ARM, True),
    ("com/mojang/text2speech/1.16.7/text2speech-1.16.7.jar", LINUX_ARM, True),
])
def test_arch_tokens(path, current, expected):
    assert arch_tokens_allowed(path, current) is expected


def test_rules_and_path_filters_are_combined():
    # rule says linux, path says windows natives: both must pass
    library = make_library(
        "org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-windows.jar",
        [{"action": "allow", "os": {"name": "linux"}}],
    )

    assert not is_library_included(library, LINUX)
    assert not is_library_included(library, WINDOWS)


def test_evaluation_is_pure():
    library = make_library("org/lwjgl/lwjgl/3.3.1/lwjgl-3.3.1-natives-linux.jar", [{"action": "allow", "os": {"name": "linux"}}])

    results = {is_library_included(library, LINUX) for _ in range(5)}
    assert results == {True}


def test_unknown_os_name_is_rejected():
    with pytest.raises(ValueError):
        Rule.from_dict({"action": "allow", "os": {"name": "beos"}})
