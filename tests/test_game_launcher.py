"""Tests for classpath assembly and launch argument building."""

from pathlib import Path

import pytest

from packlauncher.auth import Credential
from packlauncher.core.game_launcher import GameLauncher
from packlauncher.exceptions import ConfigError
from packlauncher.versions.models import VersionDescriptor
from packlauncher.versions.rules import PlatformContext


def descriptor(**document) -> VersionDescriptor:
    return VersionDescriptor.parse(document)


@pytest.fixture
def launcher(config, linux) -> GameLauncher:
    return GameLauncher(config, linux)


@pytest.fixture
def steve() -> Credential:
    return Credential(name="Steve", uuid="uuid123", access_token="tok", xuid="42")


def test_merge_with_inheritance_concatenates():
    assert GameLauncher.merge_arguments(["-Xmx1g"], ["-Dfoo=bar"], inherits=True) == ["-Xmx1g", "-Dfoo=bar"]


def test_merge_without_inheritance_overlay_wins():
    assert GameLauncher.merge_arguments(["-Y"], ["-X"], inherits=False) == ["-X"]
    assert GameLauncher.merge_arguments(["-Y"], [], inherits=False) == ["-Y"]


def test_placeholders_replace_known_names_only():
    values = {"auth_player_name": "Steve"}
    assert GameLauncher.apply_placeholders("--username ${auth_player_name}", values) == "--username Steve"
    assert GameLauncher.apply_placeholders("${unknown_key}", values) == "${unknown_key}"
    assert GameLauncher.apply_placeholders("-Dx=${auth_player_name}/${auth_player_name}", values) == "-Dx=Steve/Steve"


def test_placeholder_values_are_not_substituted_again():
    values = {"a": "${b}", "b": "nope"}
    assert GameLauncher.apply_placeholders("${a}", values) == "${b}"


def test_conditional_arguments_follow_rules_and_features(launcher):
    version = descriptor(arguments={"game": [
        "--fixed",
        {"rules": [{"action": "allow", "features": {"is_demo_user": True}}], "value": "--demo"},
        {"rules": [{"action": "allow", "os": {"name": "linux"}}], "value": ["--linux", "yes"]},
        {"rules": [{"action": "allow", "os": {"name": "osx"}}], "value": "-XstartOnFirstThread"},
    ]})
    assert launcher.collect_arguments(version, "game") == ["--fixed", "--linux", "yes"]
    assert launcher.collect_arguments(version, "jvm") == []


def test_build_arguments_orders_jvm_flags_main_class_and_game(launcher, config, steve, tmp_path):
    base = descriptor(
        id="1.20.1", type="release", mainClass="net.minecraft.client.main.Main",
        assetIndex={"id": "5"},
        arguments={"jvm": ["-Djava.library.path=${natives_directory}"],
                   "game": ["--username", "${auth_player_name}", "--assetIndex", "${assets_index_name}"]},
    )
    overlay = descriptor(
        id="1.20.1-forge-47.2.0", inheritsFrom="1.20.1", mainClass="cpw.mods.bootstraplauncher.BootstrapLauncher",
        arguments={"jvm": ["-DlibraryDirectory=${library_directory}"],
                   "game": ["--launchTarget", "forgeclient"]},
    )
    natives = tmp_path / "natives" / "1"

    argv = launcher.build_arguments(base, overlay, steve, natives, ["/a.jar", "/b.jar"])

    main_at = argv.index("cpw.mods.bootstraplauncher.BootstrapLauncher")
    assert argv[:4] == [f"-Djava.library.path={natives}", f"-DlibraryDirectory={config.libraries_dir}",
                        "-cp", "/a.jar:/b.jar"]
    assert argv[4:main_at] == config.jvm_flags.split()
    assert argv[main_at + 1:] == ["--username", "Steve", "--assetIndex", "5", "--launchTarget", "forgeclient"]
    assert argv.count("-cp") == 1


def test_existing_classpath_flag_is_not_duplicated(launcher, steve, tmp_path):
    base = descriptor(id="1.20.1", mainClass="Main",
                      arguments={"jvm": ["-cp", "${classpath}"], "game": ["--x"]})
    overlay = descriptor(id="1.20.1-forge-47.2.0", inheritsFrom="1.20.1")

    argv = launcher.build_arguments(base, overlay, steve, tmp_path, ["/a.jar"])

    assert argv[:2] == ["-cp", "/a.jar"]
    assert argv.count("-cp") == 1
    assert "-classpath" not in argv


def test_windows_uses_semicolon_separator(config, steve, tmp_path):
    launcher = GameLauncher(config, PlatformContext.create("Windows", "AMD64"))
    base = descriptor(id="1.20.1", mainClass="Main")
    argv = launcher.build_arguments(base, descriptor(), steve, tmp_path, ["C:/a.jar", "C:/b.jar"])
    assert argv[argv.index("-cp") + 1] == "C:/a.jar;C:/b.jar"


def test_legacy_argument_string_fallback(launcher, steve, tmp_path):
    base = descriptor(id="1.12.2", mainClass="net.minecraft.client.main.Main",
                      minecraftArguments="--username ${auth_player_name}  --version ${version_name}")
    tweaker = descriptor(id="1.12.2-forge", minecraftArguments="--tweakClass net.minecraftforge.Tweaker")
    inheriting = descriptor(id="1.12.2-forge", inheritsFrom="1.12.2",
                            minecraftArguments="--tweakClass net.minecraftforge.Tweaker")

    replaced = launcher.build_arguments(base, tweaker, steve, tmp_path, ["/a.jar"])
    merged = launcher.build_arguments(base, inheriting, steve, tmp_path, ["/a.jar"])

    assert replaced[replaced.index("net.minecraft.client.main.Main") + 1:] == \
        ["--tweakClass", "net.minecraftforge.Tweaker"]
    assert merged[merged.index("net.minecraft.client.main.Main") + 1:] == \
        ["--username", "Steve", "--version", "1.12.2-forge", "--tweakClass", "net.minecraftforge.Tweaker"]


def test_missing_main_class_raises(launcher, steve, tmp_path):
    with pytest.raises(ConfigError):
        launcher.build_arguments(descriptor(id="a"), descriptor(id="b"), steve, tmp_path, ["/a.jar"])


def test_placeholder_table_defaults_for_empty_credential(launcher, tmp_path):
    values = launcher.placeholders(descriptor(id="1.20.1", type="release"), descriptor(id="1.20.1-forge"),
                                   Credential(), tmp_path, "/a.jar")
    assert values["auth_player_name"] == "Player"
    assert values["auth_uuid"] == "0" * 32
    assert values["auth_access_token"] == "0"
    assert values["auth_session"] == "token:0:" + "0" * 32
    assert values["version_name"] == "1.20.1-forge"
    assert values["version_type"] == "release"
    assert values["clientid"] == ""
    assert values["user_properties"] == "{}"


def test_placeholder_table_uses_credential(launcher, steve, tmp_path):
    values = launcher.placeholders(descriptor(id="1.20.1"), descriptor(id="1.20.1-forge", type="snapshot"),
                                   steve, tmp_path, "/a.jar")
    assert values["auth_session"] == "token:tok:uuid123"
    assert values["xuid"] == values["auth_xuid"] == "42"
    assert values["user_type"] == "msa"
    assert values["version_type"] == "snapshot"


def test_assemble_classpath_orders_and_deduplicates(launcher, config, tmp_path):
    def touch(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
        return path

    first = touch(config.libraries_dir / "a" / "a.jar")
    second = touch(config.libraries_dir / "b" / "b.jar")
    absent = config.libraries_dir / "c" / "c.jar"
    base_jar = touch(launcher.version_jar("1.20.1"))
    overlay_jar = touch(launcher.version_jar("1.20.1-forge-47.2.0"))
    overlay = descriptor(id="1.20.1-forge-47.2.0")

    classpath = launcher.assemble_classpath([first, second, absent, first], "1.20.1", overlay)

    assert classpath == [str(first), str(second), str(base_jar), str(overlay_jar)]


def test_assemble_classpath_prefers_declared_jar(launcher, config):
    declared = launcher.version_jar("custom")
    declared.parent.mkdir(parents=True)
    declared.write_bytes(b"")
    overlay = descriptor(id="1.20.1-forge-47.2.0", jar="custom")
    assert launcher.assemble_classpath([], "1.20.1", overlay) == [str(declared)]


def test_empty_classpath_raises(launcher):
    with pytest.raises(ConfigError):
        launcher.assemble_classpath([], "1.20.1", descriptor(id="1.20.1-forge-47.2.0"))


def test_installed_overlay_directory_wins_over_metadata_id(launcher, config, tmp_path):
    base_jar = launcher.version_jar("1.20.1")
    installed_jar = launcher.version_jar("forge-47.2.0-custom")
    for jar in (base_jar, installed_jar):
        jar.parent.mkdir(parents=True)
        jar.write_bytes(b"")
    overlay = descriptor(id="1.20.1-forge-47.2.0")

    classpath = launcher.assemble_classpath([], "1.20.1", overlay, "forge-47.2.0-custom")
    values = launcher.placeholders(descriptor(id="1.20.1"), overlay, Credential(), tmp_path, "",
                                   "forge-47.2.0-custom")

    assert classpath == [str(base_jar), str(installed_jar)]
    assert values["version_name"] == "forge-47.2.0-custom"
