"""Platform rule evaluation for libraries and launch arguments."""

import platform
import re
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import ConfigError, FormatError
from .models import PlatformRule


DEFAULT_FEATURES: Dict[str, bool] = {
    "is_demo_user": False,
    "has_custom_resolution": False,
    "has_quick_plays_support": False,
    "is_quick_play_singleplayer": False,
    "is_quick_play_multiplayer": False,
    "is_quick_play_realms": False,
}

# platform.system() -> (platform key, rule OS name)
_SYSTEMS = {
    "darwin": ("macos", "osx"),
    "windows": ("windows", "windows"),
    "linux": ("linux", "linux"),
}

# normalized arch -> (rule arch token, native classifier token)
_ARCHES = {
    "x64": ("x86_64", "64"),
    "arm64": ("aarch64", "arm64"),
}

_MACHINES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


class PlatformContext(BaseModel):
    """What the current machine looks like to version rules.

    ``features`` is only set when evaluating argument rules; library rules
    ignore feature constraints.
    """

    model_config = ConfigDict(frozen=True)

    platform: str
    arch: str
    os_name: str
    rule_arch: str
    native_arch: str
    features: Optional[Dict[str, bool]] = None

    @classmethod
    def create(cls, system: str, machine: str) -> "PlatformContext":
        system = system.lower()
        machine = machine.lower()
        if system not in _SYSTEMS:
            raise ConfigError(f"Unsupported platform: {system}")
        if machine not in _MACHINES:
            raise ConfigError(f"Unsupported architecture: {machine}")
        platform_key, os_name = _SYSTEMS[system]
        arch = _MACHINES[machine]
        rule_arch, native_arch = _ARCHES[arch]
        return cls(platform=platform_key, arch=arch, os_name=os_name,
                   rule_arch=rule_arch, native_arch=native_arch)

    @classmethod
    def current(cls) -> "PlatformContext":
        return cls.create(platform.system(), platform.machine())

    @property
    def runtime_key(self) -> str:
        return f"{self.platform}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.platform == "windows"

    def with_features(self, features: Optional[Dict[str, bool]] = None) -> "PlatformContext":
        merged = dict(DEFAULT_FEATURES)
        merged.update(features or {})
        return self.model_copy(update={"features": merged})


def matches(rule: PlatformRule, context: PlatformContext) -> bool:
    """Check whether every constraint of ``rule`` holds in ``context``."""
    if rule.os is not None:
        if rule.os.name and rule.os.name != context.os_name:
            return False
        if rule.os.arch:
            try:
                if not re.search(rule.os.arch, context.rule_arch):
                    return False
            except re.error as e:
                raise FormatError(f"Invalid arch pattern in rule: {rule.os.arch!r}") from e

    if context.features is not None:
        for name, expected in rule.features.items():
            if context.features.get(name, False) != expected:
                return False

    return True


def evaluate(rules: Iterable[PlatformRule], context: PlatformContext) -> bool:
    """Fold a rule list into allow/deny.

    No rules means allowed. Otherwise the result starts as denied and every
    matching rule overwrites it with its own action, so the last match wins.
    """
    rules = list(rules)
    if not rules:
        return True

    allowed = False
    for rule in rules:
        if matches(rule, context):
            allowed = rule.allows
    return allowed
