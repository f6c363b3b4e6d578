"""Game launcher: classpath and command line assembly."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..auth.models import Credential
from ..config import LauncherConfig
from ..exceptions import ConfigError
from ..versions.models import ConditionalArgument, VersionDescriptor
from ..versions.rules import PlatformContext, evaluate

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]*)\}")
CLASSPATH_FLAGS = ("-cp", "-classpath")

DEFAULT_PLAYER_NAME = "Player"
DEFAULT_UUID = "0" * 32
DEFAULT_ACCESS_TOKEN = "0"


@dataclass
class LaunchPlan:
    """Everything needed to start the game once, built fresh per launch."""
    executable: Path
    working_directory: Path
    classpath: List[str]
    jvm_arguments: List[str]
    tuning_flags: List[str]
    main_class: str
    game_arguments: List[str] = field(default_factory=list)

    @property
    def arguments(self) -> List[str]:
        return [*self.jvm_arguments, *self.tuning_flags, self.main_class, *self.game_arguments]


class GameLauncher:
    """Turns a base and an overlay descriptor into a java command line.

    Nothing here touches the network; only the classpath assembly looks at
    the filesystem to keep entries that actually exist.
    """

    def __init__(self, config: LauncherConfig, context: PlatformContext):
        self.config = config
        self.context = context
        self.argument_context = context.with_features()

    @property
    def classpath_separator(self) -> str:
        return ";" if self.context.is_windows else ":"

    def version_jar(self, version_id: str) -> Path:
        return self.config.versions_dir / version_id / f"{version_id}.jar"

    @staticmethod
    def split_arguments(raw: str) -> List[str]:
        """Split a flat legacy argument string on whitespace."""
        return raw.split()

    @staticmethod
    def merge_arguments(base: List[str], overlay: List[str], inherits: bool) -> List[str]:
        """Overlay extends base when it inherits from it, otherwise replaces it if non-empty."""
        if inherits:
            return [*base, *overlay]
        if overlay:
            return list(overlay)
        return list(base)

    def collect_arguments(self, descriptor: VersionDescriptor, side: str) -> List[str]:
        if descriptor.arguments is None:
            return []

        output = []
        for entry in getattr(descriptor.arguments, side):
            if isinstance(entry, str):
                output.append(entry)
            elif isinstance(entry, ConditionalArgument) and evaluate(entry.rules, self.argument_context):
                output.extend(entry.value)
        return output

    def assemble_classpath(self, library_files: Iterable[Path], base_id: str, overlay: VersionDescriptor,
                           overlay_id: Optional[str] = None) -> List[str]:
        """Ordered, deduplicated classpath of files that exist on disk.

        ``overlay_id`` is the installed directory name of the overlay and wins
        over the id written inside its metadata.
        """
        classpath: List[str] = []
        seen = set()

        def add(path: Path):
            entry = str(path)
            if entry not in seen and path.exists():
                seen.add(entry)
                classpath.append(entry)

        for path in library_files:
            add(path)
        add(self.version_jar(overlay.jar or base_id))
        add(self.version_jar(base_id))
        overlay_id = overlay_id or overlay.id
        if overlay_id:
            add(self.version_jar(overlay_id))

        if not classpath:
            raise ConfigError("Classpath is empty after resolving libraries and jars")
        return classpath

    def placeholders(self, base: VersionDescriptor, overlay: VersionDescriptor, credential: Credential,
                     natives_dir: Path, classpath: str, overlay_id: Optional[str] = None) -> Dict[str, str]:
        name = credential.name or DEFAULT_PLAYER_NAME
        uuid = credential.uuid or DEFAULT_UUID
        token = credential.access_token or DEFAULT_ACCESS_TOKEN
        version_type = overlay.type or base.type or "release"
        asset_index = base.assetIndex.id if base.assetIndex is not None else ""

        return {
            "auth_player_name": name,
            "version_name": overlay_id or overlay.id or base.id,
            "game_directory": str(self.config.game_dir),
            "assets_root": str(self.config.assets_dir),
            "game_assets": str(self.config.assets_dir),
            "assets_index_name": asset_index,
            "auth_uuid": uuid,
            "auth_access_token": token,
            "auth_session": f"token:{token}:{uuid}",
            "clientid": "",
            "xuid": credential.xuid,
            "auth_xuid": credential.xuid,
            "user_type": credential.user_type,
            "version_type": version_type,
            "natives_directory": str(natives_dir),
            "launcher_name": self.config.launcher_name,
            "launcher_version": self.config.launcher_version,
            "classpath": classpath,
            "classpath_separator": self.classpath_separator,
            "library_directory": str(self.config.libraries_dir),
            "user_properties": "{}",
        }

    @staticmethod
    def apply_placeholders(token: str, values: Dict[str, str]) -> str:
        """Replace every known ``${name}``; unknown names are left as written."""
        return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1), m.group(0)), token)

    def resolve_main_class(self, base: VersionDescriptor, overlay: VersionDescriptor) -> str:
        main_class = overlay.mainClass or base.mainClass
        if not main_class:
            raise ConfigError("Missing mainClass in installed version metadata")
        return main_class

    def build_plan(self, base: VersionDescriptor, overlay: VersionDescriptor, credential: Credential,
                   natives_dir: Path, classpath: List[str], executable: Path,
                   overlay_id: Optional[str] = None) -> LaunchPlan:
        inherits = bool(overlay.inheritsFrom)

        jvm = self.merge_arguments(self.collect_arguments(base, "jvm"),
                                   self.collect_arguments(overlay, "jvm"), inherits)
        game = self.merge_arguments(self.collect_arguments(base, "game"),
                                    self.collect_arguments(overlay, "game"), inherits)
        if not game:
            game = self.merge_arguments(self.split_arguments(base.minecraftArguments),
                                        self.split_arguments(overlay.minecraftArguments), inherits)

        joined = self.classpath_separator.join(classpath)
        values = self.placeholders(base, overlay, credential, natives_dir, joined, overlay_id)
        jvm = [self.apply_placeholders(arg, values) for arg in jvm]
        game = [self.apply_placeholders(arg, values) for arg in game]

        if not any(arg in CLASSPATH_FLAGS for arg in jvm):
            jvm.extend(["-cp", joined])

        return LaunchPlan(
            executable=executable,
            working_directory=self.config.game_dir,
            classpath=list(classpath),
            jvm_arguments=jvm,
            tuning_flags=self.split_arguments(self.config.jvm_flags),
            main_class=self.resolve_main_class(base, overlay),
            game_arguments=game,
        )

    def build_arguments(self, base: VersionDescriptor, overlay: VersionDescriptor, credential: Credential,
                        natives_dir: Path, classpath: List[str]) -> List[str]:
        """The full argv after the java executable."""
        plan = self.build_plan(base, overlay, credential, natives_dir, classpath, Path("java"))
        return plan.arguments

    def prepare_launch(self, base: VersionDescriptor, overlay: VersionDescriptor, credential: Credential,
                       natives_dir: Path, library_files: Iterable[Path], executable: Path,
                       base_id: Optional[str] = None, overlay_id: Optional[str] = None) -> LaunchPlan:
        """Assemble the classpath from disk and build the launch plan."""
        classpath = self.assemble_classpath(library_files, base_id or base.id, overlay, overlay_id)
        return self.build_plan(base, overlay, credential, natives_dir, classpath, executable, overlay_id)
