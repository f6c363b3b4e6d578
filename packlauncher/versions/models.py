"""Data models for version metadata, asset indexes and pack manifests.

Remote JSON is loosely typed, so every model here is lenient: a field that is
absent or has the wrong type falls back to its default (empty string, empty
list or map, zero, None) instead of failing validation. List and map fields
drop individual entries that are not JSON objects.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import FormatError


def objects_only(value: Any) -> Any:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict) and item]
    return value


def object_values_only(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: item for key, item in value.items() if isinstance(item, dict)}
    return value


class LenientModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def coerce_object(cls, data: Any) -> Any:
        if isinstance(data, (BaseModel, dict)):
            return data
        return {}

    @field_validator("*", mode="wrap")
    @classmethod
    def default_on_error(cls, value, handler, info):
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


class OsConstraint(LenientModel):
    name: str = ""
    arch: str = ""


class PlatformRule(LenientModel):
    action: str = ""
    os: Optional[OsConstraint] = None
    features: Dict[str, bool] = Field(default_factory=dict)

    @property
    def allows(self) -> bool:
        return self.action == "allow"


class DownloadArtifact(LenientModel):
    path: str = ""
    url: str = ""
    sha1: str = ""
    size: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.path or self.url or self.sha1 or self.size)


class LibraryDownloads(LenientModel):
    artifact: Optional[DownloadArtifact] = None
    classifiers: Dict[str, DownloadArtifact] = Field(default_factory=dict)

    @field_validator("classifiers", mode="before")
    @classmethod
    def keep_classifier_objects(cls, value: Any) -> Any:
        return object_values_only(value)

    @property
    def is_empty(self) -> bool:
        return (self.artifact is None or self.artifact.is_empty) and not self.classifiers


class LibraryEntry(LenientModel):
    name: str = ""
    url: str = ""
    rules: List[PlatformRule] = Field(default_factory=list)
    downloads: Optional[LibraryDownloads] = None
    natives: Dict[str, str] = Field(default_factory=dict)

    @field_validator("rules", mode="before")
    @classmethod
    def keep_rule_objects(cls, value: Any) -> Any:
        return objects_only(value)


class ConditionalArgument(LenientModel):
    """An argument entry that only applies when its rules allow it."""
    rules: List[PlatformRule] = Field(default_factory=list)
    value: List[str] = Field(default_factory=list)

    @field_validator("rules", mode="before")
    @classmethod
    def keep_rule_objects(cls, value: Any) -> Any:
        return objects_only(value)

    @field_validator("value", mode="before")
    @classmethod
    def normalize_value(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        return [str(value)]


ArgumentEntry = Union[str, ConditionalArgument]


class VersionArguments(LenientModel):
    game: List[ArgumentEntry] = Field(default_factory=list)
    jvm: List[ArgumentEntry] = Field(default_factory=list)

    @field_validator("game", "jvm", mode="before")
    @classmethod
    def drop_empty_entries(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str) or (isinstance(item, dict) and item)]
        return value


class AssetIndexRef(LenientModel):
    id: str = ""
    url: str = ""
    sha1: str = ""
    size: int = 0
    totalSize: int = 0


class VersionDownloads(LenientModel):
    client: Optional[DownloadArtifact] = None
    server: Optional[DownloadArtifact] = None


class VersionDescriptor(LenientModel):
    """Parsed version.json for either the base game or the overlay."""
    id: str = ""
    inheritsFrom: str = ""
    type: str = ""
    mainClass: str = ""
    jar: str = ""
    arguments: Optional[VersionArguments] = None
    minecraftArguments: str = ""
    assetIndex: Optional[AssetIndexRef] = None
    assets: str = ""
    downloads: Optional[VersionDownloads] = None
    libraries: List[LibraryEntry] = Field(default_factory=list)
    document: Dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)

    @field_validator("libraries", mode="before")
    @classmethod
    def keep_library_objects(cls, value: Any) -> Any:
        return objects_only(value)

    @classmethod
    def parse(cls, document: Any, source: str = "version metadata") -> "VersionDescriptor":
        """Build a descriptor from a decoded JSON document, keeping the original."""
        if not isinstance(document, dict):
            raise FormatError(f"Expected JSON object in {source}")
        return cls.model_validate({**document, "document": document})

    @property
    def asset_index_id(self) -> str:
        if self.assetIndex and self.assetIndex.id:
            return self.assetIndex.id
        return self.assets


class VersionInfo(LenientModel):
    id: str = ""
    type: str = ""
    url: str = ""
    sha1: str = ""
    complianceLevel: int = 0


class VersionManifest(LenientModel):
    latest: Dict[str, str] = Field(default_factory=dict)
    versions: List[VersionInfo] = Field(default_factory=list)

    @field_validator("versions", mode="before")
    @classmethod
    def keep_version_objects(cls, value: Any) -> Any:
        return objects_only(value)


class AssetObject(LenientModel):
    hash: str = ""
    size: int = 0


class AssetIndex(LenientModel):
    objects: Dict[str, AssetObject] = Field(default_factory=dict)

    @field_validator("objects", mode="before")
    @classmethod
    def keep_asset_objects(cls, value: Any) -> Any:
        return object_values_only(value)


class PackComponent(LenientModel):
    uid: str = ""
    version: str = ""


class PackManifest(LenientModel):
    """The pack's mmc-pack.json, naming the base game and overlay versions."""
    components: List[PackComponent] = Field(default_factory=list)

    @field_validator("components", mode="before")
    @classmethod
    def keep_component_objects(cls, value: Any) -> Any:
        return objects_only(value)

    def component_versions(self, base_uid: str, overlay_uid: str) -> Tuple[str, str]:
        """Return the (base, overlay) version strings named by the manifest."""
        base_version = ""
        overlay_version = ""
        for component in self.components:
            if component.uid == base_uid:
                base_version = component.version
            elif component.uid == overlay_uid:
                overlay_version = component.version
        if not base_version or not overlay_version:
            raise FormatError(f"Pack manifest does not name both {base_uid} and {overlay_uid} versions")
        return base_version, overlay_version
