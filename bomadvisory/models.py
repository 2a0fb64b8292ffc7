"""Core data models for bomadvisory."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .exceptions import ConfigurationError

DEFAULT_TYPE = "jar"


@dataclass(frozen=True)
class PackageKey:
    """Identity of a component across versions: groupId, artifactId, classifier and type."""

    group_id: str
    artifact_id: str
    classifier: str = ""
    type: str = DEFAULT_TYPE

    def __post_init__(self):
        # Maven models report missing classifier/type as None
        if self.classifier is None:
            object.__setattr__(self, "classifier", "")
        if not self.type:
            object.__setattr__(self, "type", DEFAULT_TYPE)

    def matches(self, group_id: str, artifact_id: str) -> bool:
        return self.group_id == group_id and self.artifact_id == artifact_id

    def __str__(self) -> str:
        if not self.classifier and self.type == DEFAULT_TYPE:
            return f"{self.group_id}:{self.artifact_id}"
        if not self.classifier:
            return f"{self.group_id}:{self.artifact_id}::{self.type}"
        return f"{self.group_id}:{self.artifact_id}:{self.classifier}:{self.type}"


@dataclass(frozen=True)
class PackageCoordinate:
    """One published package: a PackageKey plus a version."""

    group_id: str
    artifact_id: str
    classifier: str = ""
    type: str = DEFAULT_TYPE
    version: str = ""

    def __post_init__(self):
        if self.classifier is None:
            object.__setattr__(self, "classifier", "")
        if not self.type:
            object.__setattr__(self, "type", DEFAULT_TYPE)
        if self.version is None:
            object.__setattr__(self, "version", "")

    @property
    def key(self) -> PackageKey:
        return PackageKey(self.group_id, self.artifact_id, self.classifier, self.type)

    @classmethod
    def of(cls, key: PackageKey, version: str) -> "PackageCoordinate":
        return cls(key.group_id, key.artifact_id, key.classifier, key.type, version)

    @classmethod
    def from_string(cls, value: str) -> "PackageCoordinate":
        """
        Parse groupId:artifactId[:classifier[:type]]:version.

        The version is always the last segment, so g:a:v, g:a:c:v and
        g:a:c:t:v are all accepted. An empty type falls back to jar.

        Raises:
            ConfigurationError: If the string has fewer than three segments
                or an empty groupId, artifactId or version
        """
        parts = value.strip().split(':') if value else []
        if len(parts) < 3 or len(parts) > 5:
            raise ConfigurationError(f"Failed to extract groupId:artifactId:version from {value}")

        group_id, artifact_id, version = parts[0], parts[1], parts[-1]
        classifier = parts[2] if len(parts) >= 4 else ""
        pkg_type = parts[3] if len(parts) == 5 else DEFAULT_TYPE
        if not group_id or not artifact_id or not version:
            raise ConfigurationError(f"Failed to extract groupId:artifactId:version from {value}")

        return cls(group_id, artifact_id, classifier, pkg_type or DEFAULT_TYPE, version)

    def to_compact_string(self) -> str:
        """Return g:a[:classifier[:type]]:version, omitting defaults."""
        parts = [self.group_id, self.artifact_id]
        if self.classifier or self.type != DEFAULT_TYPE:
            parts.append(self.classifier)
        if self.type != DEFAULT_TYPE:
            parts.append(self.type)
        parts.append(self.version)
        return ':'.join(parts)

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.classifier}:{self.type}:{self.version}"


@dataclass(frozen=True)
class ManagedComponent:
    """All versions of one PackageKey present in a BOM, in first-seen order."""

    key: PackageKey
    versions: Tuple[str, ...] = ()

    def __post_init__(self):
        # Ordered set semantics
        object.__setattr__(self, "versions", tuple(dict.fromkeys(self.versions)))

    def coordinates(self) -> List[PackageCoordinate]:
        return [PackageCoordinate.of(self.key, v) for v in self.versions]


@dataclass(frozen=True)
class ManagedBomConfig:
    """
    Flattened view of a platform BOM.

    Attributes:
        bom_artifact: Identity of the BOM itself (type pom)
        base_artifact: The designated base BOM extracted from the managed dependencies
        direct_artifacts: Remaining managed dependencies in declaration order
    """

    bom_artifact: PackageCoordinate
    base_artifact: Optional[PackageCoordinate] = None
    direct_artifacts: Tuple[PackageCoordinate, ...] = ()


@dataclass(frozen=True)
class VulnerabilityRecord:
    """A vulnerability id with the coordinates reported as affected."""

    id: str
    vulnerable_coordinates: Tuple[PackageCoordinate, ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Dict[str, List[PackageCoordinate]]) -> List["VulnerabilityRecord"]:
        return [cls(vuln_id, tuple(coords)) for vuln_id, coords in mapping.items()]


def build_component_table(artifacts: List[PackageCoordinate]) -> Dict[PackageKey, ManagedComponent]:
    """Group coordinates by PackageKey, keeping the order versions were seen in."""
    versions_by_key: Dict[PackageKey, List[str]] = {}
    for artifact in artifacts:
        versions_by_key.setdefault(artifact.key, []).append(artifact.version)
    return {key: ManagedComponent(key, tuple(versions)) for key, versions in versions_by_key.items()}


# Vulnerability id -> sorted, de-duplicated fix purls
AdvisoryMapping = Dict[str, List[str]]
