"""POM model parsing and model sources."""

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Union

from .exceptions import ModelSourceError
from .models import PackageCoordinate
from .properties import resolve_version

logger = logging.getLogger(__name__)

DEFAULT_RELATIVE_PATH = '../pom.xml'


def _local_name(tag) -> str:
    """Strip the namespace from an element tag."""
    if not isinstance(tag, str):
        return ''
    return tag.split('}')[-1] if '}' in tag else tag


def _children(parent: ET.Element, tag_name: str) -> Iterator[ET.Element]:
    for child in parent:
        if _local_name(child.tag) == tag_name:
            yield child


def _child(parent: ET.Element, tag_name: str) -> Optional[ET.Element]:
    return next(_children(parent, tag_name), None)


def get_element_text(parent: ET.Element, tag_name: str) -> Optional[str]:
    """Get text content of a direct child element, with or without the POM namespace."""
    elem = _child(parent, tag_name)
    if elem is not None and elem.text:
        return elem.text.strip()
    return None


@dataclass(frozen=True)
class ParentRef:
    """The <parent> element of a POM."""

    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str]
    relative_path: str = DEFAULT_RELATIVE_PATH


@dataclass(frozen=True)
class Dependency:
    """A raw <dependency> entry as declared, before property resolution."""

    group_id: str
    artifact_id: str
    version: str = ""
    classifier: str = ""
    type: str = "jar"
    scope: Optional[str] = None

    def to_coordinate(self, version: Optional[str] = None) -> PackageCoordinate:
        return PackageCoordinate(
            self.group_id, self.artifact_id, self.classifier, self.type,
            self.version if version is None else version,
        )


@dataclass
class RawModel:
    """
    The parts of a POM needed to build a managed dependency set.

    managed_dependencies is None when the POM has no <dependencyManagement>
    section, and an empty list when the section exists but declares nothing.
    """

    artifact_id: Optional[str]
    group_id: Optional[str] = None
    version: Optional[str] = None
    packaging: str = "jar"
    parent: Optional[ParentRef] = None
    properties: Dict[str, str] = field(default_factory=dict)
    managed_dependencies: Optional[List[Dependency]] = None

    @property
    def effective_group_id(self) -> Optional[str]:
        if self.group_id:
            return self.group_id
        return self.parent.group_id if self.parent else None

    @property
    def effective_version(self) -> Optional[str]:
        if self.version:
            return self.version
        return self.parent.version if self.parent else None

    def identity(self, properties: Optional[Mapping[str, str]] = None) -> PackageCoordinate:
        """Return the coordinates of this POM, inheriting groupId/version from the parent."""
        version = self.effective_version or ""
        if properties:
            version = resolve_version(version, properties)
        return PackageCoordinate(self.effective_group_id or "", self.artifact_id or "", "", "pom", version)


def _parse_parent(root: ET.Element) -> Optional[ParentRef]:
    parent_elem = _child(root, 'parent')
    if parent_elem is None:
        return None

    relative_path_elem = _child(parent_elem, 'relativePath')
    if relative_path_elem is None:
        relative_path = DEFAULT_RELATIVE_PATH
    else:
        # An explicit empty <relativePath/> disables the lookup
        relative_path = (relative_path_elem.text or '').strip()

    return ParentRef(
        group_id=get_element_text(parent_elem, 'groupId'),
        artifact_id=get_element_text(parent_elem, 'artifactId'),
        version=get_element_text(parent_elem, 'version'),
        relative_path=relative_path,
    )


def _parse_properties(root: ET.Element) -> Dict[str, str]:
    properties = {}
    props_elem = _child(root, 'properties')
    if props_elem is not None:
        for prop in props_elem:
            name = _local_name(prop.tag)
            if name:
                properties[name] = (prop.text or '').strip()
    return properties


def _parse_managed_dependencies(root: ET.Element) -> Optional[List[Dependency]]:
    mgmt_elem = _child(root, 'dependencyManagement')
    if mgmt_elem is None:
        return None

    dependencies = []
    deps_elem = _child(mgmt_elem, 'dependencies')
    if deps_elem is None:
        return dependencies

    for dep in _children(deps_elem, 'dependency'):
        group_id = get_element_text(dep, 'groupId')
        artifact_id = get_element_text(dep, 'artifactId')
        if not group_id or not artifact_id:
            logger.warning(f"Skipping managed dependency without groupId/artifactId: {group_id}:{artifact_id}")
            continue
        dependencies.append(Dependency(
            group_id=group_id,
            artifact_id=artifact_id,
            version=get_element_text(dep, 'version') or "",
            classifier=get_element_text(dep, 'classifier') or "",
            type=get_element_text(dep, 'type') or "jar",
            scope=get_element_text(dep, 'scope'),
        ))
    return dependencies


def parse_model(content: Union[str, bytes], source: str = "<memory>") -> RawModel:
    """
    Parse POM XML content into a RawModel.

    Raises:
        ModelSourceError: If the content is not a well-formed POM
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ModelSourceError(f"Failed to parse POM {source}: {e}", {"source": source}) from e

    if _local_name(root.tag) != 'project':
        raise ModelSourceError(f"{source} is not a Maven POM (root element is {_local_name(root.tag)})",
                               {"source": source})

    return RawModel(
        artifact_id=get_element_text(root, 'artifactId'),
        group_id=get_element_text(root, 'groupId'),
        version=get_element_text(root, 'version'),
        packaging=get_element_text(root, 'packaging') or "jar",
        parent=_parse_parent(root),
        properties=_parse_properties(root),
        managed_dependencies=_parse_managed_dependencies(root),
    )


def read_model(path: Union[str, Path]) -> RawModel:
    """
    Read and parse a POM file.

    Raises:
        ModelSourceError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ModelSourceError(f"Failed to read POM {path}: {e}", {"path": str(path)}) from e
    return parse_model(content, str(path))


class PomResolver(ABC):
    """A package model available either as a local file or as a resolved artifact."""

    @abstractmethod
    def pom_path(self) -> Path:
        """Location of the POM on disk."""

    @abstractmethod
    def pom_artifact(self) -> PackageCoordinate:
        """Coordinates of the POM."""

    @abstractmethod
    def read_local_model(self, path: Path) -> RawModel:
        """Read a model (the POM itself or one of its parents) from disk."""

    @abstractmethod
    def source(self) -> str:
        """Human readable description of where the model comes from."""


class LocalPomResolver(PomResolver):
    """Resolves a POM and its relative parents from the local filesystem."""

    def __init__(self, pom: Union[str, Path]):
        self._pom = Path(pom).resolve()
        self._artifact: Optional[PackageCoordinate] = None

    def pom_path(self) -> Path:
        return self._pom

    def pom_artifact(self) -> PackageCoordinate:
        if self._artifact is None:
            model = self.read_local_model(self._pom)
            self._artifact = model.identity(model.properties)
        return self._artifact

    def read_local_model(self, path: Path) -> RawModel:
        return read_model(path)

    def source(self) -> str:
        return str(self._pom)


class RepositoryPomResolver(PomResolver):
    """A POM known only by its coordinates; any file access fails."""

    def __init__(self, pom_artifact: PackageCoordinate):
        self._artifact = pom_artifact

    def pom_path(self) -> Path:
        raise ModelSourceError(f"{self._artifact} is not available as a local file")

    def pom_artifact(self) -> PackageCoordinate:
        return self._artifact

    def read_local_model(self, path: Path) -> RawModel:
        raise ModelSourceError(f"Cannot read {path}: {self._artifact} is not available as a local file")

    def source(self) -> str:
        return str(self._artifact)
