"""Component tables of published platform BOMs."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from packageurl import PackageURL

from .exceptions import ConfigurationError, FileSystemError, ModelSourceError, NetworkError
from .models import ManagedComponent, PackageCoordinate, PackageKey, build_component_table
from .platform_bom import collect_properties, resolve_managed_artifacts
from .pom import RawModel
from .repository import MavenRepository
from .ssl_config import create_session

logger = logging.getLogger(__name__)

ComponentTable = Dict[PackageKey, ManagedComponent]


class ComponentCatalog(ABC):
    """Resolves the full managed component table of a published BOM."""

    @abstractmethod
    def load(self, group_id: str, artifact_id: str, version: str) -> ComponentTable:
        """Return PackageKey -> ManagedComponent for the BOM at the given coordinates."""


class PomComponentCatalog(ComponentCatalog):
    """Builds the component table from the BOM POM and its parents in a Maven repository."""

    def __init__(self, repository: MavenRepository):
        self.repository = repository

    def _load_parent(self, model: RawModel, location: Tuple[str, str, str]) -> Optional[Tuple[RawModel, Tuple[str, str, str]]]:
        parent = model.parent
        if not (parent.group_id and parent.artifact_id and parent.version):
            logger.debug(f"Incomplete parent coordinates in {':'.join(location)}, stopping")
            return None
        parent_location = (parent.group_id, parent.artifact_id, parent.version)
        try:
            parent_model = self.repository.read_model(*parent_location)
        except ModelSourceError as e:
            logger.debug(f"Stopping parent walk at {':'.join(location)}: {e}")
            return None
        if parent_model is None:
            return None
        return parent_model, parent_location

    def load(self, group_id: str, artifact_id: str, version: str) -> ComponentTable:
        """
        Raises:
            ConfigurationError: If the BOM does not exist or has no managed dependencies
            NetworkError: If the repository cannot be reached
        """
        location = (group_id, artifact_id, version)
        model = self.repository.read_model(*location)
        if model is None:
            raise ConfigurationError(f"BOM {group_id}:{artifact_id}:{version} was not found in "
                                     f"{self.repository.base_url}")
        if model.managed_dependencies is None:
            raise ConfigurationError(f"{group_id}:{artifact_id}:{version} does not include managed dependencies")

        properties = collect_properties(model, location, self._load_parent)
        artifacts = resolve_managed_artifacts(model, properties)
        components = build_component_table(artifacts)
        logger.info(f"Loaded {len(components)} managed components of {group_id}:{artifact_id}:{version}")
        return components


def _is_url(path: str) -> bool:
    return urlparse(path).scheme in ('http', 'https')


def _purl_to_coordinate(purl: str) -> Optional[PackageCoordinate]:
    try:
        parsed = PackageURL.from_string(purl)
    except ValueError as e:
        logger.warning(f"Invalid purl {purl}: {e}")
        return None
    if parsed.type != 'maven' or not parsed.namespace or not parsed.version:
        return None
    qualifiers = parsed.qualifiers or {}
    return PackageCoordinate(
        parsed.namespace, parsed.name,
        qualifiers.get('classifier', ''), qualifiers.get('type', 'jar'),
        parsed.version,
    )


def _collect_purls(components: List[Dict[str, Any]], purls: List[str]) -> None:
    for component in components:
        purl = component.get('purl')
        if purl:
            purls.append(purl)
        # Nested components
        _collect_purls(component.get('components') or [], purls)


class ManifestComponentCatalog(ComponentCatalog):
    """Builds the component table from a published CycloneDX JSON manifest (file or URL)."""

    def __init__(self, manifest: str, timeout: int = 30):
        self.manifest = manifest
        self.timeout = timeout

    def _read_content(self) -> str:
        if _is_url(self.manifest):
            logger.info(f"Fetching manifest from URL: {self.manifest}")
            with create_session() as session:
                try:
                    response = session.get(self.manifest, timeout=self.timeout)
                    response.raise_for_status()
                except requests.RequestException as e:
                    raise NetworkError(f"Failed to fetch manifest {self.manifest}: {e}", self.manifest) from e
                return response.text

        logger.info(f"Reading manifest from file: {self.manifest}")
        try:
            return Path(self.manifest).read_text()
        except OSError as e:
            raise FileSystemError(f"Failed to read manifest {self.manifest}: {e}", self.manifest) from e

    def load(self, group_id: str, artifact_id: str, version: str) -> ComponentTable:
        """
        Raises:
            ConfigurationError: If the manifest is not valid JSON
        """
        try:
            manifest = json.loads(self._read_content())
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Manifest {self.manifest} is not valid JSON: {e}") from e

        metadata_component = (manifest.get('metadata') or {}).get('component') or {}
        described = metadata_component.get('purl')
        if described:
            logger.info(f"Manifest {self.manifest} describes {described}")
            coord = _purl_to_coordinate(described)
            if coord and (coord.group_id, coord.artifact_id, coord.version) != (group_id, artifact_id, version):
                logger.warning(f"Manifest describes {coord.to_compact_string()}, "
                               f"expected {group_id}:{artifact_id}:{version}")

        purls: List[str] = []
        _collect_purls(manifest.get('components') or [], purls)
        artifacts = [c for c in (_purl_to_coordinate(p) for p in purls) if c is not None]

        components = build_component_table(artifacts)
        logger.info(f"Loaded {len(components)} components from manifest {self.manifest}")
        return components
