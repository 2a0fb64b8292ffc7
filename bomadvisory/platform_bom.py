"""Builds the managed dependency set of a platform BOM."""

import logging
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from .exceptions import ConfigurationError, ModelSourceError
from .models import ManagedBomConfig, ManagedComponent, PackageCoordinate, PackageKey, build_component_table
from .pom import PomResolver, RawModel
from .properties import merge_properties, resolve_version

logger = logging.getLogger(__name__)

# groupId, artifactId of the BOM every platform member BOM imports
QUARKUS_BOM: Tuple[str, str] = ("io.quarkus", "quarkus-bom")

# (model, location) -> (parent model, parent location), or None when the chain ends
ParentLoader = Callable[[RawModel, Hashable], Optional[Tuple[RawModel, Hashable]]]


def collect_properties(model: RawModel, location: Hashable, load_parent: ParentLoader) -> Dict[str, str]:
    """
    Accumulate properties from a model and its parent chain.

    The walk is iterative and stops at the first parent that cannot be
    loaded, or when a location repeats. Properties of a child always win
    over those of its parents.
    """
    properties = dict(model.properties)
    visited = {location}
    current, current_location = model, location

    while current.parent is not None:
        loaded = load_parent(current, current_location)
        if loaded is None:
            break
        parent_model, parent_location = loaded
        if parent_location in visited:
            logger.warning(f"Parent chain of {location} loops back to {parent_location}, stopping")
            break
        visited.add(parent_location)

        added = merge_properties(properties, parent_model.properties)
        logger.debug(f"Inherited {added} properties from {parent_location}")
        current, current_location = parent_model, parent_location

    return properties


def resolve_managed_artifacts(model: RawModel, properties: Dict[str, str]) -> List[PackageCoordinate]:
    """Turn the model's managed dependencies into coordinates with substituted versions."""
    artifacts = []
    for dep in model.managed_dependencies or []:
        version = resolve_version(dep.version, properties)
        if version != dep.version:
            logger.debug(f"Resolved {dep.group_id}:{dep.artifact_id} version {dep.version} to {version}")
        artifacts.append(dep.to_coordinate(version))
    return artifacts


def local_parent_loader(resolver: PomResolver) -> ParentLoader:
    """Load parents through their relativePath, the way a local checkout is laid out."""

    def load(model: RawModel, pom: Path) -> Optional[Tuple[RawModel, Path]]:
        relative_path = model.parent.relative_path
        if not relative_path:
            return None

        parent_pom = Path(pom).parent / relative_path
        if parent_pom.is_dir():
            parent_pom = parent_pom / 'pom.xml'
        parent_pom = parent_pom.resolve()

        try:
            parent_model = resolver.read_local_model(parent_pom)
        except ModelSourceError as e:
            logger.debug(f"Stopping parent walk at {pom}: {e}")
            return None
        return parent_model, parent_pom

    return load


def build_platform_bom_config(resolver: PomResolver, base_bom: Tuple[str, str] = QUARKUS_BOM) -> ManagedBomConfig:
    """
    Resolve the managed dependency set of a platform BOM.

    Args:
        resolver: Source of the BOM and its parents
        base_bom: groupId, artifactId of the BOM to extract as the base artifact

    Returns:
        ManagedBomConfig with the base BOM and the remaining direct artifacts

    Raises:
        ConfigurationError: If the POM has no dependencyManagement section or
            the base BOM is not among the managed dependencies
        ModelSourceError: If the POM itself cannot be read
    """
    pom = resolver.pom_path()
    model = resolver.read_local_model(pom)
    if model.managed_dependencies is None:
        raise ConfigurationError(f"{pom} does not include managed dependencies", {"pom": str(pom)})

    properties = collect_properties(model, pom, local_parent_loader(resolver))
    logger.info(f"Loaded {len(properties)} properties for {resolver.source()}")

    bom_artifact = model.identity(properties)
    base_artifact: Optional[PackageCoordinate] = None
    direct_artifacts: List[PackageCoordinate] = []
    for artifact in resolve_managed_artifacts(model, properties):
        if base_artifact is None and artifact.key.matches(*base_bom):
            base_artifact = artifact
        else:
            direct_artifacts.append(artifact)

    if base_artifact is None:
        raise ConfigurationError(
            f"Failed to locate {base_bom[0]}:{base_bom[1]} among the dependencies",
            {"pom": str(pom)},
        )

    logger.info(f"Platform BOM {bom_artifact.to_compact_string()}: base {base_artifact.to_compact_string()}, "
                f"{len(direct_artifacts)} direct artifacts")
    return ManagedBomConfig(bom_artifact, base_artifact, tuple(direct_artifacts))


def managed_components(config: ManagedBomConfig) -> Dict[PackageKey, ManagedComponent]:
    """Component table for a resolved config, including the base BOM."""
    artifacts = list(config.direct_artifacts)
    if config.base_artifact is not None:
        artifacts.insert(0, config.base_artifact)
    return build_component_table(artifacts)
