"""Console output formats for platform BOM configs and release decompositions."""

import json
from typing import List

from .decomposition import NoopDecomposedBomVisitor, ProjectRelease, ReleaseOrigin
from .models import ManagedBomConfig, PackageCoordinate
from .purl import to_purl


class OutputFormatter:
    """Formats resolved platform BOM configs."""

    @staticmethod
    def format_as_list(config: ManagedBomConfig) -> str:
        """One coordinate per line, BOM and base BOM first."""
        lines = [f"bom: {config.bom_artifact.to_compact_string()}"]
        if config.base_artifact is not None:
            lines.append(f"base: {config.base_artifact.to_compact_string()}")
        lines.extend(artifact.to_compact_string() for artifact in config.direct_artifacts)
        return "\n".join(lines)

    @staticmethod
    def format_as_json(config: ManagedBomConfig) -> str:
        """The config as JSON, each artifact rendered as a purl."""
        def purl(artifact: PackageCoordinate) -> str:
            return to_purl(artifact.key, artifact.version)

        document = {
            "bom": purl(config.bom_artifact),
            "base": purl(config.base_artifact) if config.base_artifact is not None else None,
            "direct": [purl(artifact) for artifact in config.direct_artifacts],
        }
        return json.dumps(document, indent=2)


class ReleaseTreeFormatter(NoopDecomposedBomVisitor):
    """Visitor rendering a decomposition as a tree: origins, their versions, optionally artifacts."""

    def __init__(self, show_artifacts: bool = False):
        self.show_artifacts = show_artifacts
        self.lines: List[str] = []
        self._remaining = 0

    def enter_bom(self, bom_artifact: PackageCoordinate) -> None:
        self.lines.append(bom_artifact.to_compact_string())

    def enter_release_origin(self, release_origin: ReleaseOrigin, versions: int) -> bool:
        self.lines.append(f"├── {release_origin}")
        self._remaining = versions
        return True

    def visit_project_release(self, release: ProjectRelease) -> None:
        self._remaining -= 1
        connector = "└── " if self._remaining == 0 else "├── "
        self.lines.append(f"│   {connector}{release.version}")
        if self.show_artifacts:
            prefix = "│       " if self._remaining == 0 else "│   │   "
            for artifact in release.artifacts:
                self.lines.append(f"{prefix}{artifact.to_compact_string()}")

    def format(self) -> str:
        return "\n".join(self.lines)
