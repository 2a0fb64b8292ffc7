"""
Release decomposition protocol.

A decomposition engine reports the release origins it detects in a BOM to a
DecomposedBomVisitor. The call sequence for one pass is:

    enter_bom
    (enter_release_origin  visit_project_release*  leave_release_origin)*
    leave_bom

If enter_release_origin returns False, the release callbacks for that origin
are skipped but leave_release_origin is still called. Brackets of different
origins never interleave.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import ProtocolViolationError
from .models import PackageCoordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseOrigin:
    """An upstream project or release stream, e.g. a source repository."""

    id: str
    is_tag: bool = False

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class ProjectRelease:
    """One version cut of a release origin and the artifacts released together."""

    origin: ReleaseOrigin
    version: str
    artifacts: Tuple[PackageCoordinate, ...] = ()

    def __str__(self) -> str:
        return f"{self.origin}#{self.version}"


class DecomposedBomVisitor(ABC):
    """Callback that receives events on detected releases and their content."""

    @abstractmethod
    def enter_bom(self, bom_artifact: PackageCoordinate) -> None:
        """Called once, before anything else, with the BOM being analyzed."""

    @abstractmethod
    def enter_release_origin(self, release_origin: ReleaseOrigin, versions: int) -> bool:
        """
        Called for every detected release origin.

        Args:
            release_origin: the detected origin
            versions: number of visit_project_release calls that will follow

        Returns:
            False to skip the releases of this origin
        """

    @abstractmethod
    def leave_release_origin(self, release_origin: ReleaseOrigin) -> None:
        """Closes the bracket opened by enter_release_origin, even after an opt-out."""

    @abstractmethod
    def visit_project_release(self, release: ProjectRelease) -> None:
        """Called for every release version of the open origin."""

    @abstractmethod
    def leave_bom(self) -> None:
        """Called once, after the last origin."""


class NoopDecomposedBomVisitor(DecomposedBomVisitor):
    """Visitor with empty callbacks that accepts every origin."""

    def enter_bom(self, bom_artifact: PackageCoordinate) -> None:
        pass

    def enter_release_origin(self, release_origin: ReleaseOrigin, versions: int) -> bool:
        return True

    def leave_release_origin(self, release_origin: ReleaseOrigin) -> None:
        pass

    def visit_project_release(self, release: ProjectRelease) -> None:
        pass

    def leave_bom(self) -> None:
        pass


class ContractCheckingVisitor(DecomposedBomVisitor):
    """
    Wraps a visitor and fails fast when a driver breaks the call protocol.

    Checks ordering, that origin brackets do not interleave, that the
    announced version count matches the releases delivered, and that no
    releases arrive for an origin the visitor opted out of.
    """

    _INITIAL = "initial"
    _IN_BOM = "in-bom"
    _DONE = "done"

    def __init__(self, delegate: DecomposedBomVisitor):
        self.delegate = delegate
        self._phase = self._INITIAL
        self._open_origin: Optional[ReleaseOrigin] = None
        self._accepted = False
        self._expected = 0
        self._visited = 0

    def _require_phase(self, phase: str, call: str) -> None:
        if self._phase != phase:
            raise ProtocolViolationError(f"{call} called in state {self._phase}, expected {phase}")

    def enter_bom(self, bom_artifact: PackageCoordinate) -> None:
        self._require_phase(self._INITIAL, "enter_bom")
        self._phase = self._IN_BOM
        self.delegate.enter_bom(bom_artifact)

    def enter_release_origin(self, release_origin: ReleaseOrigin, versions: int) -> bool:
        self._require_phase(self._IN_BOM, "enter_release_origin")
        if self._open_origin is not None:
            raise ProtocolViolationError(
                f"enter_release_origin({release_origin}) while {self._open_origin} is still open")
        if versions < 1:
            raise ProtocolViolationError(f"Release origin {release_origin} announced {versions} versions")
        self._open_origin = release_origin
        self._expected = versions
        self._visited = 0
        self._accepted = bool(self.delegate.enter_release_origin(release_origin, versions))
        return self._accepted

    def visit_project_release(self, release: ProjectRelease) -> None:
        self._require_phase(self._IN_BOM, "visit_project_release")
        if self._open_origin is None:
            raise ProtocolViolationError(f"visit_project_release({release}) outside of a release origin")
        if release.origin != self._open_origin:
            raise ProtocolViolationError(f"Release {release} delivered while {self._open_origin} is open")
        if not self._accepted:
            raise ProtocolViolationError(f"Release {release} delivered after the visitor skipped {self._open_origin}")
        self._visited += 1
        if self._visited > self._expected:
            raise ProtocolViolationError(
                f"{self._open_origin} announced {self._expected} versions but more were delivered")
        self.delegate.visit_project_release(release)

    def leave_release_origin(self, release_origin: ReleaseOrigin) -> None:
        self._require_phase(self._IN_BOM, "leave_release_origin")
        if self._open_origin != release_origin:
            raise ProtocolViolationError(
                f"leave_release_origin({release_origin}) does not close the open origin {self._open_origin}")
        if self._accepted and self._visited != self._expected:
            raise ProtocolViolationError(
                f"{release_origin} announced {self._expected} versions but {self._visited} were delivered")
        self._open_origin = None
        self.delegate.leave_release_origin(release_origin)

    def leave_bom(self) -> None:
        self._require_phase(self._IN_BOM, "leave_bom")
        if self._open_origin is not None:
            raise ProtocolViolationError(f"leave_bom called while {self._open_origin} is still open")
        self._phase = self._DONE
        self.delegate.leave_bom()


class DecomposedBom:
    """
    A BOM already split into release origins, able to replay itself to a visitor.

    This is the reference driver of the protocol: it holds the grouping an
    engine produced and guarantees the call ordering when visiting.
    """

    def __init__(self, bom_artifact: PackageCoordinate,
                 releases: Optional[Dict[ReleaseOrigin, List[ProjectRelease]]] = None):
        self.bom_artifact = bom_artifact
        self.releases: Dict[ReleaseOrigin, List[ProjectRelease]] = dict(releases or {})
        self._visiting = False
        self._open_origin: Optional[ReleaseOrigin] = None

    @classmethod
    def from_releases(cls, bom_artifact: PackageCoordinate, releases: Iterable[ProjectRelease]) -> "DecomposedBom":
        """Group releases by origin, keeping the order origins are first seen in."""
        by_origin: Dict[ReleaseOrigin, List[ProjectRelease]] = {}
        for release in releases:
            by_origin.setdefault(release.origin, []).append(release)
        return cls(bom_artifact, by_origin)

    def origins(self) -> List[ReleaseOrigin]:
        return list(self.releases)

    def visit(self, visitor: DecomposedBomVisitor) -> None:
        """Replay the decomposition to a visitor."""
        if self._visiting:
            raise ProtocolViolationError(f"{self.bom_artifact} is already being visited")
        self._visiting = True
        try:
            visitor.enter_bom(self.bom_artifact)
            for origin, releases in self.releases.items():
                if not releases:
                    continue
                self._open(origin)
                if visitor.enter_release_origin(origin, len(releases)):
                    for release in releases:
                        visitor.visit_project_release(release)
                else:
                    logger.debug(f"Visitor skipped release origin {origin}")
                visitor.leave_release_origin(origin)
                self._close(origin)
            if self._open_origin is not None:
                raise ProtocolViolationError(f"Release origin {self._open_origin} was not closed")
            visitor.leave_bom()
        finally:
            self._visiting = False
            self._open_origin = None

    def _open(self, origin: ReleaseOrigin) -> None:
        if self._open_origin is not None:
            raise ProtocolViolationError(f"Cannot enter {origin} while {self._open_origin} is open")
        self._open_origin = origin

    def _close(self, origin: ReleaseOrigin) -> None:
        if self._open_origin != origin:
            raise ProtocolViolationError(f"Cannot leave {origin}, open origin is {self._open_origin}")
        self._open_origin = None


class DecomposedBomReleasesLogger(NoopDecomposedBomVisitor):
    """Logs the release origins and versions found in a BOM."""

    def __init__(self, log_artifacts: bool = False, level: int = logging.INFO):
        self.log_artifacts = log_artifacts
        self.level = level
        self.origin_count = 0
        self.release_count = 0
        self.artifact_count = 0

    def enter_bom(self, bom_artifact: PackageCoordinate) -> None:
        logger.log(self.level, f"Multi Module Project Releases Detected Among The Managed Dependencies of {bom_artifact.to_compact_string()}")

    def enter_release_origin(self, release_origin: ReleaseOrigin, versions: int) -> bool:
        self.origin_count += 1
        suffix = f" ({versions} versions)" if versions > 1 else ""
        logger.log(self.level, f"Origin: {release_origin}{suffix}")
        return True

    def visit_project_release(self, release: ProjectRelease) -> None:
        self.release_count += 1
        self.artifact_count += len(release.artifacts)
        logger.log(self.level, f"  {release.version}")
        if self.log_artifacts:
            for artifact in release.artifacts:
                logger.log(self.level, f"    {artifact.to_compact_string()}")

    def leave_bom(self) -> None:
        logger.log(self.level, f"TOTAL RELEASE ORIGINS: {self.origin_count}")
        logger.log(self.level, f"TOTAL RELEASES: {self.release_count}")
        logger.log(self.level, f"TOTAL ARTIFACTS: {self.artifact_count}")


def group_by_group_id(bom_artifact: PackageCoordinate, artifacts: Iterable[PackageCoordinate]) -> DecomposedBom:
    """
    Naive decomposition: one origin per groupId, one release per version.

    Real engines look at source repositories and tags; this only gives the
    protocol something to drive when nothing better is available.
    """
    grouped: Dict[ReleaseOrigin, Dict[str, List[PackageCoordinate]]] = {}
    for artifact in artifacts:
        origin = ReleaseOrigin(artifact.group_id)
        grouped.setdefault(origin, {}).setdefault(artifact.version, []).append(artifact)

    releases = {
        origin: [ProjectRelease(origin, version, tuple(members)) for version, members in versions.items()]
        for origin, versions in grouped.items()
    }
    return DecomposedBom(bom_artifact, releases)
