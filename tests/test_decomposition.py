"""Tests for the release decomposition protocol."""

import logging
from typing import List

import pytest

from bomadvisory.decomposition import (
    ContractCheckingVisitor,
    DecomposedBom,
    DecomposedBomReleasesLogger,
    NoopDecomposedBomVisitor,
    ProjectRelease,
    ReleaseOrigin,
    group_by_group_id,
)
from bomadvisory.exceptions import ProtocolViolationError
from bomadvisory.models import PackageCoordinate

BOM = PackageCoordinate("io.quarkus.platform", "quarkus-bom", "", "pom", "3.2.9.Final")
VERTX = ReleaseOrigin("https://github.com/eclipse-vertx/vert.x")
NETTY = ReleaseOrigin("https://github.com/netty/netty")


def _release(origin: ReleaseOrigin, version: str, *artifacts: str) -> ProjectRelease:
    group = "io.vertx" if origin == VERTX else "io.netty"
    return ProjectRelease(origin, version, tuple(PackageCoordinate(group, a, version=version) for a in artifacts))


class RecordingVisitor(NoopDecomposedBomVisitor):
    """Records every callback; optionally skips some origins."""

    def __init__(self, skip=()):
        self.skip = set(skip)
        self.events: List[tuple] = []

    def enter_bom(self, bom_artifact):
        self.events.append(("enter_bom", bom_artifact))

    def enter_release_origin(self, release_origin, versions):
        self.events.append(("enter_origin", release_origin, versions))
        return release_origin not in self.skip

    def visit_project_release(self, release):
        self.events.append(("release", release.version))

    def leave_release_origin(self, release_origin):
        self.events.append(("leave_origin", release_origin))

    def leave_bom(self):
        self.events.append(("leave_bom",))


@pytest.fixture
def decomposed():
    return DecomposedBom.from_releases(BOM, [
        _release(VERTX, "4.4.6", "vertx-core", "vertx-web"),
        _release(NETTY, "4.1.100.Final", "netty-codec-http"),
        _release(VERTX, "4.4.5", "vertx-grpc"),
    ])


class TestDecomposedBom:
    """Tests for the reference driver."""

    def test_event_order(self, decomposed):
        visitor = RecordingVisitor()

        decomposed.visit(visitor)

        assert visitor.events == [
            ("enter_bom", BOM),
            ("enter_origin", VERTX, 2),
            ("release", "4.4.6"),
            ("release", "4.4.5"),
            ("leave_origin", VERTX),
            ("enter_origin", NETTY, 1),
            ("release", "4.1.100.Final"),
            ("leave_origin", NETTY),
            ("leave_bom",),
        ]

    def test_opt_out_skips_releases_but_closes_bracket(self, decomposed):
        visitor = RecordingVisitor(skip={VERTX})

        decomposed.visit(visitor)

        assert visitor.events[:3] == [
            ("enter_bom", BOM),
            ("enter_origin", VERTX, 2),
            ("leave_origin", VERTX),
        ]

    def test_driver_satisfies_contract_checker(self, decomposed):
        visitor = RecordingVisitor(skip={NETTY})

        decomposed.visit(ContractCheckingVisitor(visitor))

        assert visitor.events[-1] == ("leave_bom",)

    def test_empty_bom(self):
        visitor = RecordingVisitor()

        DecomposedBom(BOM).visit(visitor)

        assert visitor.events == [("enter_bom", BOM), ("leave_bom",)]

    def test_reentrant_visit_rejected(self, decomposed):
        class Reentrant(NoopDecomposedBomVisitor):
            def enter_bom(self, bom_artifact):
                decomposed.visit(NoopDecomposedBomVisitor())

        with pytest.raises(ProtocolViolationError):
            decomposed.visit(Reentrant())

        # State is reset after a failed pass
        decomposed.visit(NoopDecomposedBomVisitor())

    def test_group_by_group_id(self):
        artifacts = [
            PackageCoordinate("io.vertx", "vertx-core", version="4.4.6"),
            PackageCoordinate("io.netty", "netty-codec", version="4.1.100.Final"),
            PackageCoordinate("io.vertx", "vertx-web", version="4.4.6"),
            PackageCoordinate("io.vertx", "vertx-grpc", version="4.4.5"),
        ]

        decomposed = group_by_group_id(BOM, artifacts)

        assert [o.id for o in decomposed.origins()] == ["io.vertx", "io.netty"]
        vertx_releases = decomposed.releases[ReleaseOrigin("io.vertx")]
        assert [(r.version, len(r.artifacts)) for r in vertx_releases] == [("4.4.6", 2), ("4.4.5", 1)]


class TestContractCheckingVisitor:
    """Tests that out-of-order drivers are rejected."""

    def test_release_before_enter_bom(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())

        with pytest.raises(ProtocolViolationError):
            checker.enter_release_origin(VERTX, 1)

    def test_interleaved_origins(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.enter_release_origin(VERTX, 1)

        with pytest.raises(ProtocolViolationError):
            checker.enter_release_origin(NETTY, 1)

    def test_release_from_other_origin(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.enter_release_origin(VERTX, 1)

        with pytest.raises(ProtocolViolationError):
            checker.visit_project_release(_release(NETTY, "4.1.100.Final"))

    def test_release_after_opt_out(self):
        checker = ContractCheckingVisitor(RecordingVisitor(skip={VERTX}))
        checker.enter_bom(BOM)
        assert checker.enter_release_origin(VERTX, 1) is False

        with pytest.raises(ProtocolViolationError):
            checker.visit_project_release(_release(VERTX, "4.4.6"))

    def test_fewer_releases_than_announced(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.enter_release_origin(VERTX, 2)
        checker.visit_project_release(_release(VERTX, "4.4.6"))

        with pytest.raises(ProtocolViolationError):
            checker.leave_release_origin(VERTX)

    def test_more_releases_than_announced(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.enter_release_origin(VERTX, 1)
        checker.visit_project_release(_release(VERTX, "4.4.6"))

        with pytest.raises(ProtocolViolationError):
            checker.visit_project_release(_release(VERTX, "4.4.5"))

    def test_leave_bom_with_open_origin(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.enter_release_origin(VERTX, 1)

        with pytest.raises(ProtocolViolationError):
            checker.leave_bom()

    def test_enter_bom_twice(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)

        with pytest.raises(ProtocolViolationError):
            checker.enter_bom(BOM)

    def test_calls_after_leave_bom(self):
        checker = ContractCheckingVisitor(NoopDecomposedBomVisitor())
        checker.enter_bom(BOM)
        checker.leave_bom()

        with pytest.raises(ProtocolViolationError):
            checker.enter_release_origin(VERTX, 1)


class TestDecomposedBomReleasesLogger:
    """Tests for the logging visitor."""

    def test_counts_and_logs(self, decomposed, caplog):
        releases_logger = DecomposedBomReleasesLogger(log_artifacts=True)

        with caplog.at_level(logging.INFO, logger="bomadvisory.decomposition"):
            decomposed.visit(releases_logger)

        assert releases_logger.origin_count == 2
        assert releases_logger.release_count == 3
        assert releases_logger.artifact_count == 4
        assert "io.vertx:vertx-web:4.4.6" in caplog.text
        assert "TOTAL RELEASES: 3" in caplog.text
