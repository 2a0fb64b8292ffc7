"""Tests for package coordinates and component tables."""

import pytest

from bomadvisory.exceptions import ConfigurationError
from bomadvisory.models import (
    ManagedComponent,
    PackageCoordinate,
    PackageKey,
    build_component_table,
)


class TestPackageCoordinate:
    """Tests for PackageCoordinate parsing and identity."""

    def test_parse_group_artifact_version(self):
        coord = PackageCoordinate.from_string("io.quarkus:quarkus-core:3.2.9.Final")

        assert coord.group_id == "io.quarkus"
        assert coord.artifact_id == "quarkus-core"
        assert coord.classifier == ""
        assert coord.type == "jar"
        assert coord.version == "3.2.9.Final"

    def test_parse_with_classifier(self):
        coord = PackageCoordinate.from_string("org.apache.kafka:kafka-clients:test:3.5.1")

        assert coord.classifier == "test"
        assert coord.type == "jar"
        assert coord.version == "3.5.1"

    def test_parse_with_classifier_and_type(self):
        coord = PackageCoordinate.from_string("io.quarkus:quarkus-bom::pom:3.2.9.Final")

        assert coord.classifier == ""
        assert coord.type == "pom"
        assert coord.version == "3.2.9.Final"

    @pytest.mark.parametrize("value", ["", "io.quarkus", "io.quarkus:quarkus-core", ":a:1.0", "g::1.0", "g:a:"])
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ConfigurationError):
            PackageCoordinate.from_string(value)

    def test_same_key_different_version(self):
        """Equal keys with different versions are the same component at another release."""
        a = PackageCoordinate("g", "a", "", "jar", "1.0")
        b = PackageCoordinate("g", "a", "", "jar", "1.1")

        assert a != b
        assert a.key == b.key
        assert hash(a.key) == hash(b.key)

    def test_none_classifier_normalized(self):
        coord = PackageCoordinate("g", "a", None, None, "1.0")

        assert coord.key == PackageKey("g", "a")

    def test_compact_string(self):
        assert PackageCoordinate("g", "a", "", "jar", "1.0").to_compact_string() == "g:a:1.0"
        assert PackageCoordinate("g", "a", "tests", "jar", "1.0").to_compact_string() == "g:a:tests:1.0"
        assert PackageCoordinate("g", "a", "", "pom", "1.0").to_compact_string() == "g:a::pom:1.0"

    def test_compact_string_parses_back(self):
        coord = PackageCoordinate("g", "a", "linux-x86_64", "so", "2.0")

        assert PackageCoordinate.from_string(coord.to_compact_string()) == coord


class TestComponentTable:
    """Tests for grouping coordinates into ManagedComponents."""

    def test_versions_grouped_by_key_in_order(self):
        table = build_component_table([
            PackageCoordinate("g", "a", version="1.1"),
            PackageCoordinate("g", "b", version="2.0"),
            PackageCoordinate("g", "a", version="1.0"),
            PackageCoordinate("g", "a", version="1.1"),
        ])

        assert table[PackageKey("g", "a")].versions == ("1.1", "1.0")
        assert table[PackageKey("g", "b")].versions == ("2.0",)

    def test_classifier_is_part_of_key(self):
        table = build_component_table([
            PackageCoordinate("g", "a", version="1.0"),
            PackageCoordinate("g", "a", "tests", version="1.0"),
        ])

        assert len(table) == 2

    def test_managed_component_deduplicates(self):
        component = ManagedComponent(PackageKey("g", "a"), ("1.0", "1.0", "2.0"))

        assert component.versions == ("1.0", "2.0")
        assert [c.version for c in component.coordinates()] == ["1.0", "2.0"]
