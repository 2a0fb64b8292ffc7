"""Tests for property resolution."""

from bomadvisory.properties import merge_properties, resolve_version


class TestResolveVersion:
    """Tests for resolve_version."""

    def test_exact_reference_substituted(self):
        assert resolve_version("${vertx.version}", {"vertx.version": "4.4.6"}) == "4.4.6"

    def test_unknown_reference_kept(self):
        """No fallback: an unresolved template stays as the literal string."""
        assert resolve_version("${x}", {"y": "1.0"}) == "${x}"

    def test_literal_version_unchanged(self):
        assert resolve_version("1.0", {"1.0": "2.0"}) == "1.0"

    def test_embedded_reference_not_substituted(self):
        assert resolve_version("${major}.1", {"major": "3"}) == "${major}.1"

    def test_empty_version(self):
        assert resolve_version("", {"": "1"}) == ""


class TestMergeProperties:
    """Tests for merge_properties."""

    def test_child_value_wins(self):
        accumulated = {"quarkus.version": "3.2.9.Final"}

        added = merge_properties(accumulated, {"quarkus.version": "3.2.8.Final", "kafka.version": "3.5.1"})

        assert accumulated == {"quarkus.version": "3.2.9.Final", "kafka.version": "3.5.1"}
        assert added == 1
