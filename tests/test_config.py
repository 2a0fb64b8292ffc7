"""Tests for cve-mapping run configuration."""

import argparse
from pathlib import Path

import pytest

from bomadvisory.config import DEFAULT_JIRA_PROJECT, JIRA_TOKEN_ENV, AdvisoryConfig
from bomadvisory.exceptions import ConfigurationError
from bomadvisory.jira import DEFAULT_JIRA_SERVER
from bomadvisory.models import PackageCoordinate
from bomadvisory.repository import MAVEN_CENTRAL_URL


def _args(**overrides):
    values = {
        "bom": "io.quarkus.platform:quarkus-bom:3.2.9.Final",
        "jira_version": "3.2.9.Final",
        "jira_server": None,
        "jira_token": None,
        "jira_project": None,
        "output_file": None,
        "maven_repository": None,
        "manifest": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestAdvisoryConfig:
    """Tests for AdvisoryConfig."""

    def test_defaults(self):
        config = AdvisoryConfig.from_args(_args(), environ={})

        assert config.jira_server == DEFAULT_JIRA_SERVER
        assert config.jira_project == DEFAULT_JIRA_PROJECT
        assert config.maven_repository == MAVEN_CENTRAL_URL
        assert config.output_file is None

    def test_output_file_is_path(self):
        config = AdvisoryConfig.from_args(_args(output_file="out/advisory.json"), environ={})

        assert config.output_file == Path("out/advisory.json")

    @pytest.mark.parametrize("missing", ["bom", "jira_version"])
    def test_required_values(self, missing):
        with pytest.raises(ConfigurationError):
            AdvisoryConfig.from_args(_args(**{missing: None}), environ={})

    def test_explicit_token_wins(self):
        config = AdvisoryConfig.from_args(_args(jira_token="explicit"), environ={JIRA_TOKEN_ENV: "from-env"})

        assert config.resolve_jira_token() == "explicit"

    def test_token_from_environment(self):
        config = AdvisoryConfig.from_args(_args(), environ={JIRA_TOKEN_ENV: "from-env"})

        assert config.resolve_jira_token() == "from-env"

    def test_missing_token(self):
        config = AdvisoryConfig.from_args(_args(), environ={})

        with pytest.raises(ConfigurationError, match=JIRA_TOKEN_ENV):
            config.resolve_jira_token()

    @pytest.mark.parametrize("bom,expected", [
        ("g:a:1.0", PackageCoordinate("g", "a", "", "pom", "1.0")),
        ("io.quarkus.platform:quarkus-bom:pom:3.2.9.Final",
         PackageCoordinate("io.quarkus.platform", "quarkus-bom", "", "pom", "3.2.9.Final")),
    ])
    def test_bom_coordinates(self, bom, expected):
        assert AdvisoryConfig(bom=bom, jira_version="1").bom_coordinates() == expected

    @pytest.mark.parametrize("bom", ["g:a", "g::1.0", "g:a:"])
    def test_bad_bom_coordinates(self, bom):
        with pytest.raises(ConfigurationError, match="Failed to extract"):
            AdvisoryConfig(bom=bom, jira_version="1").bom_coordinates()
