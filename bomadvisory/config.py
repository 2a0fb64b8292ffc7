"""Run configuration for the cve-mapping command."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import ConfigurationError
from .jira import DEFAULT_JIRA_SERVER
from .models import PackageCoordinate
from .repository import MAVEN_CENTRAL_URL

JIRA_TOKEN_ENV = "JIRA_TOKEN"
DEFAULT_JIRA_PROJECT = "QUARKUS"


@dataclass
class AdvisoryConfig:
    """Everything one cve-mapping run needs, resolved from the command line and environment."""

    bom: str
    jira_version: str
    jira_server: str = DEFAULT_JIRA_SERVER
    jira_token: Optional[str] = None
    jira_project: str = DEFAULT_JIRA_PROJECT
    output_file: Optional[Path] = None
    maven_repository: str = MAVEN_CENTRAL_URL
    manifest: Optional[str] = None
    # Fallback source for the token, normally os.environ
    environ: Optional[Mapping[str, str]] = None

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> "AdvisoryConfig":
        if not getattr(args, 'jira_version', None):
            raise ConfigurationError("--jira-version is required")
        if not getattr(args, 'bom', None):
            raise ConfigurationError("--bom is required")
        output_file = getattr(args, 'output_file', None)
        return cls(
            bom=args.bom,
            jira_version=args.jira_version,
            jira_server=getattr(args, 'jira_server', None) or DEFAULT_JIRA_SERVER,
            jira_token=getattr(args, 'jira_token', None),
            jira_project=getattr(args, 'jira_project', None) or DEFAULT_JIRA_PROJECT,
            output_file=Path(output_file) if output_file else None,
            maven_repository=getattr(args, 'maven_repository', None) or MAVEN_CENTRAL_URL,
            manifest=getattr(args, 'manifest', None),
            environ=os.environ if environ is None else environ,
        )

    def resolve_jira_token(self) -> str:
        """
        The explicit token, else the JIRA_TOKEN environment variable.

        Raises:
            ConfigurationError: If neither is set
        """
        if self.jira_token:
            return self.jira_token
        environ = os.environ if self.environ is None else self.environ
        token = environ.get(JIRA_TOKEN_ENV)
        if not token:
            raise ConfigurationError(f"Neither --jira-token nor environment variable {JIRA_TOKEN_ENV} have been set")
        return token

    def bom_coordinates(self) -> PackageCoordinate:
        """
        The BOM as a pom-typed coordinate; the version is the last segment.

        Raises:
            ConfigurationError: If fewer than groupId:artifactId:version are given
        """
        parts = self.bom.split(':') if self.bom else []
        if len(parts) < 3 or not all([parts[0], parts[1], parts[-1]]):
            raise ConfigurationError(f"Failed to extract groupId:artifactId:version from {self.bom}")
        return PackageCoordinate(parts[0], parts[1], "", "pom", parts[-1])
