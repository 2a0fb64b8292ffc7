"""Client for reading POMs from a Maven repository."""

import logging
from typing import Optional

import requests

from .exceptions import NetworkError
from .pom import RawModel, parse_model
from .ssl_config import create_session

logger = logging.getLogger(__name__)

MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2"


class MavenRepository:
    """Downloads and parses POM files from a Maven 2 layout repository."""

    def __init__(self, base_url: str = MAVEN_CENTRAL_URL, timeout: int = 30):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = create_session({"Accept": "application/xml"})

    def pom_url(self, group_id: str, artifact_id: str, version: str) -> str:
        group_path = group_id.replace('.', '/')
        return f"{self.base_url}/{group_path}/{artifact_id}/{version}/{artifact_id}-{version}.pom"

    def read_model(self, group_id: str, artifact_id: str, version: str) -> Optional[RawModel]:
        """
        Download and parse a POM.

        Returns:
            The parsed model, or None if the repository does not have it

        Raises:
            NetworkError: If the repository cannot be reached or answers with an error
            ModelSourceError: If the downloaded content is not a valid POM
        """
        url = self.pom_url(group_id, artifact_id, version)
        logger.info(f"Downloading POM {group_id}:{artifact_id}:{version}")
        logger.debug(f"URL: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Error downloading {url}: {e}", url) from e

        if response.status_code == 404:
            logger.info(f"POM {group_id}:{artifact_id}:{version} not found in {self.base_url}")
            return None
        if not response.ok:
            raise NetworkError(f"Failed to download {url}: HTTP {response.status_code}", url, response.status_code)

        return parse_model(response.content, url)

    def close(self):
        """Close the session and clean up resources."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
