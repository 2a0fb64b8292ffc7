"""Reads vulnerable artifacts from security tracking issues in Jira."""

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from .exceptions import ConfigurationError, NetworkError
from .models import PackageCoordinate
from .ssl_config import create_session

logger = logging.getLogger(__name__)

DEFAULT_JIRA_SERVER = "https://issues.redhat.com"
SECURITY_LABEL = "SecurityTracking"
PAGE_SIZE = 100

CVE_PATTERN = re.compile(r'CVE-\d{4}-\d{4,}')
# groupId:artifactId[:classifier[:type]]:version tokens
COORDS_PATTERN = re.compile(r'(?<![\w.:\-])[A-Za-z][\w.\-]*(?::[\w.\-]*){2,4}')


def build_jql(project_key: str, fix_version: str) -> str:
    return (f'project = "{project_key}" AND fixVersion = "{fix_version}" '
            f'AND labels = "{SECURITY_LABEL}" ORDER BY key ASC')


def extract_cve_id(issue: Dict[str, Any]) -> Optional[str]:
    """The CVE id of an issue, taken from its labels first and its summary second."""
    fields = issue.get('fields') or {}
    for label in fields.get('labels') or []:
        match = CVE_PATTERN.search(label)
        if match:
            return match.group(0)
    match = CVE_PATTERN.search(fields.get('summary') or '')
    return match.group(0) if match else None


def extract_coordinates(text: str) -> List[PackageCoordinate]:
    """Find Maven coordinates mentioned in free text, de-duplicated in order."""
    coords: List[PackageCoordinate] = []
    for token in COORDS_PATTERN.findall(text or ''):
        token = token.rstrip('.-')
        try:
            coord = PackageCoordinate.from_string(token)
        except ConfigurationError:
            continue
        # groupIds are dotted, versions start with a digit
        if '.' not in coord.group_id or not coord.version[:1].isdigit():
            continue
        if coord not in coords:
            coords.append(coord)
    return coords


class JiraClient:
    """Client for the Jira REST API v2 search endpoint."""

    def __init__(self, server_url: str = DEFAULT_JIRA_SERVER, token: Optional[str] = None, timeout: int = 30):
        self.server_url = server_url.rstrip('/')
        self.timeout = timeout
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self.session = create_session(headers)

    def search(self, jql: str, fields: List[str]) -> List[Dict[str, Any]]:
        """
        Run a JQL search and return all matching issues across pages.

        Raises:
            NetworkError: If the server cannot be reached or rejects the query
        """
        url = f"{self.server_url}/rest/api/2/search"
        issues: List[Dict[str, Any]] = []
        start_at = 0

        while True:
            params = {
                "jql": jql,
                "startAt": start_at,
                "maxResults": PAGE_SIZE,
                "fields": ",".join(fields),
            }
            logger.debug(f"Searching {url} startAt={start_at}")
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                raise NetworkError(f"Error connecting to Jira at {self.server_url}: {e}", url) from e

            if response.status_code in (401, 403):
                raise NetworkError(f"Jira at {self.server_url} rejected the credentials: HTTP {response.status_code}",
                                   url, response.status_code)
            if not response.ok:
                raise NetworkError(f"Jira search failed at {self.server_url}: HTTP {response.status_code}",
                                   url, response.status_code)

            page = response.json()
            page_issues = page.get('issues') or []
            issues.extend(page_issues)
            start_at += len(page_issues)
            if not page_issues or start_at >= page.get('total', 0):
                break

        logger.info(f"Found {len(issues)} issues for: {jql}")
        return issues

    def read_vulnerable_artifacts(self, project_key: str, fix_version: str) -> Dict[str, List[PackageCoordinate]]:
        """
        Collect vulnerable coordinates per CVE for the issues targeting a fix version.

        Returns:
            CVE id -> vulnerable coordinates, merged across issues sharing an id
        """
        issues = self.search(build_jql(project_key, fix_version), ["summary", "description", "labels"])

        vulnerable: Dict[str, List[PackageCoordinate]] = {}
        for issue in issues:
            issue_key = issue.get('key', '<unknown>')
            cve_id = extract_cve_id(issue)
            if cve_id is None:
                logger.warning(f"Skipping {issue_key}: no CVE id found")
                continue

            fields = issue.get('fields') or {}
            text = f"{fields.get('summary') or ''}\n{fields.get('description') or ''}"
            coords = extract_coordinates(text)
            if not coords:
                logger.warning(f"{issue_key} ({cve_id}) does not mention any vulnerable artifact")

            merged = vulnerable.setdefault(cve_id, [])
            for coord in coords:
                if coord not in merged:
                    merged.append(coord)
            logger.debug(f"{issue_key}: {cve_id} -> {[c.to_compact_string() for c in coords]}")

        return vulnerable

    def close(self):
        """Close the session and clean up resources."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
