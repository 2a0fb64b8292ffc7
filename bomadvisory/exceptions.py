"""Exception hierarchy for bomadvisory."""

from typing import Any, Dict, Optional


class BomAdvisoryError(Exception):
    """Base class for all bomadvisory errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(BomAdvisoryError):
    """Invalid or missing run configuration, or an unusable BOM."""


class MalformedIdentifierError(BomAdvisoryError):
    """A package URL could not be built for a key and version."""

    def __init__(self, key, version: str, cause: Optional[str] = None):
        message = f"Failed to generate purl for {key}:{version}"
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message, {"key": str(key), "version": version})
        self.key = key
        self.version = version


class ModelSourceError(BomAdvisoryError):
    """A package model could not be read from its source."""


class NetworkError(BomAdvisoryError):
    """A remote service could not be reached or answered with an error."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, {"url": url, "status_code": status_code})
        self.url = url
        self.status_code = status_code


class FileSystemError(BomAdvisoryError):
    """Reading or writing a local path failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message, {"path": str(path) if path is not None else None})
        self.path = path


class ProtocolViolationError(BomAdvisoryError):
    """A release decomposition driver broke the visitor call ordering."""
