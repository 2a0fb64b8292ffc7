"""Package URL rendering for Maven coordinates."""

from typing import Dict

from packageurl import PackageURL

from .exceptions import MalformedIdentifierError
from .models import PackageCoordinate, PackageKey


def to_purl(key: PackageKey, version: str) -> str:
    """
    Render a key and version as a canonical Maven package URL.

    The type qualifier is always present, classifier only when non-empty.
    Qualifiers are emitted in sorted key order so the output is reproducible.

    Raises:
        MalformedIdentifierError: If the identifier cannot form a valid purl
    """
    if not key.group_id or not key.artifact_id:
        raise MalformedIdentifierError(key, version, "groupId and artifactId are required")
    if not version:
        raise MalformedIdentifierError(key, version, "version is required")

    qualifiers: Dict[str, str] = {"type": key.type}
    if key.classifier:
        qualifiers["classifier"] = key.classifier

    try:
        purl = PackageURL(
            type="maven",
            namespace=key.group_id,
            name=key.artifact_id,
            version=version,
            qualifiers=dict(sorted(qualifiers.items())),
            subpath=None,
        )
        return purl.to_string()
    except ValueError as e:
        raise MalformedIdentifierError(key, version, str(e)) from e


def bom_purl(bom: PackageCoordinate) -> str:
    """Render the package URL of a BOM artifact (always type=pom, no classifier)."""
    return to_purl(PackageKey(bom.group_id, bom.artifact_id, "", "pom"), bom.version)
