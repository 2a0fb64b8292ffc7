"""Property table handling for POM models."""

import logging
from typing import Dict, Mapping

logger = logging.getLogger(__name__)


def resolve_version(version: str, properties: Mapping[str, str]) -> str:
    """
    Resolve a managed dependency version against a property table.

    Only a version of the exact form ${name} is substituted. Anything else,
    including a reference to an unknown property, is returned unchanged so
    that it simply fails to match downstream.
    """
    if not version or not (version.startswith('${') and version.endswith('}')):
        return version

    prop_name = version[2:-1]
    value = properties.get(prop_name)
    if value is None:
        logger.debug(f"Property {prop_name} is not defined, keeping {version}")
        return version
    return value


def merge_properties(accumulated: Dict[str, str], inherited: Mapping[str, str]) -> int:
    """
    Merge parent properties into the accumulated table without overwriting.

    Child POMs are read before their parents, so keys already present win.

    Returns:
        Number of properties added
    """
    added = 0
    for name, value in inherited.items():
        if name not in accumulated:
            accumulated[name] = value
            added += 1
    return added
