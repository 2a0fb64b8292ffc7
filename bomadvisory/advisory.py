"""Assembles and writes the CVE to component mapping document."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import FileSystemError
from .models import AdvisoryMapping, PackageCoordinate
from .purl import bom_purl

logger = logging.getLogger(__name__)

MAPPING_TYPE = "cve-component-mapping"
MAPPING_VERSION = "0.0.2"


def assemble(bom: PackageCoordinate, mapping: AdvisoryMapping) -> Dict[str, Any]:
    """
    Build the advisory document.

    The manifest reference to the BOM is always present. The simple-mapper
    section is only added when at least one vulnerability has a fix.
    """
    document: Dict[str, Any] = {
        "manifest": {
            "refs": [{"type": "purl", "uri": bom_purl(bom)}],
        },
    }

    if mapping:
        document["simple-mapper"] = {
            "refs": [{
                "type": MAPPING_TYPE,
                "version": MAPPING_VERSION,
                "fix": {vuln_id: list(purls) for vuln_id, purls in mapping.items()},
            }],
        }

    return document


def format_advisory(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2) + "\n"


def write_advisory(document: Dict[str, Any], output_file: Optional[Union[str, Path]] = None) -> None:
    """
    Write the document to a file, or to the console when no file is given.

    Raises:
        FileSystemError: If the target is a directory or cannot be written
    """
    content = format_advisory(document)

    if output_file is None:
        logger.info("ADVISORY NOTE:")
        print(content, end='')
        return

    path = Path(output_file)
    if path.is_dir():
        raise FileSystemError(f"{path} appears to be a directory", path)

    absolute_path = path.resolve()
    try:
        absolute_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving result in {absolute_path}")
        with open(absolute_path, 'w') as f:
            f.write(content)
    except OSError as e:
        raise FileSystemError(f"Failed to write {absolute_path}: {e}", absolute_path) from e
