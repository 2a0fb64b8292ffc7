"""Maps reported vulnerable coordinates to the coordinates that fix them."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .exceptions import MalformedIdentifierError
from .models import AdvisoryMapping, ManagedComponent, PackageCoordinate, PackageKey, VulnerabilityRecord
from .purl import to_purl

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """What happened to a vulnerable component in the target BOM."""

    REMOVED = "removed"
    STILL_PRESENT = "still-present"
    REPLACED = "replaced"
    REPLACED_THEN_REMOVED = "replaced-then-removed"


@dataclass(frozen=True)
class ReconcileOutcome:
    vulnerability_id: str
    coordinate: PackageCoordinate
    outcome: Outcome
    fixed_versions: Tuple[str, ...] = ()


class FixReconciler:
    """
    Works out, per vulnerability, which package URLs in the current BOM fix it.

    For each vulnerable coordinate of a record, the candidate fixes are the
    versions of its key in the BOM minus every version named by the record's
    vulnerable coordinates:

    - key absent from the BOM: the component was removed, nothing to map
    - vulnerable version still present and no candidate left: the
      vulnerability is not fixed in the target; the remaining coordinates
      of the record are not examined
    - no candidate left otherwise: replaced and then removed, nothing to map
    - candidates left: each one is a fix

    None of these outcomes is an error; they are logged and kept in
    ``outcomes``.
    """

    def __init__(self, target_version: Optional[str] = None):
        self.target_version = target_version
        self.outcomes: List[ReconcileOutcome] = []

    def reconcile(self, vulnerabilities: Iterable[VulnerabilityRecord],
                  components: Mapping[PackageKey, ManagedComponent]) -> AdvisoryMapping:
        """
        Build the vulnerability id -> fix purls mapping.

        Ids are inserted in lexicographic order and each purl list is sorted.
        Vulnerabilities without any fix are omitted.
        """
        self.outcomes = []
        mapping: Dict[str, List[str]] = {}

        for record in vulnerabilities:
            if not record.vulnerable_coordinates:
                continue
            logger.info(f"{record.id}:")
            try:
                purls = self._reconcile_record(record, components)
            except MalformedIdentifierError as e:
                logger.error(f"Skipping {record.id}: {e}")
                continue
            if purls:
                if record.id in mapping:
                    purls = purls | set(mapping[record.id])
                mapping[record.id] = sorted(purls)

        return {vuln_id: mapping[vuln_id] for vuln_id in sorted(mapping)}

    def _reconcile_record(self, record: VulnerabilityRecord,
                          components: Mapping[PackageKey, ManagedComponent]) -> Set[str]:
        purls: Set[str] = set()
        vulnerable_versions = [c.version for c in record.vulnerable_coordinates]

        for vulnerable in record.vulnerable_coordinates:
            component = components.get(vulnerable.key)
            if component is None:
                self._record(record, vulnerable, Outcome.REMOVED)
                logger.info(f"  Component {vulnerable.to_compact_string()} was removed")
                continue

            still_present = vulnerable.version in component.versions
            # Vulnerable versions, including those of sibling coordinates, are never a fix
            fixed_versions = [v for v in component.versions if v not in vulnerable_versions]

            if not fixed_versions:
                if still_present:
                    self._record(record, vulnerable, Outcome.STILL_PRESENT)
                    logger.warning(f"  Component {vulnerable.to_compact_string()} is still present{self._where()}")
                    # Not fixed: stop remapping this record
                    break
                self._record(record, vulnerable, Outcome.REPLACED_THEN_REMOVED)
                logger.info(f"  Component {vulnerable.to_compact_string()} was removed")
                continue

            if still_present:
                logger.warning(f"  Component {vulnerable.to_compact_string()} is still present{self._where()} "
                               f"next to {', '.join(fixed_versions)}")

            self._record(record, vulnerable, Outcome.REPLACED, tuple(fixed_versions))
            logger.info(f"  Component {vulnerable.to_compact_string()} was replaced with "
                        f"{component.key}:[{', '.join(fixed_versions)}]")
            for version in fixed_versions:
                purls.add(to_purl(component.key, version))

        return purls

    def _where(self) -> str:
        return f" in {self.target_version}" if self.target_version else ""

    def _record(self, record: VulnerabilityRecord, coordinate: PackageCoordinate,
                outcome: Outcome, fixed_versions: Tuple[str, ...] = ()) -> None:
        self.outcomes.append(ReconcileOutcome(record.id, coordinate, outcome, fixed_versions))


def reconcile(vulnerabilities: Mapping[str, List[PackageCoordinate]],
              components: Mapping[PackageKey, ManagedComponent],
              target_version: Optional[str] = None) -> AdvisoryMapping:
    """Convenience wrapper taking the id -> coordinates mapping a vulnerability source returns."""
    return FixReconciler(target_version).reconcile(VulnerabilityRecord.from_mapping(vulnerabilities), components)
