import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from finding_review.config import DEFAULT_BOX_SEVERITY
from finding_review.formatting import format_internal_repr
from finding_review.migration import MigrationResult, export_archive, migrate
from finding_review.normalize import normalize, to_finding
from finding_review.parsers import ParseResult, parse_tagged_text
from finding_review.schemas import BasicFinding, Finding, InternalRepr, validate_bounding_box
from finding_review.utils import bbox_equals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoxView:
    id: str
    color: str
    x_min: float
    y_min: float
    x_max: float
    y_max: float


def _box_view(finding: Finding) -> BoxView:
    x_min, y_min, x_max, y_max = finding.bounding_box
    return BoxView(finding.id, finding.color, x_min, y_min, x_max, y_max)


class FindingStore:
    """Findings for the image currently under review."""

    def __init__(self, labels: Optional[InternalRepr] = None):
        self.labels = labels if labels is not None else InternalRepr()

    @property
    def findings(self) -> List[Finding]:
        return self.labels.output

    @property
    def think(self) -> str:
        return self.labels.think

    def _find(self, finding_id: str) -> Optional[Finding]:
        for finding in self.labels.output:
            if finding.id == finding_id:
                return finding
        return None

    def add_finding(self, basic: BasicFinding) -> str:
        finding = to_finding(basic)
        self.labels.output.append(finding)
        return finding.id

    def add_findings(self, basics: Iterable[BasicFinding]) -> List[str]:
        findings = normalize(basics)
        self.labels.output.extend(findings)
        return [f.id for f in findings]

    def add_box(self, bbox: Sequence[float]) -> str:
        """Add a hand-drawn box with empty text fields."""
        basic = BasicFinding(
            label="",
            description="",
            explanation="",
            bounding_box=bbox,
            severity=DEFAULT_BOX_SEVERITY,
        )
        return self.add_finding(basic)

    def get_box(self, finding_id: str) -> Optional[BoxView]:
        finding = self._find(finding_id)
        if finding is None:
            return None
        return _box_view(finding)

    def boxes(self) -> List[BoxView]:
        return [_box_view(f) for f in self.labels.output]

    def update_box(self, finding_id: str, bbox: Sequence[float]) -> bool:
        finding = self._find(finding_id)
        if finding is None:
            return False
        if not bbox_equals(finding.bounding_box, bbox):
            finding.bounding_box = validate_bounding_box(bbox)
        return True

    def remove_finding(self, finding_id: str) -> bool:
        before = len(self.labels.output)
        self.labels.output = [f for f in self.labels.output if f.id != finding_id]
        return len(self.labels.output) != before

    def clear(self):
        self.labels = InternalRepr()

    def set_raw_text(self, text: str, mode: Optional[str] = None) -> ParseResult[InternalRepr]:
        """Replace the labels with parsed text. On failure the current labels stay."""
        result = parse_tagged_text(text, mode=mode)
        if result.ok:
            self.labels = result.value
        else:
            logger.warning("Keeping previous labels: %s", result.error.describe())
        return result

    def formatted(self, mode: str = "display") -> str:
        return format_internal_repr(self.labels, mode)


class LabelStore:
    """Labels for every loaded image, keyed by filename."""

    def __init__(self):
        self._labels: Dict[str, InternalRepr] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def keys(self) -> List[str]:
        return list(self._labels)

    def get(self, key: str) -> Optional[InternalRepr]:
        return self._labels.get(key)

    def set(self, key: str, labels: InternalRepr):
        self._labels[key] = labels

    def delete(self, key: str) -> bool:
        return self._labels.pop(key, None) is not None

    def clear(self):
        self._labels = {}

    def load_archive(self, archive_json: str, mode: Optional[str] = None) -> MigrationResult:
        """Merge an archive in. Keys that fail to migrate keep their current labels."""
        result = migrate(archive_json, mode=mode)
        self._labels.update(result.migrated)
        return result

    def export(self) -> str:
        return export_archive(self._labels)
