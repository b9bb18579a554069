import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from finding_review.config import ARCHIVE_INDENT, GLOBAL_ERROR_KEY
from finding_review.errors import ErrorKind
from finding_review.formatting import format_for_export
from finding_review.parsers import parse_tagged_text
from finding_review.schemas import InternalRepr

logger = logging.getLogger(__name__)


@dataclass
class MigrationError:
    key: str
    message: str
    kind: str = ErrorKind.INVALID_FINDING_STRUCTURE.value
    fatal: bool = True


@dataclass
class MigrationResult:
    migrated: Dict[str, InternalRepr] = field(default_factory=dict)
    errors: List[MigrationError] = field(default_factory=list)

    @property
    def failed_keys(self) -> List[str]:
        return [e.key for e in self.errors if e.fatal]

    def summary(self) -> str:
        return f"{len(self.migrated)} migrated, {len(self.failed_keys)} failed, {len(self.errors)} messages"


def migrate(archive_json: str, mode: Optional[str] = None) -> MigrationResult:
    """
    Parse an archive ({filename: tagged text}) into InternalRepr objects.

    Every key is processed independently: a bad entry is recorded in
    errors and skipped, the rest still migrate. Only an archive that is not
    a JSON object fails as a whole (under the GLOBAL key).
    """
    result = MigrationResult()

    try:
        raw_data = json.loads(archive_json)
    except (TypeError, ValueError, RecursionError):
        raw_data = None

    if not isinstance(raw_data, dict):
        logger.error("Archive is not a JSON object, nothing migrated")
        result.errors.append(MigrationError(
            key=GLOBAL_ERROR_KEY,
            message="Invalid input: Expected a JSON object mapping filenames to tagged text strings.",
            kind=ErrorKind.INVALID_ARCHIVE_SHAPE.value,
        ))
        return result

    for key, file_data in raw_data.items():
        if not isinstance(file_data, str):
            result.errors.append(MigrationError(
                key=key,
                message=f"Invalid data type for key {key}: Expected string. Found {type(file_data).__name__}.",
                kind=ErrorKind.KEY_TYPE_ERROR.value,
            ))
            continue

        parsed = parse_tagged_text(file_data, mode=mode)
        if not parsed.ok:
            logger.warning("Failed to migrate %s: %s", key, parsed.error.describe())
            result.errors.append(MigrationError(
                key=key,
                message=parsed.error.describe(),
                kind=parsed.error.kind.value,
            ))
            continue

        result.migrated[key] = parsed.value
        for warning in parsed.warnings:
            result.errors.append(MigrationError(
                key=key,
                message=f"Partial success with warning: {warning}",
                kind="Warning",
                fatal=False,
            ))

    logger.info("Archive migration finished: %s", result.summary())
    return result


def export_archive(labels: Mapping[str, InternalRepr]) -> str:
    """Serialize every image's labels into the archive file format."""
    export_data = {key: format_for_export(value) for key, value in labels.items()}
    return json.dumps(export_data, indent=ARCHIVE_INDENT, ensure_ascii=False)
