from enum import Enum
from typing import List, Optional

from finding_review.schemas import FieldError


class ErrorKind(str, Enum):
    INVALID_JSON = "InvalidJSON"
    INVALID_FINDING_STRUCTURE = "InvalidFindingStructure"
    MISSING_SECTIONS = "MissingSections"
    INVALID_ARCHIVE_SHAPE = "InvalidArchiveShape"
    KEY_TYPE_ERROR = "KeyTypeError"


class ParseError(Exception):
    """A typed parse failure, returned to callers rather than raised."""

    def __init__(self, kind: ErrorKind, message: str, details: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = list(details or [])

    def describe(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} ({'; '.join(str(d) for d in self.details)})"

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": [str(d) for d in self.details],
        }

    def __repr__(self) -> str:
        return f"ParseError({self.kind.value}, {self.message!r})"
