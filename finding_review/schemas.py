from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    confloat,
)

BASIC_FIELDS = ("label", "description", "explanation", "bounding_box", "severity")


def _reject_bool(value: Any) -> Any:
    # JSON true/false must never pass as 1/0
    if isinstance(value, bool):
        raise ValueError("Input should be a number, not a boolean")
    return value


def _non_negative(value: Union[int, float]) -> Union[int, float]:
    if value < 0:
        raise ValueError("All coordinates must be non-negative")
    return value


def _ordered_corners(box: Tuple[Any, ...]) -> Tuple[Any, ...]:
    x_min, y_min, x_max, y_max = box
    if not (x_min < x_max and y_min < y_max):
        raise ValueError("x_min must be less than x_max and y_min must be less than y_max")
    return box


Number = Annotated[
    Union[StrictInt, confloat(strict=True, allow_inf_nan=False)],
    BeforeValidator(_reject_bool),
]
Coordinate = Annotated[Number, AfterValidator(_non_negative)]

# [x_min, y_min, x_max, y_max]
BoundingBox = Annotated[
    Tuple[Coordinate, Coordinate, Coordinate, Coordinate],
    AfterValidator(_ordered_corners),
]


class BasicFinding(BaseModel):
    """A finding as the model authors it: no identity, no display color."""

    model_config = ConfigDict(extra="forbid")

    label: StrictStr
    description: StrictStr
    explanation: StrictStr
    bounding_box: BoundingBox
    severity: Number  # 0-10 by convention, 0 means "not private data"


class Finding(BasicFinding):
    """A BasicFinding with a stable id and a display color."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: StrictStr
    color: StrictStr

    def to_basic(self) -> BasicFinding:
        return BasicFinding(**self.model_dump(include=set(BASIC_FIELDS)))


class InternalRepr(BaseModel):
    """Per-image state: the model's reasoning plus its ordered findings."""

    model_config = ConfigDict(extra="forbid")

    think: StrictStr = ""
    output: List[Finding] = Field(default_factory=list)

    def basic_findings(self) -> List[BasicFinding]:
        return [finding.to_basic() for finding in self.output]

    def same_content(self, other: "InternalRepr") -> bool:
        """Compare ignoring ids and colors."""
        if self.think != other.think:
            return False
        return [f.model_dump() for f in self.basic_findings()] == [
            f.model_dump() for f in other.basic_findings()
        ]


@dataclass(frozen=True)
class FieldError:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


_bbox_adapter = TypeAdapter(BoundingBox)
_basic_list_adapter = TypeAdapter(List[BasicFinding])
_finding_list_adapter = TypeAdapter(List[Finding])


def field_errors(exc: ValidationError) -> List[FieldError]:
    """Flatten pydantic error locations into dotted field paths."""
    return [
        FieldError(".".join(str(part) for part in err["loc"]), err["msg"])
        for err in exc.errors()
    ]


def validate_bounding_box(value: Any) -> Tuple[Union[int, float], ...]:
    return _bbox_adapter.validate_python(value)


def validate_basic_finding(value: Any) -> BasicFinding:
    return BasicFinding.model_validate(value)


def validate_finding(value: Any) -> Finding:
    return Finding.model_validate(value)


def validate_basic_findings(value: Any) -> List[BasicFinding]:
    return _basic_list_adapter.validate_python(value)


def validate_findings(value: Any) -> List[Finding]:
    return _finding_list_adapter.validate_python(value)


def validate_internal_repr(value: Any) -> InternalRepr:
    return InternalRepr.model_validate(value)


# ----- HTTP payloads -----

ValidationMode = Literal["permissive", "strict"]
FormatMode = Literal["export", "display"]


class ErrorDetail(BaseModel):
    kind: str
    message: str
    details: List[str] = []


class ParseRequest(BaseModel):
    text: str
    mode: Optional[ValidationMode] = None


class ParseResponse(BaseModel):
    labels: InternalRepr
    warnings: List[str] = []


class FormatRequest(BaseModel):
    labels: InternalRepr
    mode: FormatMode = "export"


class FormatResponse(BaseModel):
    text: str


class MigrateRequest(BaseModel):
    archive: str
    mode: Optional[ValidationMode] = None


class MigrationErrorOut(BaseModel):
    key: str
    message: str
    kind: str
    fatal: bool = True


class MigrateResponse(BaseModel):
    migrated: Dict[str, InternalRepr]
    errors: List[MigrationErrorOut]


class ExportRequest(BaseModel):
    labels: Dict[str, InternalRepr]


class ExportResponse(BaseModel):
    archive: str
