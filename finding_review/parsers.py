import json
import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import ValidationError

from finding_review.config import VALIDATION_MODES, validation_mode
from finding_review.errors import ErrorKind, ParseError
from finding_review.normalize import normalize
from finding_review.schemas import (
    Finding,
    InternalRepr,
    field_errors,
    validate_basic_finding,
    validate_basic_findings,
    validate_internal_repr,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SINGLE_OBJECT_WARNING = "Parsed output as a single finding object, wrapping in array."
MISSING_TAGS_WARNING = "Input text appears to be only an output section (JSON array). Using empty think text."


@dataclass
class ParseResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ParseError] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, details=None) -> "ParseResult[T]":
        return cls(error=ParseError(kind, message, details))


# ----- Section extraction -----

def find_section(text: str, tag: str) -> Optional[str]:
    """Return the trimmed text between <tag> and </tag>, or None if the pair is not found."""
    start_marker = f"<{tag}>"
    end_marker = f"</{tag}>"
    start = text.find(start_marker)
    end = text.find(end_marker)
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start + len(start_marker):end].strip()


def extract_section(text: str, tag: str) -> str:
    """
    Pull the content of the first <tag>...</tag> pair out of text.

    This is a literal substring search, nested tags of the same name are not
    handled. An empty string means the section is absent (or empty), the
    caller decides whether that is an error.
    """
    section = find_section(text, tag)
    return section if section is not None else ""


def count_markers(text: str, tag: str):
    return text.count(f"<{tag}>"), text.count(f"</{tag}>")


# ----- Output section -----

def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant {name}")


def _load_json(raw: str) -> Any:
    return json.loads(raw, parse_constant=_reject_constant)


def parse_output_section(raw: str) -> ParseResult[List[Finding]]:
    """
    Parse the JSON inside an <output> block into normalized findings.

    A lone finding object (instead of a one-element array) is accepted and
    reported through the result warnings.
    """
    if not raw or not raw.strip():
        return ParseResult(value=[])

    try:
        parsed = _load_json(raw)
    except (ValueError, RecursionError) as e:
        logger.debug("Output section is not valid JSON: %s", e)
        return ParseResult.failure(ErrorKind.INVALID_JSON, f"Invalid JSON format in output section: {e}")

    try:
        basics = validate_basic_findings(parsed)
    except ValidationError as list_error:
        try:
            single = validate_basic_finding(parsed)
        except ValidationError as single_error:
            # report against the shape the model actually produced
            cause = single_error if isinstance(parsed, dict) else list_error
            return ParseResult.failure(
                ErrorKind.INVALID_FINDING_STRUCTURE,
                "Invalid finding structure.",
                field_errors(cause),
            )
        logger.warning(SINGLE_OBJECT_WARNING)
        return ParseResult(value=normalize([single]), warnings=[SINGLE_OBJECT_WARNING])

    return ParseResult(value=normalize(basics))


# ----- Full tagged text -----

def _check_strict_markers(raw: str) -> Optional[ParseResult[InternalRepr]]:
    for tag in ("think", "output"):
        opened, closed = count_markers(raw, tag)
        if opened != 1 or closed != 1:
            return ParseResult.failure(
                ErrorKind.MISSING_SECTIONS,
                f"Invalid format: expected exactly one <{tag}> section, "
                f"found {opened} opening and {closed} closing markers.",
            )
        if not extract_section(raw, tag):
            return ParseResult.failure(
                ErrorKind.MISSING_SECTIONS,
                f"Invalid format: the <{tag}> section is empty.",
            )
    return None


def parse_tagged_text(raw: str, mode: Optional[str] = None) -> ParseResult[InternalRepr]:
    """
    Parse a <think>...</think><output>...</output> blob into an InternalRepr.

    mode is "permissive" or "strict" and defaults to the configured
    validation mode. Permissive parsing accepts a bare JSON array without any
    tags; strict parsing requires both sections exactly once.
    """
    if mode is None:
        mode = validation_mode()
    elif mode not in VALIDATION_MODES:
        raise ValueError(f"Unknown validation mode {mode!r}, expected one of {VALIDATION_MODES}")

    if not raw or not raw.strip():
        return ParseResult(value=InternalRepr())

    warnings: List[str] = []

    if mode == "strict":
        failed = _check_strict_markers(raw)
        if failed is not None:
            return failed

    think = extract_section(raw, "think")
    output = extract_section(raw, "output")

    # both sections empty or absent: maybe a bare JSON array without tags
    if not think and not output:
        fallback = parse_output_section(raw.strip())
        if not fallback.ok:
            return ParseResult.failure(
                ErrorKind.MISSING_SECTIONS,
                "Invalid format: Missing <think> and <output> tags, and content is not valid JSON output.",
                fallback.error.details,
            )
        logger.warning(MISSING_TAGS_WARNING)
        warnings.extend(fallback.warnings)
        warnings.append(MISSING_TAGS_WARNING)
        return ParseResult(value=InternalRepr(output=fallback.value), warnings=warnings)

    parsed_output = parse_output_section(output)
    if not parsed_output.ok:
        error = parsed_output.error
        return ParseResult.failure(
            error.kind,
            f"Failed to parse <output> section: {error.message}",
            error.details,
        )
    warnings.extend(parsed_output.warnings)

    try:
        labels = validate_internal_repr({
            "think": think,
            "output": [finding.model_dump() for finding in parsed_output.value],
        })
    except ValidationError as e:
        return ParseResult.failure(
            ErrorKind.INVALID_FINDING_STRUCTURE,
            "Internal validation failed.",
            field_errors(e),
        )

    return ParseResult(value=labels, warnings=warnings)
