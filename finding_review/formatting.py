"""
Serialization of InternalRepr back into tagged text.

Export mode rounds every bounding-box coordinate to an integer, display mode
keeps coordinates as stored. Both produce JSON indented by two spaces with
each bounding_box kept on a single line.
"""

import json
import re
from typing import Iterable, List, Union

from finding_review.config import ARCHIVE_INDENT
from finding_review.schemas import BasicFinding, Finding, InternalRepr
from finding_review.utils import round_bbox

FORMAT_MODES = ("export", "display")

# "bounding_box": [\n  1,\n  2,\n  3,\n  4\n]  ->  "bounding_box": [1, 2, 3, 4]
_BBOX_BLOCK = re.compile(r'"bounding_box": \[\s*([^\]]*?)\s*\]', re.DOTALL)
_ITEM_SEPARATOR = re.compile(r",\s*")


def _one_line_bbox(match: "re.Match") -> str:
    return '"bounding_box": [' + _ITEM_SEPARATOR.sub(", ", match.group(1)) + "]"


def findings_to_json(findings: Iterable[Union[Finding, BasicFinding]]) -> str:
    """Pretty-print findings as their exchange form, ids and colors dropped."""
    basics = [f.to_basic() if isinstance(f, Finding) else f for f in findings]
    payload = [basic.model_dump() for basic in basics]
    text = json.dumps(payload, indent=ARCHIVE_INDENT, ensure_ascii=False)
    return _BBOX_BLOCK.sub(_one_line_bbox, text)


def _project(findings: List[Finding], mode: str) -> List[BasicFinding]:
    basics = [finding.to_basic() for finding in findings]
    if mode == "export":
        basics = [b.model_copy(update={"bounding_box": round_bbox(b.bounding_box)}) for b in basics]
    return basics


def format_output_block(findings: Iterable[Union[Finding, BasicFinding]]) -> str:
    return f"<output>\n{findings_to_json(findings)}\n</output>"


def format_internal_repr(labels: InternalRepr, mode: str = "export") -> str:
    if mode not in FORMAT_MODES:
        raise ValueError(f"Unknown format mode {mode!r}, expected one of {FORMAT_MODES}")

    think_block = f"<think>\n{labels.think}\n</think>" if labels.think else "<think>\n</think>"
    output_block = format_output_block(_project(labels.output, mode))
    return f"{think_block}\n{output_block}"


def format_for_export(labels: InternalRepr) -> str:
    return format_internal_repr(labels, "export")


def format_for_display(labels: InternalRepr) -> str:
    return format_internal_repr(labels, "display")
