import pytest

from finding_review.formatting import findings_to_json, format_internal_repr, format_output_block
from finding_review.parsers import parse_tagged_text
from finding_review.schemas import BasicFinding, Finding, InternalRepr


def make_finding(bbox=(10.4, 20.5, 30.6, 40), severity=5, label="Face"):
    return Finding(
        label=label,
        description="desc",
        explanation="why",
        bounding_box=bbox,
        severity=severity,
        id="id-" + label,
        color="#abcdef",
    )


def test_display_format_exact_text():
    labels = InternalRepr(think="reasoning", output=[make_finding()])
    expected = (
        "<think>\n"
        "reasoning\n"
        "</think>\n"
        "<output>\n"
        "[\n"
        "  {\n"
        '    "label": "Face",\n'
        '    "description": "desc",\n'
        '    "explanation": "why",\n'
        '    "bounding_box": [10.4, 20.5, 30.6, 40],\n'
        '    "severity": 5\n'
        "  }\n"
        "]\n"
        "</output>"
    )
    assert format_internal_repr(labels, "display") == expected


def test_export_rounds_coordinates():
    labels = InternalRepr(think="reasoning", output=[make_finding()])
    text = format_internal_repr(labels, "export")
    assert '"bounding_box": [10, 21, 31, 40]' in text
    assert "id-Face" not in text
    assert "#abcdef" not in text


def test_export_does_not_touch_stored_coordinates():
    finding = make_finding()
    format_internal_repr(InternalRepr(output=[finding]), "export")
    assert finding.bounding_box == (10.4, 20.5, 30.6, 40)


def test_empty_repr():
    assert format_internal_repr(InternalRepr(), "export") == "<think>\n</think>\n<output>\n[]\n</output>"


def test_unknown_mode():
    with pytest.raises(ValueError):
        format_internal_repr(InternalRepr(), "pdf")


def test_findings_to_json_accepts_basic_findings():
    basic = make_finding().to_basic()
    assert isinstance(basic, BasicFinding)
    assert findings_to_json([basic]) == findings_to_json([make_finding()])


def test_text_that_looks_like_a_bbox_is_left_alone():
    finding = make_finding()
    finding.description = 'copy of "bounding_box": [\n1,\n2]'
    text = findings_to_json([finding])
    assert '\\"bounding_box\\": [\\n1,\\n2]' in text


def test_output_block():
    assert format_output_block([]) == "<output>\n[]\n</output>"


def test_display_round_trip():
    labels = InternalRepr(
        think="Step 1: a face.\nStep 2: a plate.",
        output=[make_finding(), make_finding(bbox=(0, 0, 1.25, 3), severity=2.5, label="Plate")],
    )
    parsed = parse_tagged_text(format_internal_repr(labels, "display"))
    assert parsed.ok
    assert parsed.value.same_content(labels)
    assert [f.label for f in parsed.value.output] == ["Face", "Plate"]


def test_export_round_trip_gives_integer_boxes():
    labels = InternalRepr(think="t", output=[make_finding()])
    parsed = parse_tagged_text(format_internal_repr(labels, "export"))
    assert parsed.ok
    assert all(isinstance(c, int) for c in parsed.value.output[0].bounding_box)


def test_format_is_idempotent():
    labels = InternalRepr(think="t", output=[make_finding()])
    once = format_internal_repr(labels, "display")
    twice = format_internal_repr(parse_tagged_text(once).value, "display")
    assert once == twice
