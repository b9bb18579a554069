import json

import pytest
from pydantic import ValidationError

from finding_review.schemas import BasicFinding
from finding_review.store import FindingStore, LabelStore

TAGGED = (
    "<think>\nOne plate.\n</think>\n<output>\n"
    '[{"label": "Plate", "description": "d", "explanation": "e", '
    '"bounding_box": [5, 5, 50, 25], "severity": 3}]\n</output>'
)


def make_basic(label="Face"):
    return BasicFinding(
        label=label,
        description="d",
        explanation="e",
        bounding_box=[0, 0, 10, 10],
        severity=4,
    )


def test_add_and_remove_findings():
    store = FindingStore()
    first = store.add_finding(make_basic("Face"))
    ids = store.add_findings([make_basic("Plate"), make_basic("Document")])
    assert [f.label for f in store.findings] == ["Face", "Plate", "Document"]
    assert len({first, *ids}) == 3

    assert store.remove_finding(ids[0])
    assert not store.remove_finding("missing")
    assert [f.label for f in store.findings] == ["Face", "Document"]


def test_add_box_defaults():
    store = FindingStore()
    box_id = store.add_box([1, 2, 3, 4])
    finding = store.findings[0]
    assert finding.id == box_id
    assert finding.label == ""
    assert finding.severity == 5
    box = store.get_box(box_id)
    assert (box.x_min, box.y_min, box.x_max, box.y_max) == (1, 2, 3, 4)
    assert store.get_box("missing") is None


def test_update_box_keeps_identity():
    store = FindingStore()
    box_id = store.add_box([1, 2, 3, 4])
    color = store.findings[0].color
    assert store.update_box(box_id, [10, 20, 30, 40])
    assert store.findings[0].bounding_box == (10, 20, 30, 40)
    assert store.findings[0].id == box_id
    assert store.findings[0].color == color
    assert not store.update_box("missing", [10, 20, 30, 40])
    with pytest.raises(ValidationError):
        store.update_box(box_id, [30, 20, 10, 40])


def test_set_raw_text_keeps_previous_labels_on_failure():
    store = FindingStore()
    assert store.set_raw_text(TAGGED).ok
    assert store.think == "One plate."
    before = store.findings[0].id

    result = store.set_raw_text("<think>x</think><output>not json</output>")
    assert not result.ok
    assert store.findings[0].id == before


def test_formatted_and_clear():
    store = FindingStore()
    store.set_raw_text(TAGGED)
    assert store.formatted("export") == (
        "<think>\nOne plate.\n</think>\n<output>\n[\n  {\n"
        '    "label": "Plate",\n    "description": "d",\n    "explanation": "e",\n'
        '    "bounding_box": [5, 5, 50, 25],\n    "severity": 3\n  }\n]\n</output>'
    )
    store.clear()
    assert store.findings == []
    assert store.formatted() == "<think>\n</think>\n<output>\n[]\n</output>"


def test_label_store_load_archive_keeps_existing_on_failure():
    labels = LabelStore()
    labels.load_archive(json.dumps({"a.jpg": TAGGED, "b.jpg": TAGGED}))
    original_b = labels.get("b.jpg")

    result = labels.load_archive(json.dumps({"b.jpg": "<output>oops</output>", "c.jpg": TAGGED}))
    assert result.failed_keys == ["b.jpg"]
    assert labels.get("b.jpg") is original_b
    assert labels.keys() == ["a.jpg", "b.jpg", "c.jpg"]


def test_label_store_export_and_delete():
    labels = LabelStore()
    labels.load_archive(json.dumps({"a.jpg": TAGGED}))
    assert "a.jpg" in labels
    exported = json.loads(labels.export())
    assert list(exported) == ["a.jpg"]
    assert exported["a.jpg"] == FindingStore(labels.get("a.jpg")).formatted("export")

    assert labels.delete("a.jpg")
    assert not labels.delete("a.jpg")
    assert len(labels) == 0
    assert labels.export() == "{}"


def test_update_box_with_same_coordinates_is_a_no_op():
    store = FindingStore()
    box_id = store.add_box([1, 2, 3, 4])
    assert store.update_box(box_id, [1.0, 2.0, 3.0, 4.0])
    assert store.findings[0].bounding_box == (1, 2, 3, 4)
    assert all(isinstance(c, int) for c in store.findings[0].bounding_box)
