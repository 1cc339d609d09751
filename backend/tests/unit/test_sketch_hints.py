"""Unit tests for UI-role hints attached to sketch shapes."""

import pytest

from devsketch.domain.entities import UIHint, annotate_shape, annotate_shapes, ui_hint_for


def _shape(shape_type: str, width: float = 0, height: float = 0, **extra) -> dict:
    return {"id": "s1", "type": shape_type, "x": 0, "y": 0, "width": width, "height": height, **extra}


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (60, 30, UIHint.BUTTON),
        (300, 300, UIHint.CARD),
        (300, 40, UIHint.INPUT),
        (180, 50, UIHint.INPUT),  # matches button first; the input rule wins
        (250, 150, UIHint.CONTAINER),
        (150, 150, UIHint.CONTAINER),
    ],
)
def test_rectangle_hints(width, height, expected):
    assert ui_hint_for(_shape("rectangle", width, height)) is expected


def test_text_hints():
    assert ui_hint_for(_shape("text", text="Welcome", fontSize=28)) is UIHint.HEADING
    assert ui_hint_for(_shape("text", text="Email", fontSize=16)) is UIHint.LABEL
    long_text = "This paragraph explains the product in detail."
    assert ui_hint_for(_shape("text", text=long_text, fontSize=16)) is UIHint.PARAGRAPH


def test_empty_or_missing_text_is_a_paragraph():
    assert ui_hint_for(_shape("text", text="", fontSize=16)) is UIHint.PARAGRAPH
    assert ui_hint_for(_shape("text", fontSize=16)) is UIHint.PARAGRAPH


def test_ellipse_and_line_hints():
    assert ui_hint_for(_shape("ellipse", 40, 40)) is UIHint.ICON
    assert ui_hint_for(_shape("ellipse", 120, 40)) is UIHint.BUTTON
    assert ui_hint_for(_shape("line", 400, 0)) is UIHint.DIVIDER


def test_unknown_shape_has_no_hint():
    assert ui_hint_for(_shape("freedraw", 10, 10)) is None
    assert "uiHint" not in annotate_shape(_shape("freedraw", 10, 10))


def test_missing_geometry_is_treated_as_zero():
    assert ui_hint_for({"type": "rectangle"}) is UIHint.BUTTON


def test_annotate_shape_keeps_only_essential_keys():
    shape = _shape(
        "rectangle",
        60,
        30,
        seed=12345,
        version=7,
        boundElements=[{"id": "t1"}],
        groupIds=["g1"],
        strokeColor="#000",
    )

    annotated = annotate_shape(shape)

    assert annotated["uiHint"] == "button"
    assert annotated["groupIds"] == ["g1"]
    assert annotated["strokeColor"] == "#000"
    assert "seed" not in annotated
    assert "boundElements" not in annotated


def test_annotate_shape_does_not_mutate_input():
    shape = _shape("rectangle", 60, 30)
    annotate_shapes([shape])
    assert "uiHint" not in shape
