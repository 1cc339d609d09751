"""Sketch shapes and the UI-role hints attached to them before generation.

Hints are advisory: they travel with the outbound request to help the model
pick the right component for a shape and never influence control flow.
"""

from enum import Enum
from typing import Any

from .design import Element

# Keys forwarded to the generation service; everything else the canvas
# records (versions, seeds, bindings, ...) only inflates the prompt.
ESSENTIAL_SHAPE_KEYS = (
    "id",
    "type",
    "x",
    "y",
    "width",
    "height",
    "text",
    "fontSize",
    "strokeColor",
    "backgroundColor",
    "fillStyle",
)

HEADING_FONT_SIZE = 20
LABEL_MAX_CHARS = 20
ICON_MAX_SIZE = 50


class UIHint(str, Enum):
    BUTTON = "button"
    CARD = "card"
    INPUT = "input"
    CONTAINER = "container"
    HEADING = "heading"
    LABEL = "label"
    PARAGRAPH = "paragraph"
    ICON = "icon"
    DIVIDER = "divider"


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def ui_hint_for(shape: Element) -> UIHint | None:
    """Derive the coarse UI role of a shape from its type and geometry."""
    shape_type = shape.get("type")
    width = _number(shape.get("width"))
    height = _number(shape.get("height"))

    if shape_type == "rectangle":
        # Rules are applied in order; a later match overrides an earlier one.
        hint = UIHint.CONTAINER
        if width < 200 and height < 100:
            hint = UIHint.BUTTON
        if width > 200 and height > 200:
            hint = UIHint.CARD
        if width > 150 and height < 60:
            hint = UIHint.INPUT
        return hint

    if shape_type == "text":
        if _number(shape.get("fontSize")) > HEADING_FONT_SIZE:
            return UIHint.HEADING
        text = shape.get("text")
        if text and len(text) < LABEL_MAX_CHARS:
            return UIHint.LABEL
        return UIHint.PARAGRAPH

    if shape_type == "ellipse":
        if width < ICON_MAX_SIZE and height < ICON_MAX_SIZE:
            return UIHint.ICON
        return UIHint.BUTTON

    if shape_type == "line":
        return UIHint.DIVIDER

    return None


def annotate_shape(shape: Element) -> Element:
    """Return a compact copy of ``shape`` carrying its ``uiHint``."""
    annotated: Element = {key: shape.get(key) for key in ESSENTIAL_SHAPE_KEYS}
    annotated["groupIds"] = list(shape.get("groupIds") or [])
    hint = ui_hint_for(shape)
    if hint is not None:
        annotated["uiHint"] = hint.value
    return annotated


def annotate_shapes(shapes: list[Element]) -> list[Element]:
    return [annotate_shape(shape) for shape in shapes]
