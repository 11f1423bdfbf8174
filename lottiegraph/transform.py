"""
Transform compositor and anchor-pivot rewriter.

Lottie transforms are ``T(position) . R(rotation) . S(scale) . T(-anchor)``.
The target scene graph has position, rotation and scale but no pivot, so
an element with a non-zero anchor is split in two:

    outer group   x, y, scaleX, scaleY, rotation   (+ their timelines)
      inner el    x = -anchorX, y = -anchorY       (+ anchor timelines,
                                                     retargeted to x/y)

Rotation and scale of the outer group then act about the anchor point.
"""

from __future__ import annotations

import math
from typing import Any

from lottiegraph.types import CompileContext, Element, Timeline
from lottiegraph.values import resolve

TRANSFORM_KEYS = frozenset({"x", "y", "scaleX", "scaleY", "rotation"})

# Anchor attribute -> position attribute it turns into on the inner element.
ANCHOR_KEYS = {"anchorX": "x", "anchorY": "y"}


def to_rotation(degrees: float) -> float:
    """Clockwise Lottie degrees to counter-clockwise radians."""
    return -degrees / 180 * math.pi if degrees else 0.0


def from_percent(value: float) -> float:
    return value / 100


def compose_transform(ks: Any, ctx: CompileContext) -> tuple[dict[str, Any], list[Timeline]]:
    """
    Resolve a Lottie transform into element attributes and timelines.

    Position goes to ``x``/``y`` (a split position resolves each axis on
    its own), scale to ``scaleX``/``scaleY`` divided by 100, rotation to
    ``rotation`` in radians with the sign inverted, and the anchor to
    ``anchorX``/``anchorY`` for :func:`rewrite_anchor`.
    """
    attrs: dict[str, Any] = {}
    timelines: list[Timeline] = []
    if not isinstance(ks, dict):
        return attrs, timelines

    position = ks.get("p")
    if isinstance(position, dict) and position.get("s") and ("x" in position or "y" in position):
        resolve(position.get("x"), "", ["x"], attrs, timelines, ctx)
        resolve(position.get("y"), "", ["y"], attrs, timelines, ctx)
    else:
        resolve(position, "", ["x", "y"], attrs, timelines, ctx)

    resolve(ks.get("s"), "", ["scaleX", "scaleY"], attrs, timelines, ctx,
            convert=from_percent)
    rotation = ks.get("r", ks.get("rz"))
    resolve(rotation, "", ["rotation"], attrs, timelines, ctx, convert=to_rotation)
    resolve(ks.get("a"), "", ["anchorX", "anchorY"], attrs, timelines, ctx)
    return attrs, timelines


def apply_transform(element: Element, ks: Any, ctx: CompileContext) -> Element:
    attrs, timelines = compose_transform(ks, ctx)
    element.attrs.update(attrs)
    element.timelines.extend(timelines)
    return element


# ---------------------------------------------------------------------------
# Anchor rewriting
# ---------------------------------------------------------------------------

def has_anchor(element: Element) -> bool:
    """True when the element has a non-zero or animated anchor."""
    if any(element.attrs.get(key) for key in ANCHOR_KEYS):
        return True
    return any(tl.touched_keys() & ANCHOR_KEYS.keys() for tl in element.timelines)


def _negate(value: Any) -> Any:
    return -value if value else 0


def _retarget_anchor(timeline: Timeline) -> None:
    for kf in timeline.keyframes:
        for anchor_key, position_key in ANCHOR_KEYS.items():
            if anchor_key in kf:
                kf[position_key] = _negate(kf.pop(anchor_key))


def rewrite_anchor(element: Element) -> tuple[Element, Element]:
    """
    Move a pivot into a wrapper group.

    Returns ``(outer, inner)``: ``outer`` replaces the element in the tree
    and ``inner`` is where content belonging to the element's local space
    goes.  Without an anchor both are the element itself.
    """
    if not has_anchor(element):
        for key in ANCHOR_KEYS:
            element.attrs.pop(key, None)
        return element, element

    outer = Element.group()
    for key in list(element.attrs):
        if key in TRANSFORM_KEYS:
            outer.attrs[key] = element.attrs.pop(key)

    for anchor_key, position_key in ANCHOR_KEYS.items():
        element.attrs[position_key] = _negate(element.attrs.pop(anchor_key, 0))

    kept: list[Timeline] = []
    for timeline in element.timelines:
        keys = timeline.touched_keys()
        if keys & TRANSFORM_KEYS:
            outer.timelines.append(timeline)
            continue
        if keys & ANCHOR_KEYS.keys():
            _retarget_anchor(timeline)
        kept.append(timeline)
    element.timelines = kept

    outer.add_child(element)
    return outer, element
