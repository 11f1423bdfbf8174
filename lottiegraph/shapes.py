"""
Shape-list compilation.

A shape layer (or group) holds a flat list mixing geometry (``sh``,
``el``, ``rc``), nested groups (``gr``), a group transform (``tr``) and
modifiers (``fl``, ``st``, ``tm``, ``rp``).  The list is walked in reverse
declaration order so the first-declared shape ends up last in the child
list and renders on top.

Modifier binding: each geometry element takes, per modifier kind, the
nearest modifier declared after it; with none after it, the nearest one
declared before it.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from lottiegraph.keyframes import build_timeline
from lottiegraph.transform import apply_transform, from_percent, rewrite_anchor
from lottiegraph.types import (
    CompileContext,
    Element,
    ElementType,
    ShapeType,
    clone_tree,
)
from lottiegraph.values import resolve, resolve_color, static_value

logger = logging.getLogger(__name__)

GEOMETRY_TYPES = frozenset({ShapeType.PATH, ShapeType.ELLIPSE, ShapeType.RECT})
MODIFIER_TYPES = frozenset({
    ShapeType.FILL, ShapeType.STROKE, ShapeType.TRIM, ShapeType.REPEATER,
})

LINE_CAPS = {1: "butt", 2: "round", 3: "square"}
LINE_JOINS = {1: "miter", 2: "round", 3: "bevel"}


def shape_type(shape: Any) -> ShapeType:
    if not isinstance(shape, dict):
        return ShapeType.UNKNOWN
    return ShapeType.from_code(shape.get("ty"))


def bind_modifiers(
    shapes: list[Any], kinds: list[ShapeType],
) -> list[dict[ShapeType, dict[str, Any]] | None]:
    """Per list index, the modifiers that apply to the geometry there
    (None for non-geometry entries)."""
    bound: list[dict[ShapeType, dict[str, Any]] | None] = [None] * len(shapes)
    following: dict[ShapeType, dict[str, Any]] = {}
    for idx in reversed(range(len(shapes))):
        if kinds[idx] in MODIFIER_TYPES:
            following[kinds[idx]] = shapes[idx]
        elif kinds[idx] in GEOMETRY_TYPES:
            bound[idx] = dict(following)
    preceding: dict[ShapeType, dict[str, Any]] = {}
    for idx in range(len(shapes)):
        if kinds[idx] in MODIFIER_TYPES:
            preceding[kinds[idx]] = shapes[idx]
        elif bound[idx] is not None:
            for kind, modifier in preceding.items():
                bound[idx].setdefault(kind, modifier)
    return bound


def compile_shapes(shapes: Any, ctx: CompileContext) -> list[Element]:
    """Compile a shape list into output elements, topmost last."""
    if not isinstance(shapes, list):
        return []
    kinds = [shape_type(s) for s in shapes]
    bound = bind_modifiers(shapes, kinds)
    elements: list[Element] = []

    for idx in reversed(range(len(shapes))):
        shape, kind = shapes[idx], kinds[idx]
        if kind is ShapeType.UNKNOWN:
            logger.debug("Skipping unsupported shape type %r",
                         shape.get("ty") if isinstance(shape, dict) else shape)
            continue
        if shape.get("hd"):
            continue
        if kind is ShapeType.GROUP:
            el = compile_group(shape, ctx)
        elif kind in GEOMETRY_TYPES:
            el = compile_geometry(shape, kind, bound[idx] or {}, ctx)
        else:
            # Modifiers and the group transform were consumed already.
            continue
        elements.append(el)
    return elements


def _name(shape: dict[str, Any], ctx: CompileContext) -> str | None:
    name = shape.get("nm")
    if ctx.options.keep_names and isinstance(name, str):
        return name
    return None


def compile_group(shape: dict[str, Any], ctx: CompileContext) -> Element:
    items = shape.get("it") if isinstance(shape.get("it"), list) else []
    group = Element.group(compile_shapes(items, ctx), name=_name(shape, ctx))
    for item in items:
        if shape_type(item) is ShapeType.TRANSFORM:
            apply_transform(group, item, ctx)
            break
    outer, _ = rewrite_anchor(group)
    return outer


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def _is_bezier(value: Any) -> bool:
    return isinstance(value, dict) and "v" in value and "i" in value and "o" in value


def _bezier_from(value: Any) -> dict[str, Any] | None:
    """Accept a bezier dict or the one-element list keyframes wrap it in."""
    if isinstance(value, list) and value:
        value = value[0]
    return value if _is_bezier(value) else None


def bezier_shape(bezier: dict[str, Any]) -> dict[str, Any]:
    return {
        "in": clone_tree(bezier.get("i") or []),
        "out": clone_tree(bezier.get("o") or []),
        "v": clone_tree(bezier.get("v") or []),
        "close": bool(bezier.get("c")),
    }


def _path_patch(value: Any) -> dict[str, Any] | None:
    bezier = _bezier_from(value)
    return {"shape": bezier_shape(bezier)} if bezier is not None else None


def resolve_path(prop: Any, element: Element, ctx: CompileContext) -> None:
    """Static geometry goes into ``shape``; animated geometry becomes a
    ``shape`` timeline and the first keyframe provides the static shape.
    Missing geometry leaves an empty path."""
    shape = element.attrs.setdefault("shape", {})
    shape.update({"in": [], "out": [], "v": [], "close": False})
    k = prop.get("k") if isinstance(prop, dict) else None
    if _is_bezier(k):
        shape.update(bezier_shape(k))
        return
    if not isinstance(k, list) or not k or not isinstance(k[0], dict):
        return
    timeline = build_timeline(k, _path_patch, ctx)
    if timeline is not None:
        element.timelines.append(timeline)
        shape.update(timeline.keyframes[0]["shape"])


def _half(value: float) -> float:
    return value / 2


def compile_geometry(
    shape: dict[str, Any],
    kind: ShapeType,
    modifiers: dict[ShapeType, dict[str, Any]],
    ctx: CompileContext,
) -> Element:
    if kind is ShapeType.PATH:
        el = Element(ElementType.PATH)
        resolve_path(shape.get("ks"), el, ctx)
    elif kind is ShapeType.ELLIPSE:
        el = Element(ElementType.ELLIPSE, attrs={"shape": {}})
        resolve(shape.get("p"), "shape", ["cx", "cy"], el.attrs, el.timelines, ctx)
        resolve(shape.get("s"), "shape", ["rx", "ry"], el.attrs, el.timelines, ctx,
                convert=_half)
    else:
        el = Element(ElementType.RECT, attrs={"shape": {}})
        resolve(shape.get("p"), "shape", ["cx", "cy"], el.attrs, el.timelines, ctx)
        resolve(shape.get("s"), "shape", ["width", "height"], el.attrs, el.timelines, ctx)
        resolve(shape.get("r"), "shape", ["r"], el.attrs, el.timelines, ctx)

    el.name = _name(shape, ctx)
    apply_style(el, modifiers.get(ShapeType.FILL), modifiers.get(ShapeType.STROKE), ctx)
    apply_trim(el, modifiers.get(ShapeType.TRIM), ctx)
    apply_repeater(el, modifiers.get(ShapeType.REPEATER))
    return el


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

def apply_style(
    el: Element,
    fill: dict[str, Any] | None,
    stroke: dict[str, Any] | None,
    ctx: CompileContext,
) -> None:
    style = el.attrs.setdefault("style", {})
    if fill is not None:
        resolve_color(fill.get("c"), "style", "fill", el.attrs, el.timelines, ctx)
        resolve(fill.get("o"), "style", ["fillOpacity"], el.attrs, el.timelines, ctx,
                convert=from_percent)
    else:
        style["fill"] = "none"

    if stroke is None:
        return
    resolve_color(stroke.get("c"), "style", "stroke", el.attrs, el.timelines, ctx)
    resolve(stroke.get("o"), "style", ["strokeOpacity"], el.attrs, el.timelines, ctx,
            convert=from_percent)
    resolve(stroke.get("w"), "style", ["lineWidth"], el.attrs, el.timelines, ctx)
    if stroke.get("lc") in LINE_CAPS:
        style["lineCap"] = LINE_CAPS[stroke["lc"]]
    if stroke.get("lj") in LINE_JOINS:
        style["lineJoin"] = LINE_JOINS[stroke["lj"]]
    if isinstance(stroke.get("ml"), (int, float)):
        style["miterLimit"] = stroke["ml"]


def _from_turns(degrees: float) -> float:
    return degrees / 360


def apply_trim(el: Element, trim: dict[str, Any] | None, ctx: CompileContext) -> None:
    """Trim start/end are percents, the offset is in degrees."""
    if trim is None:
        return
    resolve(trim.get("s"), "shape", ["trimStart"], el.attrs, el.timelines, ctx,
            convert=from_percent)
    resolve(trim.get("e"), "shape", ["trimEnd"], el.attrs, el.timelines, ctx,
            convert=from_percent)
    resolve(trim.get("o"), "shape", ["trimOffset"], el.attrs, el.timelines, ctx,
            convert=_from_turns)


def apply_repeater(el: Element, repeater: dict[str, Any] | None) -> None:
    """Repeater values are read statically (first keyframe when animated).

    ``count`` is the number of extra copies drawn after the original;
    ``offset`` shifts every copy's transform step, the original included.
    """
    if repeater is None:
        return
    copies = static_value(repeater.get("c"), default=1)
    count = max(0, int(round(copies)) - 1)
    offset = static_value(repeater.get("o"), default=0)
    if not count and not offset:
        return
    tr = repeater.get("tr") if isinstance(repeater.get("tr"), dict) else {}
    el.attrs.setdefault("shape", {})["repeat"] = {
        "count": count,
        "offset": offset,
        "x": static_value(tr.get("p"), 0, 0),
        "y": static_value(tr.get("p"), 1, 0),
        "rotation": math.radians(static_value(tr.get("r"), 0, 0)),
        "scaleX": static_value(tr.get("s"), 0, 100) / 100,
        "scaleY": static_value(tr.get("s"), 1, 100) / 100,
        "anchorX": static_value(tr.get("a"), 0, 0),
        "anchorY": static_value(tr.get("a"), 1, 0),
    }
