"""
Value resolver for animatable properties.

A Lottie property is a dict whose ``k`` member is one of:

    5                               static scalar
    [10, 20]                        static per-axis vector
    [{"t": 0, "s": 5, ...}, ...]    scalar keyframes
    [{"t": 0, "s": [1, 2]}, ...]    vector keyframes

Anything else is ignored: many Lottie members are optional or
experimental, and an unrecognized shape simply writes nothing.
"""

from __future__ import annotations

import enum
import math
from typing import Any, Callable, Sequence

from lottiegraph.keyframes import axis_value, build_timeline, format_number, is_number
from lottiegraph.types import CompileContext, Timeline

Converter = Callable[[float], float]


class ValueKind(enum.Enum):
    NONE = "none"
    SCALAR = "scalar"
    VECTOR = "vector"
    SCALAR_KEYFRAMES = "scalar-keyframes"
    VECTOR_KEYFRAMES = "vector-keyframes"

    @property
    def is_static(self) -> bool:
        return self in (ValueKind.SCALAR, ValueKind.VECTOR)

    @property
    def is_animated(self) -> bool:
        return self in (ValueKind.SCALAR_KEYFRAMES, ValueKind.VECTOR_KEYFRAMES)


def classify(prop: Any) -> ValueKind:
    """Classify a property by the shape of its ``k`` member."""
    if not isinstance(prop, dict):
        return ValueKind.NONE
    k = prop.get("k")
    if is_number(k):
        return ValueKind.SCALAR
    if not isinstance(k, list) or not k:
        return ValueKind.NONE
    first = k[0]
    if is_number(first):
        return ValueKind.VECTOR
    if isinstance(first, dict) and "t" in first:
        start = first.get("s")
        if is_number(start):
            return ValueKind.SCALAR_KEYFRAMES
        if isinstance(start, list):
            return ValueKind.VECTOR_KEYFRAMES
    return ValueKind.NONE


def static_value(prop: Any, dim_index: int = 0, default: Any = None) -> Any:
    """Best static reading of a property: its constant, or its first keyframe."""
    kind = classify(prop)
    if kind.is_static:
        value = axis_value(prop["k"], dim_index)
    elif kind.is_animated:
        value = axis_value(prop["k"][0].get("s"), dim_index)
    else:
        value = None
    return default if value is None else value


def _destination(attrs: dict[str, Any], target: str) -> dict[str, Any]:
    if not target:
        return attrs
    return attrs.setdefault(target, {})


def _patch(target: str, name: str, value: Any) -> dict[str, Any]:
    return {target: {name: value}} if target else {name: value}


def resolve(
    prop: Any,
    target: str,
    axes: Sequence[str],
    attrs: dict[str, Any],
    timelines: list[Timeline],
    ctx: CompileContext,
    convert: Converter | None = None,
) -> ValueKind:
    """
    Write one property onto an element.

    Static values go into ``attrs`` (or ``attrs[target]`` when ``target``
    is non-empty); keyframed values append one timeline per axis.  An
    absent or malformed property has no effect.

    Returns the property's :class:`ValueKind`.
    """
    kind = classify(prop)
    if kind is ValueKind.NONE:
        return kind

    if kind.is_static:
        dest = _destination(attrs, target)
        for dim_index, axis in enumerate(axes):
            value = axis_value(prop["k"], dim_index)
            if value is None:
                continue
            dest[axis] = convert(value) if convert else value
        return kind

    for dim_index, axis in enumerate(axes):
        def make_patch(value: Any, dim_index: int = dim_index, axis: str = axis):
            v = axis_value(value, dim_index)
            if v is None:
                return None
            return _patch(target, axis, convert(v) if convert else v)

        timeline = build_timeline(prop["k"], make_patch, ctx, dim_index=dim_index)
        if timeline is not None:
            timelines.append(timeline)
    return kind


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def to_color_string(value: Any) -> str:
    """Render a 0-1 RGBA color as ``rgba(r,g,b,a)`` with 0-255 channels."""
    def channel(dim_index: int, default: float) -> float:
        v = axis_value(value, dim_index)
        return default if v is None else v

    r, g, b = (
        int(_clamp(math.floor(channel(i, 0.0) * 255 + 0.5), 0, 255))
        for i in range(3)
    )
    a = _clamp(channel(3, 1.0), 0.0, 1.0)
    return f"rgba({r},{g},{b},{format_number(a)})"


def resolve_color(
    prop: Any,
    target: str,
    name: str,
    attrs: dict[str, Any],
    timelines: list[Timeline],
    ctx: CompileContext,
) -> ValueKind:
    """Like :func:`resolve`, but all channels travel in one color string
    and an animated color produces a single merged timeline."""
    kind = classify(prop)
    if kind.is_static:
        _destination(attrs, target)[name] = to_color_string(prop["k"])
    elif kind.is_animated:
        timeline = build_timeline(
            prop["k"],
            lambda value: _patch(target, name, to_color_string(value)),
            ctx,
        )
        if timeline is not None:
            timelines.append(timeline)
    return kind
