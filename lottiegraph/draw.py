"""
Draw routines for the custom element types.

The compiled tree uses three element types the host renderer does not
know natively: ``lottie-shape-path``, ``lottie-shape-ellipse`` and
``lottie-shape-rect``.  Each maps to a routine ``routine(ctx, shape)``
that issues canvas-style commands on a drawing context exposing
``moveTo``, ``lineTo``, ``bezierCurveTo``, ``arc``, ``closePath`` and
``rect``.  :func:`install` registers them with a host renderer.

Path shapes may carry a trim (``trimStart``, ``trimEnd``, ``trimOffset``)
and a repeater (``repeat``); ellipses and rectangles with either are
drawn through their Bezier outline so the same machinery applies.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Protocol, Sequence

from lottiegraph.geometry import (
    Segment,
    build_path_segments,
    ellipse_geometry,
    is_identity_trim,
    rect_geometry,
    trim_path,
)
from lottiegraph.keyframes import format_number
from lottiegraph.types import ElementType

logger = logging.getLogger(__name__)


class DrawingContext(Protocol):
    """The subset of the canvas path API used by the routines."""

    def moveTo(self, x: float, y: float) -> None: ...
    def lineTo(self, x: float, y: float) -> None: ...
    def bezierCurveTo(self, cp1x: float, cp1y: float, cp2x: float,
                      cp2y: float, x: float, y: float) -> None: ...
    def arc(self, x: float, y: float, r: float, start_angle: float,
            end_angle: float, anticlockwise: bool = False) -> None: ...
    def closePath(self) -> None: ...
    def rect(self, x: float, y: float, w: float, h: float) -> None: ...


# ---------------------------------------------------------------------------
# Command recorder
# ---------------------------------------------------------------------------

class CommandRecorder:
    """
    Drawing context that records every command as a tuple.

    Useful for inspecting routine output and for exporting a path as SVG
    path data.
    """

    def __init__(self) -> None:
        self.commands: list[tuple[Any, ...]] = []

    def moveTo(self, x, y):
        self.commands.append(("moveTo", x, y))

    def lineTo(self, x, y):
        self.commands.append(("lineTo", x, y))

    def bezierCurveTo(self, cp1x, cp1y, cp2x, cp2y, x, y):
        self.commands.append(("bezierCurveTo", cp1x, cp1y, cp2x, cp2y, x, y))

    def arc(self, x, y, r, start_angle, end_angle, anticlockwise=False):
        self.commands.append(("arc", x, y, r, start_angle, end_angle, anticlockwise))

    def closePath(self):
        self.commands.append(("closePath",))

    def rect(self, x, y, w, h):
        self.commands.append(("rect", x, y, w, h))

    def names(self) -> list[str]:
        return [cmd[0] for cmd in self.commands]

    def clear(self) -> None:
        self.commands.clear()

    def svg_path_data(self) -> str:
        """Render the recorded commands as an SVG ``d`` attribute."""
        parts: list[str] = []
        has_point = False
        for name, *args in self.commands:
            if name == "moveTo":
                parts.append(_svg("M", *args))
                has_point = True
            elif name == "lineTo":
                parts.append(_svg("L", *args))
                has_point = True
            elif name == "bezierCurveTo":
                parts.append(_svg("C", *args))
                has_point = True
            elif name == "closePath":
                parts.append("Z")
            elif name == "rect":
                x, y, w, h = args
                parts.append(_svg("M", x, y) + " " + _svg("h", w) + " "
                             + _svg("v", h) + " " + _svg("h", -w) + " Z")
            elif name == "arc":
                parts.append(_svg_arc(has_point, *args))
                has_point = True
        return " ".join(parts)


def _svg(cmd: str, *values: float) -> str:
    return cmd + " " + " ".join(format_number(v) for v in values)


def _svg_arc(has_point: bool, x, y, r, start, end, anticlockwise) -> str:
    sweep = 0 if anticlockwise else 1
    x0, y0 = x + r * math.cos(start), y + r * math.sin(start)
    lead = _svg("L" if has_point else "M", x0, y0)
    delta = abs(end - start)
    if delta >= 2 * math.pi - 1e-9:
        # A full turn cannot be one SVG arc: draw two halves.
        xm, ym = x + r * math.cos(start + math.pi), y + r * math.sin(start + math.pi)
        return " ".join([
            lead,
            _svg("A", r, r, 0, 1, sweep, xm, ym),
            _svg("A", r, r, 0, 1, sweep, x0, y0),
        ])
    x1, y1 = x + r * math.cos(end), y + r * math.sin(end)
    large = 1 if delta > math.pi else 0
    return lead + " " + _svg("A", r, r, 0, large, sweep, x1, y1)


# ---------------------------------------------------------------------------
# Path drawing
# ---------------------------------------------------------------------------

def _emit(ctx: DrawingContext, seg: Segment) -> None:
    if seg.is_line:
        ctx.lineTo(seg.end[0], seg.end[1])
    else:
        ctx.bezierCurveTo(seg.c1[0], seg.c1[1], seg.c2[0], seg.c2[1],
                          seg.end[0], seg.end[1])


def draw_segments(ctx: DrawingContext, segments: Sequence[Segment], closed: bool) -> None:
    """Draw an untrimmed path.  A straight closing segment becomes
    ``closePath``; a curved one is drawn and then closed."""
    if not segments:
        return
    ctx.moveTo(segments[0].start[0], segments[0].start[1])
    last = len(segments) - 1
    for idx, seg in enumerate(segments):
        if closed and idx == last and seg.is_line:
            break
        _emit(ctx, seg)
    if closed:
        ctx.closePath()


def draw_runs(ctx: DrawingContext, runs: Sequence[Sequence[Segment]]) -> None:
    """Draw trimmed runs, each opened with its own ``moveTo``."""
    for run in runs:
        if not run:
            continue
        ctx.moveTo(run[0].start[0], run[0].start[1])
        for seg in run:
            _emit(ctx, seg)


def _trim_of(shape: dict[str, Any]) -> tuple[float, float, float] | None:
    keys = ("trimStart", "trimEnd", "trimOffset")
    if not any(k in shape for k in keys):
        return None
    return (
        float(shape.get("trimStart", 0.0)),
        float(shape.get("trimEnd", 1.0)),
        float(shape.get("trimOffset", 0.0)),
    )


def _repeat_count(repeat: Any) -> int:
    if not isinstance(repeat, dict):
        return 0
    try:
        return max(0, int(repeat.get("count", 0)))
    except (TypeError, ValueError):
        return 0


def _repeat_offset(repeat: Any) -> float:
    if not isinstance(repeat, dict):
        return 0.0
    try:
        return float(repeat.get("offset", 0.0))
    except (TypeError, ValueError):
        return 0.0


def _power(base: float, exponent: float) -> float:
    """``base ** exponent`` that stays real for negative bases and
    fractional exponents, and treats a zero base as zero."""
    if base == 0:
        return 0.0
    if exponent == int(exponent):
        return base ** int(exponent)
    return math.copysign(abs(base) ** exponent, base)


class PathDrawer:
    """
    Draws path geometry with optional trim and repeater.

    The repeater matrix and the transformed point buffers are fields of
    the drawer and are reused for every copy, so one drawer must not be
    shared between two draws in flight.
    """

    def __init__(self) -> None:
        self._matrix = [1.0, 0.0, 0.0, 1.0, 0.0, 0.0]
        self._v: list[list[float]] = []
        self._in: list[list[float]] = []
        self._out: list[list[float]] = []

    def draw(
        self,
        ctx: DrawingContext,
        vertices: Sequence[Any],
        in_tangents: Sequence[Any],
        out_tangents: Sequence[Any],
        closed: bool = False,
        trim: tuple[float, float, float] | None = None,
        repeat: dict[str, Any] | None = None,
    ) -> None:
        count = _repeat_count(repeat)
        offset = _repeat_offset(repeat)
        for copy_index in range(count + 1):
            step = copy_index + offset
            if not step:
                self._draw_once(ctx, vertices, in_tangents, out_tangents, closed, trim)
                continue
            self._update_matrix(repeat, step)
            self._transform_into(self._v, vertices)
            self._transform_into(self._in, in_tangents)
            self._transform_into(self._out, out_tangents)
            self._draw_once(ctx, self._v, self._in, self._out, closed, trim)

    def _draw_once(self, ctx, vertices, in_tangents, out_tangents, closed, trim) -> None:
        segments = build_path_segments(vertices, in_tangents, out_tangents, closed)
        if trim is None or is_identity_trim(*trim):
            draw_segments(ctx, segments, closed)
        else:
            draw_runs(ctx, trim_path(segments, *trim))

    def _update_matrix(self, repeat: dict[str, Any], step: float) -> None:
        """Scale and rotate about the anchor, then translate, for one step.

        Positions and rotation accumulate linearly (x * step); scale
        compounds (scale ** step).  Rotation is clockwise-positive radians
        in screen space, as authored.
        """
        sx = _power(float(repeat.get("scaleX", 1.0)), step)
        sy = _power(float(repeat.get("scaleY", 1.0)), step)
        theta = float(repeat.get("rotation", 0.0)) * step
        ax = float(repeat.get("anchorX", 0.0))
        ay = float(repeat.get("anchorY", 0.0))
        tx = float(repeat.get("x", 0.0)) * step
        ty = float(repeat.get("y", 0.0)) * step
        cos = math.cos(theta)
        sin = math.sin(theta)
        m = self._matrix
        m[0] = cos * sx
        m[1] = sin * sx
        m[2] = -sin * sy
        m[3] = cos * sy
        m[4] = ax + tx - (m[0] * ax + m[2] * ay)
        m[5] = ay + ty - (m[1] * ax + m[3] * ay)

    def _transform_into(self, buffer: list[list[float]], points: Sequence[Any]) -> None:
        n = len(points)
        while len(buffer) < n:
            buffer.append([0.0, 0.0])
        del buffer[n:]
        m = self._matrix
        for idx in range(n):
            try:
                x, y = float(points[idx][0]), float(points[idx][1])
            except (IndexError, TypeError, ValueError):
                x, y = 0.0, 0.0
            out = buffer[idx]
            out[0] = m[0] * x + m[2] * y + m[4]
            out[1] = m[1] * x + m[3] * y + m[5]


def _has_path_modifiers(shape: dict[str, Any]) -> bool:
    trim = _trim_of(shape)
    if trim is not None and not is_identity_trim(*trim):
        return True
    repeat = shape.get("repeat")
    return _repeat_count(repeat) > 0 or _repeat_offset(repeat) != 0


# ---------------------------------------------------------------------------
# Routines
# ---------------------------------------------------------------------------

def build_lottie_path(ctx: DrawingContext, shape: dict[str, Any]) -> None:
    """Draw a ``lottie-shape-path``: ``{in, out, v, close}`` plus modifiers."""
    PathDrawer().draw(
        ctx,
        shape.get("v") or [],
        shape.get("in") or [],
        shape.get("out") or [],
        closed=bool(shape.get("close")),
        trim=_trim_of(shape),
        repeat=shape.get("repeat"),
    )


def build_lottie_ellipse(ctx: DrawingContext, shape: dict[str, Any]) -> None:
    """Draw a ``lottie-shape-ellipse``: ``{cx, cy, rx, ry}``."""
    cx = float(shape.get("cx", 0.0))
    cy = float(shape.get("cy", 0.0))
    rx = abs(float(shape.get("rx", 0.0)))
    ry = abs(float(shape.get("ry", 0.0)))
    if _has_path_modifiers(shape):
        v, i, o = ellipse_geometry(cx, cy, rx, ry)
        PathDrawer().draw(ctx, v, i, o, closed=True,
                          trim=_trim_of(shape), repeat=shape.get("repeat"))
        return
    if rx == ry:
        ctx.arc(cx, cy, rx, 0.0, math.pi * 2)
        ctx.closePath()
        return
    v, i, o = ellipse_geometry(cx, cy, rx, ry)
    draw_segments(ctx, build_path_segments(v, i, o, True), True)


def build_lottie_rect(ctx: DrawingContext, shape: dict[str, Any]) -> None:
    """Draw a ``lottie-shape-rect``: centered ``{cx, cy, width, height, r}``."""
    cx = float(shape.get("cx", 0.0))
    cy = float(shape.get("cy", 0.0))
    width = abs(float(shape.get("width", 0.0)))
    height = abs(float(shape.get("height", 0.0)))
    if _has_path_modifiers(shape):
        v, i, o = rect_geometry(cx, cy, width, height, float(shape.get("r", 0.0)))
        PathDrawer().draw(ctx, v, i, o, closed=True,
                          trim=_trim_of(shape), repeat=shape.get("repeat"))
        return
    x = cx - width / 2
    y = cy - height / 2
    r = min(abs(float(shape.get("r", 0.0))), width / 2, height / 2)
    if r <= 0:
        ctx.rect(x, y, width, height)
        return
    half_pi = math.pi / 2
    ctx.moveTo(x + r, y)
    ctx.lineTo(x + width - r, y)
    ctx.arc(x + width - r, y + r, r, -half_pi, 0.0)
    ctx.lineTo(x + width, y + height - r)
    ctx.arc(x + width - r, y + height - r, r, 0.0, half_pi)
    ctx.lineTo(x + r, y + height)
    ctx.arc(x + r, y + height - r, r, half_pi, math.pi)
    ctx.lineTo(x, y + r)
    ctx.arc(x + r, y + r, r, math.pi, math.pi + half_pi)
    ctx.closePath()


DrawRoutine = Callable[[DrawingContext, "dict[str, Any]"], None]

DRAW_ROUTINES: dict[str, DrawRoutine] = {
    ElementType.PATH.value: build_lottie_path,
    ElementType.ELLIPSE.value: build_lottie_ellipse,
    ElementType.RECT.value: build_lottie_rect,
}


def draw_shape(ctx: DrawingContext, element_type: str, shape: dict[str, Any]) -> None:
    """Dispatch to the routine registered for ``element_type``."""
    try:
        routine = DRAW_ROUTINES[element_type]
    except KeyError:
        raise KeyError(
            f"No draw routine for {element_type!r}.  "
            f"Available: {', '.join(sorted(DRAW_ROUTINES))}"
        ) from None
    routine(ctx, shape)


def install(renderer: Any) -> list[str]:
    """
    Register every custom draw routine with a host renderer.

    The renderer must expose ``register_shape(type_name, routine)``.

    Returns
    -------
    list[str]
        The registered type names.
    """
    for name, routine in DRAW_ROUTINES.items():
        renderer.register_shape(name, routine)
        logger.debug("Registered draw routine %s", name)
    return list(DRAW_ROUTINES)
