"""
Path geometry: segment reconstruction, arc length and trimming.

A Lottie path is three parallel arrays -- vertices ``v``, in-tangents
``i`` and out-tangents ``o`` -- plus a closed flag.  Once normalized, the
tangents are absolute control points.  Consecutive vertices become either
a straight line (both handles sit on their vertex) or a cubic Bezier.

Trimming
--------
Trim paths keep a fraction ``[start, end]`` of the total arc length.
Segment lengths are measured first (Euclidean for lines, a 10-sample
polyline for cubics), the fractions are turned into absolute offsets, and
the segments are walked again: whole segments inside the range are kept,
segments straddling a boundary are cut with De Casteljau subdivision.
Cutting uses the length fraction inside the segment as the curve
parameter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

EPSILON = 1e-8
ARC_LENGTH_SAMPLES = 10
ELLIPSE_KAPPA = 0.5522848


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

def _lerp(a: tuple[float, float], b: tuple[float, float], t: float) -> tuple[float, float]:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


@dataclass(frozen=True)
class Segment:
    """A straight line (no control points) or a cubic Bezier."""
    start: tuple[float, float]
    end: tuple[float, float]
    c1: tuple[float, float] | None = None
    c2: tuple[float, float] | None = None

    @property
    def is_line(self) -> bool:
        return self.c1 is None

    def point_at(self, t: float) -> tuple[float, float]:
        if self.is_line:
            return _lerp(self.start, self.end, t)
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        return (
            a * self.start[0] + b * self.c1[0] + c * self.c2[0] + d * self.end[0],
            a * self.start[1] + b * self.c1[1] + c * self.c2[1] + d * self.end[1],
        )

    def length(self) -> float:
        if self.is_line:
            return _distance(self.start, self.end)
        total = 0.0
        prev = self.start
        for step in range(1, ARC_LENGTH_SAMPLES + 1):
            pt = self.point_at(step / ARC_LENGTH_SAMPLES)
            total += _distance(prev, pt)
            prev = pt
        return total

    def split(self, t: float) -> tuple[Segment, Segment]:
        """Cut at parameter ``t``; both halves keep the segment's kind."""
        if self.is_line:
            mid = _lerp(self.start, self.end, t)
            return Segment(self.start, mid), Segment(mid, self.end)
        p01 = _lerp(self.start, self.c1, t)
        p12 = _lerp(self.c1, self.c2, t)
        p23 = _lerp(self.c2, self.end, t)
        p012 = _lerp(p01, p12, t)
        p123 = _lerp(p12, p23, t)
        mid = _lerp(p012, p123, t)
        return (
            Segment(self.start, mid, p01, p012),
            Segment(mid, self.end, p123, p23),
        )


def _point(points: Sequence[Any], index: int, fallback: tuple[float, float]) -> tuple[float, float]:
    try:
        pt = points[index]
        return (float(pt[0]), float(pt[1]))
    except (IndexError, TypeError, ValueError):
        return fallback


def _near(a: tuple[float, float], b: tuple[float, float]) -> bool:
    return abs(a[0] - b[0]) < EPSILON and abs(a[1] - b[1]) < EPSILON


def _make_segment(
    start: tuple[float, float],
    out_tangent: tuple[float, float],
    in_tangent: tuple[float, float],
    end: tuple[float, float],
) -> Segment:
    if _near(out_tangent, start) and _near(in_tangent, end):
        return Segment(start, end)
    return Segment(start, end, out_tangent, in_tangent)


def build_path_segments(
    vertices: Sequence[Any],
    in_tangents: Sequence[Any],
    out_tangents: Sequence[Any],
    closed: bool = False,
) -> list[Segment]:
    """
    Reconstruct the segments of a path with absolute tangents.

    With ``closed`` set, a final segment runs from the last vertex back to
    the first under the same straight/curved rule.  Missing tangents fall
    back to their vertex; an empty vertex list yields no segments.
    """
    n = len(vertices)
    if n == 0:
        return []
    pts = [_point(vertices, k, (0.0, 0.0)) for k in range(n)]
    ins = [_point(in_tangents, k, pts[k]) for k in range(n)]
    outs = [_point(out_tangents, k, pts[k]) for k in range(n)]
    segments = [
        _make_segment(pts[k - 1], outs[k - 1], ins[k], pts[k])
        for k in range(1, n)
    ]
    if closed:
        segments.append(_make_segment(pts[-1], outs[-1], ins[0], pts[0]))
    return segments


# ---------------------------------------------------------------------------
# Trimming
# ---------------------------------------------------------------------------

def is_identity_trim(start: float, end: float, offset: float = 0.0) -> bool:
    start, end = sorted((start, end))
    return start <= 0.0 and end >= 1.0 and offset % 1.0 == 0.0


def trim_ranges(start: float, end: float, offset: float = 0.0) -> list[tuple[float, float]]:
    """
    Normalize a trim into ordered ``(start, end)`` ranges within [0, 1].

    ``offset`` is a fraction of the path length (1.0 = full turn).  A
    range pushed past the end of the path wraps into two ranges.
    """
    start, end = sorted((min(1.0, max(0.0, start)), min(1.0, max(0.0, end))))
    if start == end:
        return []
    shift = offset % 1.0
    if not shift:
        return [(start, end)]
    start += shift
    end += shift
    if end <= 1.0:
        return [(start, end)]
    if start >= 1.0:
        return [(start - 1.0, end - 1.0)]
    return [(0.0, end - 1.0), (start, 1.0)]


def trim_segments(
    segments: Sequence[Segment],
    start: float,
    end: float,
    lengths: Sequence[float] | None = None,
) -> list[list[Segment]]:
    """
    Keep the arc-length fraction ``[start, end]`` of a path.

    Returns runs of contiguous segments; each run starts with a fresh
    ``moveTo`` when drawn.  ``start`` and ``end`` are expected in [0, 1]
    with ``start <= end``.
    """
    if lengths is None:
        lengths = [seg.length() for seg in segments]
    total = sum(lengths)
    if total <= 0 or start >= end:
        return []

    start_len = start * total
    end_len = end * total
    runs: list[list[Segment]] = []
    current: list[Segment] | None = None
    acc = 0.0

    for seg, length in zip(segments, lengths):
        seg_start = acc
        seg_end = acc + length
        acc = seg_end
        if length <= 0 or seg_end <= start_len:
            continue
        if seg_start >= end_len:
            break

        t0 = (start_len - seg_start) / length if start_len > seg_start else 0.0
        t1 = (end_len - seg_start) / length if end_len < seg_end else 1.0

        piece = seg
        if t0 > 0.0:
            piece = piece.split(t0)[1]
        if t1 < 1.0:
            piece = piece.split((t1 - t0) / (1.0 - t0))[0]

        if t0 > 0.0 or current is None:
            current = []
            runs.append(current)
        current.append(piece)

    return runs


def trim_path(
    segments: Sequence[Segment],
    start: float,
    end: float,
    offset: float = 0.0,
) -> list[list[Segment]]:
    """Trim with offset and wrap-around; lengths are measured once."""
    lengths = [seg.length() for seg in segments]
    runs: list[list[Segment]] = []
    for lo, hi in trim_ranges(start, end, offset):
        runs.extend(trim_segments(segments, lo, hi, lengths))
    return runs


# ---------------------------------------------------------------------------
# Primitive outlines
# ---------------------------------------------------------------------------

def ellipse_geometry(
    cx: float, cy: float, rx: float, ry: float,
) -> tuple[list[list[float]], list[list[float]], list[list[float]]]:
    """Four-arc Bezier outline of an ellipse as ``(v, i, o)`` with
    absolute tangents, clockwise from the top point."""
    ox = rx * ELLIPSE_KAPPA
    oy = ry * ELLIPSE_KAPPA
    v = [[cx, cy - ry], [cx + rx, cy], [cx, cy + ry], [cx - rx, cy]]
    i = [[cx - ox, cy - ry], [cx + rx, cy - oy], [cx + ox, cy + ry], [cx - rx, cy + oy]]
    o = [[cx + ox, cy - ry], [cx + rx, cy + oy], [cx - ox, cy + ry], [cx - rx, cy - oy]]
    return v, i, o


def rect_geometry(
    cx: float, cy: float, width: float, height: float, r: float = 0.0,
) -> tuple[list[list[float]], list[list[float]], list[list[float]]]:
    """
    Outline of a centered rectangle, clockwise from the top-right corner.

    With a positive ``r`` (capped at half the shorter side) each corner
    becomes a quarter-ellipse Bezier, giving eight vertices: two per side,
    one where each straight edge meets a corner.
    """
    hw = abs(width) / 2
    hh = abs(height) / 2
    r = min(abs(r), hw, hh)
    left, right = cx - hw, cx + hw
    top, bottom = cy - hh, cy + hh
    if r <= 0:
        v = [[right, top], [right, bottom], [left, bottom], [left, top]]
        return v, [list(p) for p in v], [list(p) for p in v]

    k = r * ELLIPSE_KAPPA
    v = [
        [right, top + r], [right, bottom - r],
        [right - r, bottom], [left + r, bottom],
        [left, bottom - r], [left, top + r],
        [left + r, top], [right - r, top],
    ]
    i = [
        [right, top + r - k], [right, bottom - r],
        [right - r + k, bottom], [left + r, bottom],
        [left, bottom - r + k], [left, top + r],
        [left + r - k, top], [right - r, top],
    ]
    o = [
        [right, top + r], [right, bottom - r + k],
        [right - r, bottom], [left + r - k, bottom],
        [left, bottom - r], [left, top + r - k],
        [left + r, top], [right - r + k, top],
    ]
    return v, i, o
