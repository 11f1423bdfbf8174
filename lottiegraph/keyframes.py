"""
Keyframe timeline builder.

Turns a Lottie keyframe list into one percent-based :class:`Timeline`.

Time model
----------
Every timeline spans the whole document: ``duration`` is the document's
out-frame times the frame time, and a keyframe at frame ``t`` sits at
``percent = t / op``.  Timelines therefore share one global origin and
can be started together; they never carry a per-property offset.

Values
------
Each keyframe contributes its start value ``s``.  A keyframe without
``s`` holds the previous keyframe's end value ``e`` (or, failing that,
the previous resolved value).  Keyframes flagged ``h: 1`` jump: the held
value is repeated at the next keyframe's percent so the change is
instantaneous.

Easing
------
The segment k -> k+1 is shaped by k's outgoing handle ``o`` and the
incoming handle ``i`` of k+1 (stored on k in current files).  The
resulting ``cubic-bezier(...)`` string goes on the *arriving* keyframe,
which is where the renderer looks for it.
"""

from __future__ import annotations

from typing import Any, Callable

from lottiegraph.types import CompileContext, Timeline, clone_tree

PatchBuilder = Callable[[Any], "dict[str, Any] | None"]

_LINEAR = (0.0, 0.0, 1.0, 1.0)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def axis_value(value: Any, dim_index: int = 0) -> float | None:
    """Pick one axis from a scalar or per-axis value.

    Scalars broadcast to every axis; a list shorter than ``dim_index``
    yields None.
    """
    if is_number(value):
        return value
    if isinstance(value, list) and len(value) > dim_index:
        item = value[dim_index]
        if is_number(item):
            return item
    return None


def format_number(value: float) -> str:
    """Compact decimal text: ``1.0`` -> ``"1"``, ``0.25`` -> ``"0.25"``."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ---------------------------------------------------------------------------
# Easing
# ---------------------------------------------------------------------------

def segment_easing(
    kf: dict[str, Any],
    next_kf: dict[str, Any] | None = None,
    dim_index: int = 0,
) -> str | None:
    """Bezier easing for the segment leaving ``kf``, or None for linear."""
    out_handle = kf.get("o")
    in_handle = kf.get("i")
    if in_handle is None and next_kf is not None:
        in_handle = next_kf.get("i")
    if not isinstance(out_handle, dict) or not isinstance(in_handle, dict):
        return None
    coords = (
        axis_value(out_handle.get("x"), dim_index),
        axis_value(out_handle.get("y"), dim_index),
        axis_value(in_handle.get("x"), dim_index),
        axis_value(in_handle.get("y"), dim_index),
    )
    if any(c is None for c in coords):
        return None
    if tuple(float(c) for c in coords) == _LINEAR:
        return None
    return "cubic-bezier(" + ",".join(format_number(c) for c in coords) + ")"


# ---------------------------------------------------------------------------
# Timeline construction
# ---------------------------------------------------------------------------

def _resolve_start_value(
    kf: dict[str, Any],
    prev_kf: dict[str, Any] | None,
    prev_value: Any,
) -> Any:
    value = kf.get("s")
    if value is None and prev_kf is not None:
        value = prev_kf.get("e")
    if value is None:
        value = prev_value
    return value


def build_timeline(
    keyframes: list[Any],
    make_patch: PatchBuilder,
    ctx: CompileContext,
    dim_index: int = 0,
) -> Timeline | None:
    """
    Build a percent-based timeline from a Lottie keyframe list.

    Parameters
    ----------
    keyframes : list
        Keyframe dicts sorted by ``t``.  Entries without a numeric ``t``
        are ignored.
    make_patch : callable
        Turns one resolved keyframe value into a partial-attribute patch
        (e.g. ``{"x": 10}`` or ``{"style": {"fill": ...}}``).  Returning
        None drops the keyframe.
    ctx : CompileContext
        Document timing.
    dim_index : int
        Axis used to read per-axis easing handles.

    Returns
    -------
    Timeline or None
        None when no keyframe produced a value.
    """
    out: list[dict[str, Any]] = []
    valid = [kf for kf in keyframes if isinstance(kf, dict) and is_number(kf.get("t"))]
    prev_kf: dict[str, Any] | None = None
    prev_value: Any = None
    prev_patch: dict[str, Any] | None = None
    last_percent = 0.0

    for kf in valid:
        value = _resolve_start_value(kf, prev_kf, prev_value)
        patch = make_patch(value) if value is not None else None
        percent = max(last_percent, ctx.percent(kf["t"]))

        if patch is not None:
            held = prev_kf is not None and prev_kf.get("h") == 1
            if held and prev_patch is not None:
                out.append({"percent": percent, **clone_tree(prev_patch)})
            out_kf: dict[str, Any] = {"percent": percent}
            if prev_kf is not None and not held:
                easing = segment_easing(prev_kf, kf, dim_index)
                if easing:
                    out_kf["easing"] = easing
            out_kf.update(clone_tree(patch))
            out.append(out_kf)
            prev_patch = patch
            last_percent = percent

        prev_kf = kf
        prev_value = value

    if not out:
        return None

    if out[0]["percent"] > 0:
        first = {k: v for k, v in out[0].items() if k not in ("percent", "easing")}
        out.insert(0, {"percent": 0.0, **clone_tree(first)})

    return Timeline(
        duration=ctx.duration_ms,
        delay=ctx.delay_ms,
        keyframes=out,
        loop=ctx.options.loop,
    )
