"""
Tests for the keyframe timeline builder.
"""

from __future__ import annotations

import pytest

from lottiegraph.keyframes import (
    axis_value,
    build_timeline,
    format_number,
    segment_easing,
)
from lottiegraph.types import CompileContext


def _x_patch(value):
    return {"x": value[0]} if isinstance(value, list) else {"x": value}


class TestHelpers:
    def test_axis_value_broadcasts_scalars(self):
        assert axis_value(5, 0) == 5
        assert axis_value(5, 3) == 5

    def test_axis_value_out_of_range(self):
        assert axis_value([1, 2], 1) == 2
        assert axis_value([1, 2], 2) is None
        assert axis_value(["a"], 0) is None

    @pytest.mark.parametrize("value,text", [
        (1.0, "1"), (0.25, "0.25"), (0, "0"), (-0.0, "0"), (0.1234567, "0.123457"),
    ])
    def test_format_number(self, value, text):
        assert format_number(value) == text


class TestSegmentEasing:
    def test_bezier_from_handles(self):
        kf = {"o": {"x": [0.3], "y": [0]}, "i": {"x": [0.7], "y": [1]}}
        assert segment_easing(kf) == "cubic-bezier(0.3,0,0.7,1)"

    def test_in_handle_from_next_keyframe(self):
        kf = {"o": {"x": 0.5, "y": 0}}
        nxt = {"i": {"x": 0.5, "y": 1}}
        assert segment_easing(kf, nxt) == "cubic-bezier(0.5,0,0.5,1)"

    def test_per_axis_handles(self):
        kf = {"o": {"x": [0.1, 0.2], "y": [0, 0]}, "i": {"x": [0.9, 0.8], "y": [1, 1]}}
        assert segment_easing(kf, dim_index=1) == "cubic-bezier(0.2,0,0.8,1)"

    def test_linear_handles_mean_no_easing(self):
        kf = {"o": {"x": 0, "y": 0}, "i": {"x": 1, "y": 1}}
        assert segment_easing(kf) is None

    def test_missing_handles(self):
        assert segment_easing({}) is None
        assert segment_easing({"o": {"x": 0.3}}) is None


class TestBuildTimeline:
    def test_synthesized_first_keyframe(self, ctx):
        kfs = [
            {"t": 15, "s": [10], "o": {"x": [0.3], "y": [0]}, "i": {"x": [0.7], "y": [1]}},
            {"t": 45, "s": [20]},
        ]
        tl = build_timeline(kfs, _x_patch, ctx)
        assert tl.keyframes == [
            {"percent": 0.0, "x": 10},
            {"percent": 0.25, "x": 10},
            {"percent": 0.75, "easing": "cubic-bezier(0.3,0,0.7,1)", "x": 20},
        ]

    def test_no_synthesis_at_zero(self, ctx):
        tl = build_timeline([{"t": 0, "s": [1]}, {"t": 60, "s": [2]}], _x_patch, ctx)
        assert [kf["percent"] for kf in tl.keyframes] == [0.0, 1.0]

    def test_timing_fields(self, ctx):
        tl = build_timeline([{"t": 0, "s": [1]}], _x_patch, ctx)
        assert tl.duration == pytest.approx(2000.0)
        assert tl.delay == 0.0
        assert tl.loop is False

    def test_loop_option(self, looping_ctx):
        tl = build_timeline([{"t": 0, "s": [1]}], _x_patch, looping_ctx)
        assert tl.loop is True

    def test_negative_delay_for_late_in_frame(self):
        c = CompileContext(frame_rate=30.0, in_frame=15.0, out_frame=60.0)
        tl = build_timeline([{"t": 15, "s": [1]}], _x_patch, c)
        assert tl.delay == pytest.approx(-500.0)

    def test_hold_keyframe_jumps(self, ctx):
        kfs = [{"t": 0, "s": [1], "h": 1}, {"t": 30, "s": [5]}]
        tl = build_timeline(kfs, _x_patch, ctx)
        assert tl.keyframes == [
            {"percent": 0.0, "x": 1},
            {"percent": 0.5, "x": 1},
            {"percent": 0.5, "x": 5},
        ]

    def test_missing_start_uses_previous_end(self, ctx):
        kfs = [{"t": 0, "s": [1], "e": [3]}, {"t": 30}]
        tl = build_timeline(kfs, _x_patch, ctx)
        assert tl.keyframes[-1] == {"percent": 0.5, "x": 3}

    def test_missing_start_without_end_holds_value(self, ctx):
        kfs = [{"t": 0, "s": [4]}, {"t": 30}]
        tl = build_timeline(kfs, _x_patch, ctx)
        assert tl.keyframes[-1] == {"percent": 0.5, "x": 4}

    def test_percents_monotonic_and_bounded(self, ctx):
        kfs = [
            {"t": -10, "s": [0]},
            {"t": 40, "s": [1]},
            {"t": 20, "s": [2]},
            {"t": 200, "s": [3]},
        ]
        percents = [kf["percent"] for kf in build_timeline(kfs, _x_patch, ctx).keyframes]
        assert percents == sorted(percents)
        assert all(0.0 <= p <= 1.0 for p in percents)
        assert percents[-1] == 1.0

    def test_time_offset_shifts_percent(self, ctx):
        tl = build_timeline([{"t": 0, "s": [1]}], _x_patch, ctx.shifted(30))
        assert tl.keyframes == [{"percent": 0.0, "x": 1}, {"percent": 0.5, "x": 1}]

    def test_keyframes_without_time_are_ignored(self, ctx):
        kfs = [{"s": [9]}, "junk", {"t": 0, "s": [1]}]
        tl = build_timeline(kfs, _x_patch, ctx)
        assert tl.keyframes == [{"percent": 0.0, "x": 1}]

    def test_empty_result_is_none(self, ctx):
        assert build_timeline([], _x_patch, ctx) is None
        assert build_timeline([{"t": 0, "s": [1]}], lambda v: None, ctx) is None

    def test_patches_are_copied(self, ctx):
        shared = {"shape": {"v": [[0, 0]]}}
        tl = build_timeline([{"t": 0, "s": [1]}, {"t": 30, "s": [2]}], lambda v: shared, ctx)
        tl.keyframes[0]["shape"]["v"].append([1, 1])
        assert shared == {"shape": {"v": [[0, 0]]}}
        assert tl.keyframes[1]["shape"] == {"v": [[0, 0]]}
