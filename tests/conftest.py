"""
Shared fixtures for the lottiegraph test suite.
"""

from __future__ import annotations

import pytest

from lottiegraph.draw import CommandRecorder
from lottiegraph.types import CompileContext, CompileOptions


IDENTITY_KS = {
    "a": {"a": 0, "k": [0, 0]},
    "p": {"a": 0, "k": [0, 0]},
    "s": {"a": 0, "k": [100, 100]},
    "r": {"a": 0, "k": 0},
    "o": {"a": 0, "k": 100},
}


def pytest_configure(config):
    """Register custom markers used across sub-suites."""
    config.addinivalue_line("markers", "scenario: end-to-end document scenario")


@pytest.fixture
def ctx() -> CompileContext:
    """30 fps, frames 0..60: one frame is 1/60 of every timeline."""
    return CompileContext(frame_rate=30.0, in_frame=0.0, out_frame=60.0)


@pytest.fixture
def looping_ctx() -> CompileContext:
    return CompileContext(
        frame_rate=30.0, in_frame=0.0, out_frame=60.0,
        options=CompileOptions(loop=True),
    )


@pytest.fixture
def recorder() -> CommandRecorder:
    return CommandRecorder()


@pytest.fixture
def identity_ks() -> dict:
    return {key: dict(value) for key, value in IDENTITY_KS.items()}


@pytest.fixture
def make_document():
    """Factory for minimal animation documents around a layer list."""
    def _make(layers, **extra):
        doc = {"fr": 30, "ip": 0, "op": 30, "w": 100, "h": 100, "layers": layers}
        doc.update(extra)
        return doc
    return _make


@pytest.fixture
def red_ellipse_document(make_document, identity_ks):
    """A shape layer with a 0-255 red fill bound to a 20x20 ellipse."""
    return make_document([{
        "ty": "shape",
        "ind": 1,
        "ks": identity_ks,
        "shapes": [
            {"ty": "fl", "c": {"k": [255, 0, 0, 255]}},
            {"ty": "el", "p": {"k": [50, 50]}, "s": {"k": [20, 20]}},
        ],
    }])


@pytest.fixture
def square_path() -> dict:
    """A closed 10x10 square with tangents sitting on their vertices."""
    v = [[0, 0], [10, 0], [10, 10], [0, 10]]
    return {
        "v": v,
        "in": [list(p) for p in v],
        "out": [list(p) for p in v],
        "close": True,
    }


@pytest.fixture
def precomp_document(make_document, identity_ks):
    """Two layers instancing the same precomposition asset."""
    inner = {
        "ty": 4,
        "ind": 1,
        "nm": "inner",
        "ks": identity_ks,
        "shapes": [{
            "ty": "sh",
            "ks": {"k": {
                "v": [[10, 10], [20, 10]],
                "i": [[-1, 0], [-1, 0]],
                "o": [[1, 0], [1, 0]],
                "c": False,
            }},
        }],
    }
    return make_document(
        [
            {"ty": 0, "ind": 1, "nm": "first", "refId": "comp_0", "ks": identity_ks},
            {"ty": 0, "ind": 2, "nm": "second", "refId": "comp_0", "ks": identity_ks},
        ],
        assets=[{"id": "comp_0", "layers": [inner]}],
    )
