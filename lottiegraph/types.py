"""
Core data structures used throughout the compiler.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Iterator


class LayerType(enum.Enum):
    """Layer kinds understood by the hierarchy assembler."""
    PRECOMP = 0
    SOLID = 1
    IMAGE = 2
    NULL = 3
    SHAPE = 4
    TEXT = 5
    UNKNOWN = -1

    @classmethod
    def from_code(cls, code: Any) -> LayerType:
        """Map an integer or short-string ``ty`` code to a layer kind."""
        if isinstance(code, str):
            return _LAYER_NAMES.get(code, cls.UNKNOWN)
        if isinstance(code, bool) or not isinstance(code, int):
            return cls.UNKNOWN
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


_LAYER_NAMES = {
    "precomp": LayerType.PRECOMP,
    "solid": LayerType.SOLID,
    "image": LayerType.IMAGE,
    "null": LayerType.NULL,
    "shape": LayerType.SHAPE,
    "text": LayerType.TEXT,
}


class ShapeType(enum.Enum):
    """Shape-list element kinds."""
    GROUP = "gr"
    FILL = "fl"
    STROKE = "st"
    TRANSFORM = "tr"
    PATH = "sh"
    ELLIPSE = "el"
    RECT = "rc"
    TRIM = "tm"
    REPEATER = "rp"
    UNKNOWN = "?"

    @classmethod
    def from_code(cls, code: Any) -> ShapeType:
        if not isinstance(code, str) or code == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class ElementType(enum.Enum):
    """Output element types.  The three non-group types need the custom
    draw routines from :mod:`lottiegraph.draw`."""
    GROUP = "group"
    PATH = "lottie-shape-path"
    ELLIPSE = "lottie-shape-ellipse"
    RECT = "lottie-shape-rect"


def clone_tree(value: Any) -> Any:
    """Structurally copy a JSON-shaped tree of dicts and lists.

    Leaves (numbers, strings, booleans, None) are shared; every container
    is new, so mutating the copy never reaches the original.
    """
    if isinstance(value, dict):
        return {key: clone_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_tree(item) for item in value]
    return value


@dataclass(frozen=True)
class CompileOptions:
    """User-facing compilation settings."""
    loop: bool = False                 # Mark every timeline as looping.
    default_frame_rate: float = 30.0   # Used when the document has no usable fr.
    keep_names: bool = True            # Copy layer/shape names onto elements.


@dataclass(frozen=True)
class NormalizedDocument:
    """An animation document migrated to the canonical encoding."""
    data: dict[str, Any]
    version: tuple[int, int, int]
    normalized: bool = True


@dataclass(frozen=True)
class CompileContext:
    """Per-compile timing state shared by every timeline.

    ``time_offset`` shifts keyframe times of nested compositions into the
    root composition's frame space.
    """
    frame_rate: float
    in_frame: float
    out_frame: float
    options: CompileOptions = field(default_factory=CompileOptions)
    time_offset: float = 0.0

    @property
    def frame_time(self) -> float:
        """Milliseconds per frame."""
        return 1000.0 / self.frame_rate

    @property
    def span(self) -> float:
        """Total frames covered by every timeline (the document out-frame)."""
        return self.out_frame if self.out_frame > 0 else 1.0

    @property
    def duration_ms(self) -> float:
        return self.span * self.frame_time

    @property
    def delay_ms(self) -> float:
        if not self.in_frame:
            return 0.0
        return -self.in_frame * self.frame_time

    def percent(self, frame: float) -> float:
        """Position of a keyframe time on the global timeline, in [0, 1]."""
        return min(1.0, max(0.0, (frame + self.time_offset) / self.span))

    def shifted(self, offset: float) -> CompileContext:
        return dataclasses.replace(self, time_offset=self.time_offset + offset)


@dataclass
class Timeline:
    """One keyframe animation attached to an output element."""
    duration: float
    delay: float = 0.0
    keyframes: list[dict[str, Any]] = field(default_factory=list)
    loop: bool = False

    def touched_keys(self) -> set[str]:
        """Attribute names patched by any keyframe."""
        keys: set[str] = set()
        for kf in self.keyframes:
            keys.update(k for k in kf if k not in ("percent", "easing"))
        return keys

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "duration": self.duration,
            "delay": self.delay,
            "keyframes": clone_tree(self.keyframes),
        }
        if self.loop:
            out["loop"] = True
        return out


@dataclass(eq=False)
class Element:
    """A node of the output scene graph.

    Equality is identity: the assembler moves elements between child
    lists and must never confuse two structurally equal nodes.
    """
    type: ElementType
    attrs: dict[str, Any] = field(default_factory=dict)
    timelines: list[Timeline] = field(default_factory=list)
    children: list[Element] | None = None
    name: str | None = None

    @classmethod
    def group(
        cls,
        children: list[Element] | None = None,
        name: str | None = None,
    ) -> Element:
        return cls(ElementType.GROUP, children=list(children or []), name=name)

    @property
    def is_group(self) -> bool:
        return self.type is ElementType.GROUP

    def add_child(self, child: Element) -> None:
        if self.children is None:
            raise ValueError(f"{self.type.value!r} elements cannot have children.")
        self.children.append(child)

    def iter_tree(self) -> Iterator[Element]:
        """Yield this element and all descendants, depth first."""
        yield self
        for child in self.children or []:
            yield from child.iter_tree()

    def find(self, name: str) -> Element | None:
        for el in self.iter_tree():
            if el.name == name:
                return el
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value}
        if self.name is not None:
            out["name"] = self.name
        out.update(clone_tree(self.attrs))
        if self.children is not None:
            out["children"] = [child.to_dict() for child in self.children]
        if self.timelines:
            out["keyframeAnimation"] = [tl.to_dict() for tl in self.timelines]
        return out


@dataclass
class CompileResult:
    """Output of a full compile: canvas size plus the element tree."""
    width: float
    height: float
    frame_rate: float
    duration_ms: float
    elements: list[Element] = field(default_factory=list)

    def iter_elements(self) -> Iterator[Element]:
        for el in self.elements:
            yield from el.iter_tree()

    def find(self, name: str) -> Element | None:
        for el in self.iter_elements():
            if el.name == name:
                return el
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "elements": [el.to_dict() for el in self.elements],
        }
