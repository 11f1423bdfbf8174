"""
Schema normalizer: migrate legacy Lottie encodings to the canonical form.

Older exporters stored colors as 0..255, text documents unwrapped, path
tangents relative to their vertex and the closed flag on the shape rather
than on its geometry.  :func:`normalize` clones the input document and
rewrites those encodings in place on the clone, so everything downstream
can assume one layout.

Each migration is gated on the document version ``v``; a migration runs
when the document is strictly older than the migration's threshold.
Documents without a version are treated as current, except that their
colors are rescaled when any channel reads above 1.  An unversioned
document whose 0..255 colors never exceed 1 is indistinguishable from a
0..1 document and is left alone.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from lottiegraph.exceptions import InvalidDocumentError
from lottiegraph.types import LayerType, NormalizedDocument, clone_tree

logger = logging.getLogger(__name__)

# Version assumed for documents without a usable ``v``; newer than every
# threshold.  Such documents still get the color rescale when any fill or
# stroke channel is above 1.
UNKNOWN_VERSION = (100, 100, 100)

COLORS_VERSION = (4, 1, 9)
TEXT_DOCUMENT_VERSION = (4, 4, 14)
CHARS_VERSION = (4, 7, 99)
TEXT_PATH_VERSION = (5, 7, 15)
CLOSED_FLAG_VERSION = (4, 4, 18)

TEXT_PATH_KEYS = ("a", "p", "r")


def parse_version(value: Any) -> tuple[int, int, int]:
    """
    Parse a ``major.minor.patch`` version string.

    Missing components count as 0; anything unparseable yields
    :data:`UNKNOWN_VERSION`.
    """
    if not isinstance(value, str) or not value.strip():
        return UNKNOWN_VERSION
    parts = value.strip().split(".")
    if len(parts) > 3:
        parts = parts[:3]
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        return UNKNOWN_VERSION
    if any(n < 0 for n in numbers):
        return UNKNOWN_VERSION
    numbers += [0] * (3 - len(numbers))
    return (numbers[0], numbers[1], numbers[2])


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def _is_bezier(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("v"), list)


def _bezier_values(prop: Any) -> Iterator[dict[str, Any]]:
    """Yield every bezier a path property holds: the static one, or
    ``s[0]``/``e[0]`` of each keyframe."""
    if not isinstance(prop, dict):
        return
    k = prop.get("k")
    if _is_bezier(k):
        yield k
        return
    if not isinstance(k, list):
        return
    for kf in k:
        if not isinstance(kf, dict):
            continue
        for key in ("s", "e"):
            value = kf.get(key)
            if isinstance(value, list) and value and _is_bezier(value[0]):
                yield value[0]


def make_tangents_absolute(path: dict[str, Any]) -> None:
    """Add each vertex to its in/out tangents."""
    vertices = path.get("v") or []
    for key in ("i", "o"):
        tangents = path.get(key)
        if not isinstance(tangents, list):
            continue
        for idx, tangent in enumerate(tangents):
            if idx >= len(vertices):
                break
            vertex = vertices[idx]
            if not isinstance(tangent, list) or not isinstance(vertex, list):
                continue
            for axis in range(min(2, len(tangent), len(vertex))):
                tangent[axis] += vertex[axis]


def _scale_color(values: Any) -> None:
    if not isinstance(values, list):
        return
    for idx in range(min(4, len(values))):
        if isinstance(values[idx], (int, float)):
            values[idx] /= 255


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class _Normalizer:
    """Runs the migrations over one cloned document."""

    def __init__(self, data: dict[str, Any], version: tuple[int, int, int]) -> None:
        self.data = data
        self.version = version
        self.assets = data.get("assets") if isinstance(data.get("assets"), list) else []
        self._completed: set[int] = set()
        self._used_assets: set[int] = set()
        self._active_refs: list[Any] = []

    def older_than(self, threshold: tuple[int, int, int]) -> bool:
        return self.version < threshold

    def layer_lists(self) -> Iterator[list[Any]]:
        """The top-level layer list, then every asset's layer list."""
        yield self.data["layers"]
        for asset in self.assets:
            if isinstance(asset, dict) and isinstance(asset.get("layers"), list):
                yield asset["layers"]

    def layers_of(self, kind: LayerType) -> Iterator[dict[str, Any]]:
        for layers in self.layer_lists():
            for layer in layers:
                if isinstance(layer, dict) and LayerType.from_code(layer.get("ty")) is kind:
                    yield layer

    def run(self) -> None:
        if self.older_than(COLORS_VERSION):
            self.migrate_colors()
        elif self.version == UNKNOWN_VERSION and self.has_byte_colors():
            self.migrate_colors()
        if self.older_than(TEXT_DOCUMENT_VERSION):
            self.migrate_text_documents()
        if not self.older_than(CHARS_VERSION):
            self.migrate_chars()
        if self.older_than(TEXT_PATH_VERSION):
            self.migrate_text_paths()
        if self.older_than(CLOSED_FLAG_VERSION):
            self.migrate_closed_flags()
        self.complete_layers(self.data["layers"])

    # -- colors ------------------------------------------------------------

    def migrate_colors(self) -> None:
        logger.debug("Rescaling 0-255 colors (document version %s)", self.version)
        for values in self._colors():
            _scale_color(values)

    def has_byte_colors(self) -> bool:
        """True when any fill or stroke channel lies above 1."""
        for values in self._colors():
            if any(isinstance(c, (int, float)) and c > 1 for c in values[:3]):
                return True
        return False

    def _colors(self) -> Iterator[list[Any]]:
        for layer in self.layers_of(LayerType.SHAPE):
            yield from self._shape_colors(layer.get("shapes"))

    def _shape_colors(self, shapes: Any) -> Iterator[list[Any]]:
        if not isinstance(shapes, list):
            return
        for shape in shapes:
            if not isinstance(shape, dict):
                continue
            if shape.get("ty") == "gr":
                yield from self._shape_colors(shape.get("it"))
            elif shape.get("ty") in ("fl", "st"):
                color = shape.get("c")
                k = color.get("k") if isinstance(color, dict) else None
                if not isinstance(k, list) or not k:
                    continue
                if isinstance(k[0], dict):
                    for kf in k:
                        if not isinstance(kf, dict):
                            continue
                        for key in ("s", "e"):
                            if isinstance(kf.get(key), list):
                                yield kf[key]
                else:
                    yield k

    # -- text --------------------------------------------------------------

    def migrate_text_documents(self) -> None:
        for layer in self.layers_of(LayerType.TEXT):
            text = layer.get("t")
            if isinstance(text, dict) and "d" in text:
                text["d"] = {"k": [{"s": text["d"], "t": 0}]}

    def migrate_chars(self) -> None:
        chars = self.data.get("chars")
        if not isinstance(chars, list):
            return
        converted: set[int] = set()
        for char in chars:
            data = char.get("data") if isinstance(char, dict) else None
            shapes = data.get("shapes") if isinstance(data, dict) else None
            if not isinstance(shapes, list) or not shapes or not isinstance(shapes[0], dict):
                continue
            items = shapes[0].get("it")
            for item in items if isinstance(items, list) else []:
                ks = item.get("ks") if isinstance(item, dict) else None
                path = ks.get("k") if isinstance(ks, dict) else None
                if _is_bezier(path) and id(path) not in converted:
                    make_tangents_absolute(path)
                    converted.add(id(path))

    def migrate_text_paths(self) -> None:
        for layer in self.layers_of(LayerType.TEXT):
            text = layer.get("t")
            path = text.get("p") if isinstance(text, dict) else None
            if not isinstance(path, dict):
                continue
            for key in TEXT_PATH_KEYS:
                value = path.get(key)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    path[key] = {"a": 0, "k": value}

    # -- closed flags ------------------------------------------------------

    def migrate_closed_flags(self) -> None:
        for layers in self.layer_lists():
            for layer in layers:
                if not isinstance(layer, dict):
                    continue
                if layer.get("hasMask"):
                    for mask in layer.get("masksProperties") or []:
                        if isinstance(mask, dict) and "cl" in mask:
                            for path in _bezier_values(mask.get("pt")):
                                path["c"] = mask["cl"]
                if LayerType.from_code(layer.get("ty")) is LayerType.SHAPE:
                    self._close_shapes(layer.get("shapes"))

    def _close_shapes(self, shapes: Any) -> None:
        if not isinstance(shapes, list):
            return
        for shape in shapes:
            if not isinstance(shape, dict):
                continue
            if shape.get("ty") == "sh" and "closed" in shape:
                for path in _bezier_values(shape.get("ks")):
                    path["c"] = shape["closed"]
            elif shape.get("ty") == "gr":
                self._close_shapes(shape.get("it"))

    # -- layer completion --------------------------------------------------

    def complete_layers(self, layers: Any) -> None:
        if not isinstance(layers, list):
            return
        for idx, layer in enumerate(layers):
            if not isinstance(layer, dict) or "ks" not in layer:
                continue
            if id(layer) in self._completed:
                continue
            self._completed.add(id(layer))

            if layer.get("tt") and idx > 0 and isinstance(layers[idx - 1], dict):
                layers[idx - 1]["td"] = layer["tt"]
            if layer.get("hasMask"):
                for mask in layer.get("masksProperties") or []:
                    if isinstance(mask, dict):
                        for path in _bezier_values(mask.get("pt")):
                            make_tangents_absolute(path)

            kind = LayerType.from_code(layer.get("ty"))
            if kind is LayerType.PRECOMP:
                self._expand_precomp(layer)
            elif kind is LayerType.SHAPE:
                self._complete_shapes(layer.get("shapes"))
            elif kind is LayerType.TEXT:
                self._complete_text(layer)

    def _find_asset_layers(self, ref_id: Any) -> list[Any] | None:
        for asset in self.assets:
            if not isinstance(asset, dict) or asset.get("id") != ref_id:
                continue
            layers = asset.get("layers")
            if not isinstance(layers, list):
                return None
            if id(layers) not in self._used_assets:
                self._used_assets.add(id(layers))
                return layers
            copy = clone_tree(layers)
            self._mark_completed(copy)
            return copy
        return None

    def _mark_completed(self, layers: list[Any]) -> None:
        """A cloned list copies already-completed layers; keep it that way."""
        for layer in layers:
            if isinstance(layer, dict) and "ks" in layer:
                self._completed.add(id(layer))
                if isinstance(layer.get("layers"), list):
                    self._mark_completed(layer["layers"])

    def _expand_precomp(self, layer: dict[str, Any]) -> None:
        ref_id = layer.get("refId")
        if ref_id in self._active_refs:
            logger.warning("Precomposition %r references itself; expanded as empty.", ref_id)
            layer["layers"] = []
            return
        nested = self._find_asset_layers(ref_id)
        if nested is None:
            logger.warning("Precomposition asset %r not found; expanded as empty.", ref_id)
            layer["layers"] = []
            return
        layer["layers"] = nested
        self._active_refs.append(ref_id)
        try:
            self.complete_layers(nested)
        finally:
            self._active_refs.pop()

    def _complete_shapes(self, shapes: Any) -> None:
        if not isinstance(shapes, list):
            return
        for shape in reversed(shapes):
            if not isinstance(shape, dict):
                continue
            if shape.get("ty") == "sh":
                for path in _bezier_values(shape.get("ks")):
                    make_tangents_absolute(path)
            elif shape.get("ty") == "gr":
                self._complete_shapes(shape.get("it"))

    @staticmethod
    def _complete_text(layer: dict[str, Any]) -> None:
        text = layer.get("t")
        if not isinstance(text, dict):
            return
        animators = text.get("a")
        path = text.get("p")
        if not animators and not (isinstance(path, dict) and "m" in path):
            layer["singleShape"] = True


def normalize(raw: Any) -> NormalizedDocument:
    """
    Return a normalized copy of an animation document.

    Parameters
    ----------
    raw : dict or NormalizedDocument
        Parsed Lottie JSON.  It is never mutated.  An already normalized
        document is returned unchanged.

    Returns
    -------
    NormalizedDocument

    Raises
    ------
    InvalidDocumentError
        If ``raw`` is not a mapping or has no ``layers`` list.
    """
    if isinstance(raw, NormalizedDocument):
        return raw
    if not isinstance(raw, dict):
        raise InvalidDocumentError(
            f"Animation document must be a JSON object, got {type(raw).__name__}"
        )
    if not isinstance(raw.get("layers"), list):
        raise InvalidDocumentError("Animation document has no 'layers' list")

    data = clone_tree(raw)
    version = parse_version(data.get("v"))
    _Normalizer(data, version).run()
    logger.debug("Normalized document version %s with %d top-level layers",
                 ".".join(map(str, version)), len(data["layers"]))
    return NormalizedDocument(data=data, version=version)
