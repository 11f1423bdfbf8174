"""
Layer hierarchy assembly.

Layers are built in reverse declaration order (the first-declared layer is
frontmost, so it must come last in the child list).  Every built layer is
registered under its ``ind``; afterwards each layer naming a resolvable
``parent`` is moved from the top level into its parent's inner group, the
pivot-adjusted local space produced by :func:`rewrite_anchor`.
"""

from __future__ import annotations

import logging
from typing import Any

from lottiegraph.shapes import compile_shapes
from lottiegraph.transform import apply_transform, rewrite_anchor
from lottiegraph.types import CompileContext, Element, ElementType, LayerType

logger = logging.getLogger(__name__)


def _solid_rect(layer: dict[str, Any]) -> Element:
    width = layer.get("sw") or 0
    height = layer.get("sh") or 0
    return Element(
        ElementType.RECT,
        attrs={
            "shape": {"cx": width / 2, "cy": height / 2, "width": width, "height": height},
            "style": {"fill": layer.get("sc") or "none"},
        },
    )


def build_layer(layer: dict[str, Any], ctx: CompileContext) -> tuple[Element, Element] | None:
    """
    Build one layer's element.

    Returns ``(outer, inner)`` as produced by the anchor rewrite, or None
    for layer kinds that produce no output.
    """
    kind = LayerType.from_code(layer.get("ty"))
    if kind is LayerType.SHAPE:
        group = Element.group(compile_shapes(layer.get("shapes"), ctx))
    elif kind is LayerType.NULL:
        group = Element.group()
    elif kind is LayerType.PRECOMP:
        nested = layer.get("layers") if isinstance(layer.get("layers"), list) else []
        offset = layer.get("st") or 0
        group = Element.group(assemble_layers(nested, ctx.shifted(offset)))
    elif kind is LayerType.SOLID:
        group = Element.group([_solid_rect(layer)])
    else:
        logger.debug("Skipping %s layer %r (ty=%r)",
                     kind.name.lower(), layer.get("nm"), layer.get("ty"))
        return None

    name = layer.get("nm")
    if ctx.options.keep_names and isinstance(name, str):
        group.name = name
    apply_transform(group, layer.get("ks"), ctx)
    return rewrite_anchor(group)


def _closes_cycle(index: Any, parents: dict[Any, Any]) -> bool:
    """True when following parent links from ``index`` leads back to it."""
    seen = {index}
    current = parents.get(index)
    while current is not None:
        if current == index:
            return True
        if current in seen:
            return False
        seen.add(current)
        current = parents.get(current)
    return False


def assemble_layers(layers: Any, ctx: CompileContext) -> list[Element]:
    """
    Build the element tree for one layer list.

    Parameters
    ----------
    layers : list
        Layer dicts in declaration order.
    ctx : CompileContext
        Timing for this composition.

    Returns
    -------
    list[Element]
        Top-level elements, back to front.
    """
    if not isinstance(layers, list):
        return []

    top: list[Element] = []
    registry: dict[Any, tuple[Element, Element]] = {}
    parents: dict[Any, Any] = {}

    for layer in reversed(layers):
        if not isinstance(layer, dict):
            continue
        built = build_layer(layer, ctx)
        if built is None:
            continue
        top.append(built[0])
        index = layer.get("ind")
        if index is None:
            continue
        if index in registry:
            logger.warning("Duplicate layer index %r; keeping the frontmost layer.", index)
            continue
        registry[index] = built
        if layer.get("parent") is not None:
            parents[index] = layer["parent"]

    for index, parent in parents.items():
        if parent not in registry:
            logger.debug("Layer %r has unknown parent %r; kept at top level.", index, parent)
            continue
        if _closes_cycle(index, parents):
            logger.warning("Layer %r is part of a parent cycle; kept at top level.", index)
            continue
        outer = registry[index][0]
        top = [el for el in top if el is not outer]
        registry[parent][1].add_child(outer)

    return top
