"""
Compiler facade: animation document in, element tree out.

    document --normalize--> NormalizedDocument --assemble_layers--> elements

The facade owns the per-compile :class:`CompileContext`: it validates the
document timing (frame rate, in/out frames), falls back to configured
defaults where the document is unusable and logs a one-line summary.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from lottiegraph.keyframes import is_number
from lottiegraph.layers import assemble_layers
from lottiegraph.normalize import normalize
from lottiegraph.types import CompileContext, CompileOptions, CompileResult

logger = logging.getLogger(__name__)


def _number(value: Any, default: float) -> float:
    return value if is_number(value) else default


def make_context(data: dict[str, Any], options: CompileOptions) -> CompileContext:
    """Build the timing context for a normalized document."""
    frame_rate = _number(data.get("fr"), 0.0)
    if frame_rate <= 0:
        logger.warning(
            "Document frame rate %r is not usable; falling back to %s fps.",
            data.get("fr"), options.default_frame_rate,
        )
        frame_rate = options.default_frame_rate

    in_frame = _number(data.get("ip"), 0.0)
    out_frame = _number(data.get("op"), 0.0)
    if out_frame <= 0:
        logger.warning("Document out-frame %r is not positive; using a one-frame span.",
                       data.get("op"))
    elif in_frame > out_frame:
        logger.warning("Document in-frame %s is after its out-frame %s.", in_frame, out_frame)

    return CompileContext(
        frame_rate=frame_rate,
        in_frame=in_frame,
        out_frame=out_frame,
        options=options,
    )


def compile_animation(data: Any, options: CompileOptions | None = None) -> CompileResult:
    """
    Compile a Lottie animation document into a graphic element tree.

    Parameters
    ----------
    data : dict or NormalizedDocument
        Parsed Lottie JSON.  The input is never mutated.
    options : CompileOptions, optional
        Compilation settings; defaults apply when omitted.

    Returns
    -------
    CompileResult
        Canvas size, timing and the top-level elements, back to front.

    Raises
    ------
    InvalidDocumentError
        If the document is not a mapping or has no ``layers`` list.
    """
    options = options or CompileOptions()
    t0 = time.monotonic()
    doc = normalize(data)
    ctx = make_context(doc.data, options)
    elements = assemble_layers(doc.data["layers"], ctx)
    result = CompileResult(
        width=_number(doc.data.get("w"), 0),
        height=_number(doc.data.get("h"), 0),
        frame_rate=ctx.frame_rate,
        duration_ms=ctx.duration_ms,
        elements=elements,
    )
    logger.info(
        "Compiled %d layers into %d top-level elements (%.0f ms timeline) in %.3fs",
        len(doc.data["layers"]), len(elements), ctx.duration_ms,
        time.monotonic() - t0,
    )
    return result
