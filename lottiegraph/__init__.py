"""
lottiegraph -- Lottie animations compiled to keyframe-animated graphic elements.

Normalizes legacy Lottie documents, walks their layer and shape trees, and
emits a scene graph of groups and custom path/ellipse/rect elements whose
animated properties are expressed as percent-based keyframe timelines.
"""

__version__ = "0.1.0"

from lottiegraph.compiler import compile_animation
from lottiegraph.draw import DRAW_ROUTINES, CommandRecorder, install
from lottiegraph.exceptions import ConfigError, InvalidDocumentError, LottieGraphError
from lottiegraph.normalize import normalize
from lottiegraph.types import (
    CompileOptions,
    CompileResult,
    Element,
    ElementType,
    NormalizedDocument,
    Timeline,
)

__all__ = [
    "CommandRecorder",
    "CompileOptions",
    "CompileResult",
    "ConfigError",
    "DRAW_ROUTINES",
    "Element",
    "ElementType",
    "InvalidDocumentError",
    "LottieGraphError",
    "NormalizedDocument",
    "Timeline",
    "compile_animation",
    "install",
    "normalize",
]
