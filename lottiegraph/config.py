"""
Compile-option configuration files.

Options are read from a YAML mapping whose keys are the fields of
:class:`CompileOptions`.  The file is looked up in priority order:

1. An explicit path passed by the caller (``--config`` on the CLI)
2. The ``LOTTIEGRAPH_CONFIG`` environment variable
3. ``~/.config/lottiegraph/config.yaml``

Example::

    loop: true
    default_frame_rate: 60
    keep_names: false
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from lottiegraph.exceptions import ConfigError
from lottiegraph.types import CompileOptions

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LOTTIEGRAPH_CONFIG"
_USER_CONFIG_FILE = Path.home() / ".config" / "lottiegraph" / "config.yaml"

_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "loop": (bool,),
    "default_frame_rate": (int, float),
    "keep_names": (bool,),
}


def config_search_paths(path: str | Path | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths: list[Path] = []
    if path is not None:
        paths.append(Path(path))
    env = os.environ.get(CONFIG_ENV_VAR, "")
    if env:
        paths.append(Path(env).expanduser())
    paths.append(_USER_CONFIG_FILE)
    return paths


def parse_options(data: Any, source: str = "<config>", **overrides: Any) -> CompileOptions:
    """
    Validate a parsed config mapping and build :class:`CompileOptions`.

    Raises
    ------
    ConfigError
        If ``data`` is not a mapping, has unknown keys, or a value has
        the wrong type.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a mapping, got {type(data).__name__}")
    merged = {**data, **{k: v for k, v in overrides.items() if v is not None}}

    unknown = sorted(set(merged) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(
            f"{source}: unknown option(s) {', '.join(unknown)}.  "
            f"Valid options: {', '.join(sorted(_FIELD_TYPES))}"
        )
    for key, value in merged.items():
        expected = _FIELD_TYPES[key]
        if isinstance(value, bool) and bool not in expected:
            raise ConfigError(f"{source}: {key} must be a number, got {value!r}")
        if not isinstance(value, expected):
            raise ConfigError(
                f"{source}: {key} must be {expected[0].__name__}, got {value!r}"
            )
    if "default_frame_rate" in merged and merged["default_frame_rate"] <= 0:
        raise ConfigError(f"{source}: default_frame_rate must be positive")
    return dataclasses.replace(CompileOptions(), **merged)


def load_options(path: str | Path | None = None, **overrides: Any) -> CompileOptions:
    """
    Load compile options from the first config file found.

    Keyword overrides (``None`` meaning "not given") win over file values.
    An explicit ``path`` that does not exist is an error; the environment
    and user-level files are optional.

    Raises
    ------
    ConfigError
        If the file cannot be read or parsed, or its contents are invalid.
    """
    if path is not None and not Path(path).is_file():
        raise ConfigError(f"Config file not found: {path}")

    for candidate in config_search_paths(path):
        if not candidate.is_file():
            continue
        try:
            data = yaml.safe_load(candidate.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {candidate}: {exc}") from exc
        logger.debug("Loaded compile options from %s", candidate)
        return parse_options(data, source=str(candidate), **overrides)

    return parse_options({}, **overrides)
