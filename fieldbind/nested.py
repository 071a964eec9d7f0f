# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from collections.abc import Mapping
from typing import Any

from ._errors import ConfigurationError
from .types import Undefined

__all__ = (
    "PATH_SEP",
    "split_path",
    "is_prefix",
    "ninsert",
    "nget",
)

PATH_SEP = "."


def split_path(path: str) -> list[str]:
    """Split a dotted field path into its segments.

    Raises:
        ConfigurationError: If the path is empty or has an empty segment.
    """
    if not isinstance(path, str) or not path:
        raise ConfigurationError(
            "Field path must be a non-empty string", details={"path": path}
        )
    segments = path.split(PATH_SEP)
    if any(not s for s in segments):
        raise ConfigurationError(
            f"Field path '{path}' has an empty segment", details={"path": path}
        )
    return segments


def is_prefix(parent: str, child: str) -> bool:
    """True if ``parent`` names a container that ``child`` lives inside."""
    return child.startswith(parent + PATH_SEP)


def ninsert(target: dict, segments: list[str], value: Any) -> None:
    """Assign ``value`` at ``segments``, creating intermediate dicts."""
    *parents, last = segments
    for key in parents:
        target = target.setdefault(key, {})
    target[last] = value


def nget(source: Mapping, segments: list[str], default: Any = Undefined) -> Any:
    """Walk ``segments`` through nested mappings, ``default`` if missing."""
    current: Any = source
    for key in segments:
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return current
