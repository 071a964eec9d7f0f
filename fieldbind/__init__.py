# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import ConfigurationError, FieldbindError, FieldNotFoundError
from .config import FieldbindSettings, settings
from .constraint import Constraint
from .definition import Definition
from .field import CssState, Field
from .model import Model, NamedValidator
from .observation import (
    CollectingSink,
    DiagnosticEvent,
    DiagnosticKind,
    DiagnosticSink,
    LoggingSink,
)
from .types import Coercion, CoercionKind, Undefined, Unset
from .version import __version__

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = (
    "__version__",
    "Coercion",
    "CoercionKind",
    "CollectingSink",
    "ConfigurationError",
    "Constraint",
    "CssState",
    "Definition",
    "DiagnosticEvent",
    "DiagnosticKind",
    "DiagnosticSink",
    "Field",
    "FieldNotFoundError",
    "FieldbindError",
    "FieldbindSettings",
    "LoggingSink",
    "Model",
    "NamedValidator",
    "Undefined",
    "Unset",
    "logger",
    "settings",
)
