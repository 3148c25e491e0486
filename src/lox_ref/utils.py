from __future__ import annotations

import logging
import os

from .types import (
    LoxValue,
    LoxNil,
    LoxNumber,
    LoxString,
    LoxBool,
    LoxFn,
    LoxNative,
    LoxOperandsError,
)

_TRUTHY_FLAGS = {"1", "true", "yes", "on"}

DEBUG_PY_TRACE_ENV = "LOX_DEBUG_PY_TRACE"
LOG_LEVEL_ENV = "LOX_LOG_LEVEL"


def debug_py_trace_enabled() -> bool:
    """True when runtime errors should also show the Python traceback."""
    return os.environ.get(DEBUG_PY_TRACE_ENV, "").strip().lower() in _TRUTHY_FLAGS


def log_level_from_env(default: int = logging.WARNING) -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default

    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def render(value: LoxValue) -> str:
    """Text written by `print` for each kind of value."""
    match value:
        case LoxString(value=s):
            return s
        case _:
            return repr(value)


def lox_equals(a: LoxValue, b: LoxValue) -> bool:
    """Structural equality over same-kind pairs; mixed kinds are an error."""
    match (a, b):
        case (LoxNil(), LoxNil()):
            return True
        case (LoxNumber(value=x), LoxNumber(value=y)):
            return x == y
        case (LoxString(value=x), LoxString(value=y)):
            return x == y
        case (LoxBool(value=x), LoxBool(value=y)):
            return x == y
        case (LoxFn(), LoxFn()):
            return a == b
        case (LoxNative(), LoxNative()):
            return a.name == b.name and a.fn is b.fn
        case _:
            raise LoxOperandsError("==", a, b)
