from __future__ import annotations

from ..runtime import LoxBool, LoxNil, LoxOperandError, LoxValue

def is_truthy(val: LoxValue) -> bool:
    match val:
        case LoxBool(value=b):
            return b
        case LoxNil():
            return False
        case _:
            return True

def require_bool(op: str, val: LoxValue) -> bool:
    """`if` and `while` conditions must already be booleans."""
    if isinstance(val, LoxBool):
        return val.value

    raise LoxOperandError(op, val, "a boolean")
