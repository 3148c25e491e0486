from __future__ import annotations

import importlib
import logging
from typing import Callable, List

from .types import (
    LoxNil, LoxNumber, LoxString, LoxBool, LoxFn, LoxNative, NativeFn,
    LoxValue, Frame, Returning, Builtins,
    LoxRuntimeError, LoxOperandError, LoxOperandsError, LoxNameError,
    LoxUndefinedCalleeError, LoxNotCallableError, LoxArityError,
    kind_name,
)

logger = logging.getLogger(__name__)

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_native hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("lox_ref.stdlib")
    _STDLIB_INITIALIZED = True

def register_native(name: str):
    """Bind a zero-argument host callable under `name` in every new global scope."""
    def dec(fn: NativeFn):
        Builtins.natives[name] = LoxNative(name=name, fn=fn)
        logger.debug("registered native %s", name)
        return fn

    return dec

def new_global_frame(out=None) -> Frame:
    init_stdlib()
    return Frame(out=out)

def call_function(name: str, callee: LoxValue, args: List[LoxValue], caller_frame: Frame) -> LoxValue:
    """
    Function-call boundary:
    - natives take no arguments and always yield nil
    - user functions bind params in a child of the caller's frame
      (free names resolve dynamically through the caller's chain)
    - a Returning outcome from the body is unwrapped here and never escapes
    """
    match callee:
        case LoxNative(fn=fn):
            if args:
                raise LoxArityError(name, 0, len(args))
            fn()
            return LoxNil()
        case LoxFn():
            return _call_lox_fn(name, callee, args, caller_frame)
        case _:
            raise LoxNotCallableError(name, callee)

def _call_lox_fn(name: str, fn: LoxFn, args: List[LoxValue], caller_frame: Frame) -> LoxValue:
    from .evaluator import eval_node  # local import to avoid cycle
    from .eval.blocks import eval_statements

    if len(args) != len(fn.params):
        raise LoxArityError(name, len(fn.params), len(args))

    callee_frame = caller_frame.child()

    for param, val in zip(fn.params, args):
        callee_frame.define(param, val)

    outcome = eval_statements(fn.body.children, callee_frame, eval_node)

    if isinstance(outcome, Returning):
        return outcome.value

    return LoxNil()
