from __future__ import annotations

from typing import List

from ..runtime import Frame, LoxNil, LoxValue, LoxRuntimeError
from ..tree import Node, ident_name
from .common import EvalFunc, eval_value

def expect_ident(node: Node, context: str) -> str:
    name = ident_name(node)
    if name is None:
        raise LoxRuntimeError(f"{context} must be an identifier")

    return name

def eval_var_decl(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxNil:
    """var name = init; always binds in the current scope, shadowing outer names."""
    name_node, init_node = children
    name = expect_ident(name_node, "Variable name")
    value = eval_value(init_node, frame, eval_func)
    frame.define(name, value)

    return LoxNil()

def eval_assign(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxValue:
    """name = value; rebinds the nearest existing binding, never creates one."""
    name_node, value_node = children
    name = expect_ident(name_node, "Assignment target")
    value = eval_value(value_node, frame, eval_func)
    frame.assign(name, value)

    return value
