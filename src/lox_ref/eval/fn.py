from __future__ import annotations

from typing import List

from ..runtime import Frame, LoxFn, LoxNil, LoxNameError, LoxUndefinedCalleeError, LoxValue, call_function
from ..tree import Node, tree_children
from .bind import expect_ident
from .common import EvalFunc, eval_value

def extract_param_names(params_node: Node) -> List[str]:
    return [expect_ident(p, "Parameter") for p in tree_children(params_node)]

def eval_fn_decl(children: List[Node], frame: Frame) -> LoxNil:
    """Register (params, body) under the name in the current scope; nothing is captured."""
    name_node, params_node, body_node = children
    name = expect_ident(name_node, "Function name")
    params = extract_param_names(params_node)
    frame.define(name, LoxFn(name=name, params=tuple(params), body=body_node))

    return LoxNil()

def eval_call(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxValue:
    callee_node, args_node = children
    name = expect_ident(callee_node, "Callee")

    try:
        callee = frame.get(name)
    except LoxNameError:
        raise LoxUndefinedCalleeError(name) from None

    args = [eval_value(arg, frame, eval_func) for arg in tree_children(args_node)]

    return call_function(name, callee, args, frame)
