from __future__ import annotations

from typing import List, Union

from ..runtime import Frame, LoxNil, LoxValue, Returning
from ..tree import Node
from ..utils import render
from .common import EvalFunc, eval_value
from .helpers import require_bool

def eval_if_stmt(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Union[LoxValue, Returning]:
    cond_node, then_node, *rest = children

    if require_bool('if', eval_value(cond_node, frame, eval_func)):
        return eval_func(then_node, frame)

    if rest:
        return eval_func(rest[0], frame)
    return LoxNil()

def eval_while_stmt(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Union[LoxValue, Returning]:
    """Condition is re-evaluated before every iteration; a Returning body ends the loop."""
    cond_node, body_node = children

    while require_bool('while', eval_value(cond_node, frame, eval_func)):
        outcome = eval_func(body_node, frame)
        if isinstance(outcome, Returning):
            return outcome

    return LoxNil()

def eval_return_stmt(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Returning:
    value = eval_value(children[0], frame, eval_func) if children else LoxNil()

    return Returning(value)

def eval_print_stmt(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxNil:
    value = eval_value(children[0], frame, eval_func)
    frame.out.write(render(value) + "\n")

    return LoxNil()
