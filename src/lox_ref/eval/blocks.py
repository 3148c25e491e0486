from __future__ import annotations

from typing import List, Union

from ..runtime import Frame, LoxNil, LoxValue, Returning
from ..tree import Node
from .common import EvalFunc

def eval_statements(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Union[LoxValue, Returning]:
    """Run a stmt list in `frame`, stopping at the first Returning outcome."""
    result: Union[LoxValue, Returning] = LoxNil()

    for child in children:
        result = eval_func(child, frame)
        if isinstance(result, Returning):
            return result

    return result

def eval_block(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Union[LoxValue, Returning]:
    """A block runs in exactly one fresh child scope, discarded afterwards."""
    return eval_statements(children, frame.child(), eval_func)
