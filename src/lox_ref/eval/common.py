from __future__ import annotations

from typing import Any, Callable, Union

from lark import Token

from ..runtime import Frame, LoxBool, LoxNil, LoxNumber, LoxString, LoxValue, Returning
from ..tree import Node

EvalFunc = Callable[[Node, Frame], Union[LoxValue, Returning]]

def token_number(token: Token, _: Any) -> LoxNumber:
    return LoxNumber(float(token.value))

def token_string(token: Token, _: Any) -> LoxString:
    return LoxString(str(token.value))

def token_true(_token: Token, _: Any) -> LoxBool:
    return LoxBool(True)

def token_false(_token: Token, _: Any) -> LoxBool:
    return LoxBool(False)

def token_nil(_token: Token, _: Any) -> LoxNil:
    return LoxNil()

def token_ident(token: Token, frame: Frame) -> LoxValue:
    return frame.get(str(token.value))

def eval_value(node: Node, frame: Frame, eval_func: EvalFunc) -> LoxValue:
    """Evaluate an expression node; expressions never yield Returning."""
    result = eval_func(node, frame)
    if isinstance(result, Returning):
        return result.value

    return result
