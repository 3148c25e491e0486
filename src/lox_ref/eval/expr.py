from __future__ import annotations

import math
import operator
from typing import Callable, Dict, List

from lark import Token

from ..runtime import (
    Frame,
    LoxBool,
    LoxNumber,
    LoxOperandError,
    LoxOperandsError,
    LoxString,
    LoxValue,
)
from ..tree import Node
from ..utils import lox_equals
from .common import EvalFunc, eval_value
from .helpers import is_truthy

_ORDERING: Dict[str, Callable[[object, object], bool]] = {
    '>': operator.gt,
    '>=': operator.ge,
    '<': operator.lt,
    '<=': operator.le,
}

def eval_unary(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxValue:
    op_tok, rhs_node = children
    rhs = eval_value(rhs_node, frame, eval_func)

    match op_tok:
        case Token(type='MINUS'):
            if not isinstance(rhs, LoxNumber):
                raise LoxOperandError('-', rhs, "a number")
            return LoxNumber(-rhs.value)
        case Token(type='BANG'):
            return LoxBool(not is_truthy(rhs))
        case _:
            raise LoxOperandError(str(op_tok), rhs, "a supported unary operand")

def eval_infix(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxValue:
    """Arithmetic and ordering nodes: [left, op, right], both sides always evaluated."""
    left_node, op_tok, right_node = children
    lhs = eval_value(left_node, frame, eval_func)
    rhs = eval_value(right_node, frame, eval_func)

    return apply_binary_operator(str(op_tok.value), lhs, rhs)

def apply_binary_operator(op: str, lhs: LoxValue, rhs: LoxValue) -> LoxValue:
    if op in _ORDERING:
        return _compare_values(op, lhs, rhs)

    match (op, lhs, rhs):
        case ('+', LoxNumber(value=a), LoxNumber(value=b)):
            return LoxNumber(a + b)
        case ('+', LoxString(value=a), LoxString(value=b)):
            return LoxString(a + b)
        case ('-', LoxNumber(value=a), LoxNumber(value=b)):
            return LoxNumber(a - b)
        case ('*', LoxNumber(value=a), LoxNumber(value=b)):
            return LoxNumber(a * b)
        case ('/', LoxNumber(value=a), LoxNumber(value=b)):
            return LoxNumber(_divide(a, b))
        case _:
            raise LoxOperandsError(op, lhs, rhs)

def _divide(a: float, b: float) -> float:
    # IEEE-754 semantics instead of ZeroDivisionError
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)

    return a / b

def _compare_values(op: str, lhs: LoxValue, rhs: LoxValue) -> LoxBool:
    cmp = _ORDERING[op]

    match (lhs, rhs):
        case (LoxNumber(value=a), LoxNumber(value=b)):
            return LoxBool(cmp(a, b))
        case (LoxString(value=a), LoxString(value=b)):
            return LoxBool(cmp(a, b))
        case (LoxBool(value=a), LoxBool(value=b)):
            # false < true
            return LoxBool(cmp(a, b))
        case _:
            raise LoxOperandsError(op, lhs, rhs)

def eval_equality(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxBool:
    left_node, op_tok, right_node = children
    lhs = eval_value(left_node, frame, eval_func)
    rhs = eval_value(right_node, frame, eval_func)

    try:
        same = lox_equals(lhs, rhs)
    except LoxOperandsError:
        if op_tok.type == 'NEQ':
            raise LoxOperandsError('!=', lhs, rhs) from None
        raise

    return LoxBool(same if op_tok.type == 'EQ' else not same)

def eval_logical(kind: str, children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxBool:
    """and/or: both operands are evaluated before either is inspected."""
    left_node, right_node = children
    lhs = eval_value(left_node, frame, eval_func)
    rhs = eval_value(right_node, frame, eval_func)

    match (lhs, rhs):
        case (LoxBool(value=a), LoxBool(value=b)):
            return LoxBool(a and b if kind == 'and' else a or b)
        case _:
            raise LoxOperandsError(kind, lhs, rhs)
