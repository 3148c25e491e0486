from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from lark import Token

from .runtime import (
    Frame,
    LoxRuntimeError,
    LoxValue,
    Returning,
    new_global_frame,
)
from .tree import Node, is_token, tree_children

from .eval.bind import eval_assign, eval_var_decl
from .eval.blocks import eval_block, eval_statements
from .eval.common import (
    EvalFunc,
    eval_value,
    token_false,
    token_ident,
    token_nil,
    token_number,
    token_string,
    token_true,
)
from .eval.control import eval_if_stmt, eval_print_stmt, eval_return_stmt, eval_while_stmt
from .eval.expr import eval_equality, eval_infix, eval_logical, eval_unary
from .eval.fn import eval_call, eval_fn_decl

logger = logging.getLogger(__name__)

Outcome = Union[LoxValue, Returning]

# ---------------- Public API ----------------

@dataclass
class StatementOutcome:
    """Result of one top-level statement: its value, or the error that stopped it."""
    stmt: Node
    value: Optional[LoxValue] = None
    error: Optional[LoxRuntimeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

def eval_program(program: Node, frame: Optional[Frame]=None, on_outcome: Optional[Callable[[StatementOutcome], None]]=None) -> List[StatementOutcome]:
    """
    Run each top-level statement in order against one shared global frame.
    A runtime error ends only the statement that raised it. `on_outcome`
    sees each outcome as soon as its statement finishes.
    """
    if frame is None:
        frame = new_global_frame()

    outcomes: List[StatementOutcome] = []

    for stmt in tree_children(program):
        try:
            result = eval_node(stmt, frame)
        except LoxRuntimeError as exc:
            logger.debug("runtime error in top-level statement: %s", exc)
            outcome = StatementOutcome(stmt, error=exc)
        else:
            if isinstance(result, Returning):
                result = result.value
            outcome = StatementOutcome(stmt, value=result)

        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    return outcomes

def eval_expr(ast: Node, frame: Optional[Frame]=None) -> LoxValue:
    if frame is None:
        frame = new_global_frame()

    return eval_value(ast, frame, eval_node)

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Outcome:
    try:
        return _eval_node_inner(n, frame)
    except LoxRuntimeError as e:
        e.attach(n)
        raise

def _eval_node_inner(n: Node, frame: Frame) -> Outcome:
    if is_token(n):
        return _eval_token(n, frame)

    d = n.data
    handler = _NODE_DISPATCH.get(d)
    if handler is not None:
        return handler(n.children, frame, eval_node)

    match d:
        case 'and' | 'or':
            return eval_logical(d, n.children, frame, eval_node)
        case _:
            raise LoxRuntimeError(f"Unknown node: {d}")

def _eval_token(t: Token, frame: Frame) -> LoxValue:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, frame)

    raise LoxRuntimeError(f"Unhandled token {t.type}:{t.value}")

def _eval_group(children: List[Node], frame: Frame, eval_func: EvalFunc) -> Outcome:
    return eval_func(children[0], frame)

def _eval_expr_stmt(children: List[Node], frame: Frame, eval_func: EvalFunc) -> LoxValue:
    return eval_value(children[0], frame, eval_func)

def _eval_fn_decl(children: List[Node], frame: Frame, _eval_func: EvalFunc) -> LoxValue:
    return eval_fn_decl(children, frame)

# Every handler takes (children, frame, eval_func).
_NODE_DISPATCH: dict[str, Callable[[List[Node], Frame, EvalFunc], Outcome]] = {
    'program': eval_statements,
    'group': _eval_group,
    'exprstmt': _eval_expr_stmt,
    'block': eval_block,
    'vardecl': eval_var_decl,
    'assign': eval_assign,
    'fndecl': _eval_fn_decl,
    'call': eval_call,
    'unary': eval_unary,
    'mulexpr': eval_infix,
    'addexpr': eval_infix,
    'compareexpr': eval_infix,
    'equalityexpr': eval_equality,
    'ifstmt': eval_if_stmt,
    'whilestmt': eval_while_stmt,
    'returnstmt': eval_return_stmt,
    'printstmt': eval_print_stmt,
}

_TOKEN_DISPATCH: dict[str, Callable[[Token, Frame], LoxValue]] = {
    'NUMBER': token_number,
    'STRING': token_string,
    'TRUE': token_true,
    'FALSE': token_false,
    'NIL': token_nil,
    'IDENT': token_ident,
}
