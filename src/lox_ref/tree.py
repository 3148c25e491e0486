"""Shared helpers for working with the lark Tree/Token nodes that make up the AST."""
from __future__ import annotations
from typing import List, Optional, Union
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree

Node: TypeAlias = Union[Tree, Token]


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: object) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: object) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def ident_name(node: object) -> Optional[str]:
    if is_token(node) and node.type == 'IDENT':
        return str(node.value)

    return None

def node_line(node: object) -> Optional[int]:
    """First source line carried by a node, searching children left to right."""
    if is_token(node):
        return getattr(node, "line", None)

    for child in tree_children(node):
        line = node_line(child)
        if line is not None:
            return line

    return None

def make_token(type_: str, value: object, line: Optional[int] = None, column: Optional[int] = None, start_pos: Optional[int] = None) -> Token:
    """Build an AST terminal, keeping the scanner position when known."""
    return Token(type_, value, start_pos=start_pos, line=line, column=column)
