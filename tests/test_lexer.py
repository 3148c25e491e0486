from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from lox_ref.lexer_rd import LexError, TT, tokenize


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    expected_lines: Optional[Tuple[Tuple[object, int], ...]] = None
    exc: Optional[type[Exception]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, 123.0),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, 3.14),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar", expected=((TT.IDENT, "foo_bar"),)),
    Case("ident-leading-underscore", "_tmp1", expected=((TT.IDENT, "_tmp1"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, "hello"),)),
    Case("string-empty", '""', expected=((TT.STRING, ""),)),
    Case("bool-true", "true", expected=((TT.TRUE, "true"),)),
    Case("bool-false", "false", expected=((TT.FALSE, "false"),)),
    Case("nil-literal", "nil", expected=((TT.NIL, "nil"),)),
    Case("keyword-prefix-ident", "variable", expected=((TT.IDENT, "variable"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("bang", "!", expected_types=(TT.BANG,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("assign-then-eq", "= ==", expected_types=(TT.ASSIGN, TT.EQ)),
    Case("bang-bang", "!!", expected_types=(TT.BANG, TT.BANG)),
    Case(
        "punctuation",
        "(){},.;",
        expected_types=(TT.LPAR, TT.RPAR, TT.LBRACE, TT.RBRACE, TT.COMMA, TT.DOT, TT.SEMI),
    ),
]

KEYWORD_CASES: List[Case] = [
    Case(f"keyword-{word}", word, expected_types=(kind,))
    for word, kind in [
        ("and", TT.AND),
        ("class", TT.CLASS),
        ("else", TT.ELSE),
        ("for", TT.FOR),
        ("fun", TT.FUN),
        ("if", TT.IF),
        ("or", TT.OR),
        ("print", TT.PRINT),
        ("return", TT.RETURN),
        ("super", TT.SUPER),
        ("this", TT.THIS),
        ("var", TT.VAR),
        ("while", TT.WHILE),
    ]
]

LAYOUT_CASES: List[Case] = [
    Case(
        "comment-dropped",
        "1 // trailing words\n2",
        expected=((TT.NUMBER, 1.0), (TT.NUMBER, 2.0)),
    ),
    Case(
        "slash-not-comment",
        "4 / 2",
        expected_types=(TT.NUMBER, TT.SLASH, TT.NUMBER),
    ),
    Case(
        "number-trailing-dot",
        "1.",
        expected_types=(TT.NUMBER, TT.DOT),
    ),
    Case(
        "line-numbers",
        "var a;\n\nprint a;",
        expected_lines=(("var", 1), ("a", 1), ("print", 3), ("a", 3)),
    ),
    Case(
        "multiline-string-advances-lines",
        '"a\nb" x',
        expected_lines=(("a\nb", 1), ("x", 2)),
    ),
]

ERROR_CASES: List[Case] = [
    Case("unterminated-string", '"abc', exc=LexError, msg="Unterminated string", err_line=1, err_col=1),
    Case("unexpected-char", "var a = 1 @ 2;", exc=LexError, msg="Unexpected character '@'", err_line=1, err_col=11),
    Case("unexpected-char-later-line", "1;\n  #", exc=LexError, msg="Unexpected character '#'", err_line=2, err_col=3),
    Case("non-ascii-digit", "print \u00b2;", exc=LexError, msg="Unexpected character '\u00b2'", err_line=1, err_col=7),
]


def _significant(source: str):
    tokens = tokenize(source)
    assert tokens[-1].type == TT.EOF
    return tokens[:-1]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda c: c.name)
def test_basic_tokens(case: Case) -> None:
    got = tuple((t.type, t.value) for t in _significant(case.source))
    assert got == case.expected


@pytest.mark.parametrize("case", OPERATOR_CASES + KEYWORD_CASES, ids=lambda c: c.name)
def test_operator_and_keyword_types(case: Case) -> None:
    got = tuple(t.type for t in _significant(case.source))
    assert got == case.expected_types


@pytest.mark.parametrize("case", LAYOUT_CASES, ids=lambda c: c.name)
def test_layout(case: Case) -> None:
    tokens = _significant(case.source)

    if case.expected is not None:
        assert tuple((t.type, t.value) for t in tokens) == case.expected
    if case.expected_types is not None:
        assert tuple(t.type for t in tokens) == case.expected_types
    if case.expected_lines is not None:
        assert tuple((t.value, t.line) for t in tokens) == case.expected_lines


@pytest.mark.parametrize("case", ERROR_CASES, ids=lambda c: c.name)
def test_lex_errors(case: Case) -> None:
    with pytest.raises(LexError) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert err.message == case.msg
    assert err.line == case.err_line
    assert err.column == case.err_col


def test_empty_source_is_just_eof() -> None:
    tokens = tokenize("")
    assert [t.type for t in tokens] == [TT.EOF]
    assert tokens[0].value is None


def test_token_offsets_point_at_lexeme_start() -> None:
    source = "print  foo;"
    tokens = _significant(source)

    assert [source[t.offset] for t in tokens] == ["p", "f", ";"]
    assert [t.column for t in tokens] == [1, 8, 11]
