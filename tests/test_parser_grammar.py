from __future__ import annotations

import logging

import pytest

from lox_ref.lexer_rd import tokenize
from lox_ref.parser_rd import MAX_ARGS, Parser, parse_source
from lox_ref.token_types import TT
from tests.support.harness import (
    InvalidTargetError,
    MissingTokenError,
    ParseError,
    UnexpectedEndError,
    UnexpectedTokenError,
    parse_expr_fragment,
    parse_ok,
    parse_pipeline,
    sexpr,
)

EXPR_CASES = [
    pytest.param("2 + 3 * 2", "(addexpr 2 + (mulexpr 3 * 2))", id="mul-binds-tighter"),
    pytest.param("10 - 3 - 1", "(addexpr (addexpr 10 - 3) - 1)", id="sub-left-assoc"),
    pytest.param("8 / 4 / 2", "(mulexpr (mulexpr 8 / 4) / 2)", id="div-left-assoc"),
    pytest.param("a = b = 1", "(assign a (assign b 1))", id="assign-right-assoc"),
    pytest.param("!!true", "(unary ! (unary ! true))", id="unary-nests"),
    pytest.param("-a * b", "(mulexpr (unary - a) * b)", id="unary-above-factor"),
    pytest.param("1 < 2 == true", "(equalityexpr (compareexpr 1 < 2) == true)", id="compare-below-equality"),
    pytest.param("a != b == c", "(equalityexpr (equalityexpr a != b) == c)", id="equality-left-assoc"),
    pytest.param("a or b and c", "(or a (and b c))", id="and-binds-tighter"),
    pytest.param("a and b and c", "(and (and a b) c)", id="and-left-assoc"),
    pytest.param("a or b or c", "(or (or a b) c)", id="or-left-assoc"),
    pytest.param("x = a or b", "(assign x (or a b))", id="assign-lowest"),
    pytest.param("(1 + 2) * 3", "(mulexpr (group (addexpr 1 + 2)) * 3)", id="group"),
    pytest.param("f(1, g())", "(call f (arglist 1 (call g (arglist))))", id="call-nested"),
    pytest.param("-f(2)", "(unary - (call f (arglist 2)))", id="call-below-unary"),
    pytest.param('"a" + "b"', '(addexpr "a" + "b")', id="string-concat"),
    pytest.param("1.5 >= nil", "(compareexpr 1.5 >= nil)", id="literal-kinds"),
]

STMT_CASES = [
    pytest.param("var x;", "(vardecl x nil)", id="var-default-nil"),
    pytest.param('var s = "hi";', '(vardecl s "hi")', id="var-init"),
    pytest.param(
        "fun add(a, b) { return a + b; }",
        "(fndecl add (paramlist a b) (block (returnstmt (addexpr a + b))))",
        id="fun-decl",
    ),
    pytest.param("fun noop() {}", "(fndecl noop (paramlist) (block))", id="fun-empty"),
    pytest.param("print 1;", "(printstmt 1)", id="print"),
    pytest.param("x;", "(exprstmt x)", id="expr-stmt"),
    pytest.param("{ var a = 1; { a; } }", "(block (vardecl a 1) (block (exprstmt a)))", id="nested-blocks"),
    pytest.param("if (x) print 1; else print 2;", "(ifstmt x (printstmt 1) (printstmt 2))", id="if-else"),
    pytest.param("if (x) print 1;", "(ifstmt x (printstmt 1))", id="if-no-else"),
    pytest.param(
        "if (a) if (b) print 1; else print 2;",
        "(ifstmt a (ifstmt b (printstmt 1) (printstmt 2)))",
        id="dangling-else-binds-inner",
    ),
    pytest.param(
        "while (x) { x = false; }",
        "(whilestmt x (block (exprstmt (assign x false))))",
        id="while",
    ),
    pytest.param("return;", "(returnstmt)", id="return-bare"),
    pytest.param("return 1 + 2;", "(returnstmt (addexpr 1 + 2))", id="return-value"),
    pytest.param(
        "for (var i = 0; i < 3; i = i + 1) print i;",
        "(block (vardecl i 0) (whilestmt (compareexpr i < 3) "
        "(block (printstmt i) (exprstmt (assign i (addexpr i + 1))))))",
        id="for-desugar-full",
    ),
    pytest.param(
        "for (;;) print 1;",
        "(block (whilestmt true (block (printstmt 1))))",
        id="for-desugar-empty-clauses",
    ),
    pytest.param(
        "for (x = 0; x < 1;) print x;",
        "(block (exprstmt (assign x 0)) (whilestmt (compareexpr x < 1) (block (printstmt x))))",
        id="for-desugar-expr-init-no-incr",
    ),
]

ERROR_CASES = [
    pytest.param("1 = 2;", InvalidTargetError, id="assign-to-literal"),
    pytest.param("(a) = 2;", InvalidTargetError, id="assign-to-group"),
    pytest.param("a + b = 2;", InvalidTargetError, id="assign-to-binary"),
    pytest.param("(1 + 2;", MissingTokenError, id="missing-rpar"),
    pytest.param("var 1 = 2;", MissingTokenError, id="var-missing-name"),
    pytest.param("fun f(a b) {}", MissingTokenError, id="params-missing-comma"),
    pytest.param("if x) print 1;", MissingTokenError, id="if-missing-lpar"),
    pytest.param("print 1", UnexpectedEndError, id="eof-before-semicolon"),
    pytest.param("{ print 1;", UnexpectedEndError, id="unclosed-block"),
    pytest.param("print );", UnexpectedTokenError, id="bad-primary"),
    pytest.param("1 + ;", UnexpectedTokenError, id="missing-operand"),
    pytest.param("this;", UnexpectedTokenError, id="reserved-word-primary"),
]

RECOVERY_CASES = [
    pytest.param("(1; 8;", "(program (exprstmt 8))", 1, id="unclosed-group-then-stmt"),
    pytest.param("1 + print 2;", "(program (printstmt 2))", 1, id="resync-at-keyword"),
    pytest.param("class Foo {} print 1;", "(program (printstmt 1))", 1, id="first-token-dropped"),
    pytest.param("var a = ; var b = 2;", "(program (vardecl b 2))", 1, id="resync-after-semicolon"),
    pytest.param("print 1 +", "(program)", 1, id="incomplete-at-eof"),
    pytest.param("1 = 2; 3 = 4; print 5;", "(program (printstmt 5))", 2, id="errors-accumulate"),
    pytest.param("{ 1 = 2; print 3; }", "(program (block (printstmt 3)))", 1, id="recovery-inside-block"),
    pytest.param(") print 1;", "(program (printstmt 1))", 1, id="stray-closer"),
    pytest.param("; x = 1;", "(program (exprstmt (assign x 1)))", 1, id="stray-semicolon-dropped-alone"),
    pytest.param("var x = 1; ; x = 2;", "(program (vardecl x 1) (exprstmt (assign x 2)))", 1, id="stray-semicolon-between-stmts"),
]


def _first_stmt(code: str) -> str:
    program = parse_ok(code)
    assert len(program.children) == 1
    return sexpr(program.children[0])


@pytest.mark.parametrize("code, expected", EXPR_CASES)
def test_expression_shapes(code: str, expected: str) -> None:
    assert sexpr(parse_expr_fragment(code)) == expected
    assert _first_stmt(f"{code};") == f"(exprstmt {expected})"


@pytest.mark.parametrize("code, expected", STMT_CASES)
def test_statement_shapes(code: str, expected: str) -> None:
    assert _first_stmt(code) == expected


@pytest.mark.parametrize("code, exc_type", ERROR_CASES)
def test_error_kinds(code: str, exc_type: type) -> None:
    _, errors = parse_pipeline(code)

    assert errors, "expected at least one parse error"
    assert isinstance(errors[0], exc_type)
    assert isinstance(errors[0], ParseError)
    assert errors[0].token is not None


@pytest.mark.parametrize("code, expected, n_errors", RECOVERY_CASES)
def test_panic_mode_recovery(code: str, expected: str, n_errors: int) -> None:
    program, errors = parse_pipeline(code)

    assert sexpr(program) == expected
    assert len(errors) == n_errors


def test_missing_token_names_expected_kind() -> None:
    _, errors = parse_pipeline("(1 + 2;")
    err = errors[0]

    assert isinstance(err, MissingTokenError)
    assert err.expected == TT.RPAR
    assert err.token.type == TT.SEMI


def test_error_positions_come_from_offending_token() -> None:
    _, errors = parse_pipeline("var a = 1;\nprint );")
    err = errors[0]

    assert err.token.line == 2
    assert err.token.column == 7
    assert "line 2" in str(err)


def test_unexpected_end_reports_eof_token() -> None:
    _, errors = parse_pipeline("print 1")

    assert errors[0].token.type == TT.EOF


def test_argument_list_caps_silently() -> None:
    args = ", ".join(str(i) for i in range(MAX_ARGS + 45))
    program, errors = parse_pipeline(f"f({args});")

    assert errors == []
    arglist = program.children[0].children[0].children[1]
    assert len(arglist.children) == MAX_ARGS
    assert arglist.children[-1].value == float(MAX_ARGS - 1)


def test_parameter_list_caps_silently() -> None:
    params = ", ".join(f"p{i}" for i in range(MAX_ARGS + 1))
    program, errors = parse_pipeline(f"fun f({params}) {{}}")

    assert errors == []
    paramlist = program.children[0].children[1]
    assert [str(p.value) for p in paramlist.children] == [f"p{i}" for i in range(MAX_ARGS)]


def test_exactly_max_args_kept() -> None:
    args = ", ".join("x" for _ in range(MAX_ARGS))
    program = parse_ok(f"f({args});")

    assert len(program.children[0].children[0].children[1].children) == MAX_ARGS


def test_missing_eof_token_is_tolerated() -> None:
    tokens = tokenize("print 1; print 2;")[:-1]
    parser = Parser(tokens)
    program = parser.parse()

    assert sexpr(program) == "(program (printstmt 1) (printstmt 2))"
    assert parser.errors == []


def test_empty_token_stream() -> None:
    parser = Parser([])

    assert sexpr(parser.parse()) == "(program)"


def test_ast_leaves_carry_source_lines() -> None:
    program = parse_ok("var a = 1;\n\nprint a;")
    print_stmt = program.children[1]

    assert print_stmt.children[0].line == 3


def test_fragment_rejects_trailing_tokens() -> None:
    with pytest.raises(UnexpectedTokenError):
        parse_expr_fragment("1 2")

    with pytest.raises(UnexpectedEndError):
        parse_expr_fragment("1 +")


def test_recovery_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="lox_ref.parser_rd"):
        parse_pipeline("1 = 2; print 3;")

    assert "parse error" in caplog.text
    assert "resynchronized" in caplog.text


def test_parse_source_skips_bad_statements() -> None:
    program = parse_source("print 1;\n1 = 2;\nprint 3;")

    assert sexpr(program) == "(program (printstmt 1) (printstmt 3))"
