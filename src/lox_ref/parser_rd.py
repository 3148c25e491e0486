"""
Recursive Descent Parser for Lox

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent, one left-associative loop per binary precedence level
- AST: lark Tree/Token nodes, one tree label per grammar production

Grammar:

    program     -> declaration* EOF
    declaration -> varDecl | funDecl | statement
    varDecl     -> "var" IDENT ( "=" expression )? ";"
    funDecl     -> "fun" IDENT "(" params? ")" block
    statement   -> exprStmt | printStmt | ifStmt | whileStmt | forStmt
                 | returnStmt | block
    forStmt     -> "for" "(" ( varDecl | exprStmt | ";" ) expression? ";"
                   expression? ")" statement
    expression  -> assignment
    assignment  -> IDENT "=" assignment | logic_or
    logic_or    -> logic_and ( "or" logic_and )*
    logic_and   -> equality ( "and" equality )*
    equality    -> comparison ( ( "!=" | "==" ) comparison )*
    comparison  -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
    term        -> factor ( ( "-" | "+" ) factor )*
    factor      -> unary ( ( "/" | "*" ) unary )*
    unary       -> ( "!" | "-" ) unary | call
    call        -> IDENT "(" arguments? ")" | primary
    primary     -> NUMBER | STRING | "true" | "false" | "nil"
                 | IDENT | "(" expression ")"
"""

import logging
from typing import Optional, List, Tuple

from lark import Tree, Token

from .token_types import TT, Tok
from .tree import Node, ident_name, make_token

logger = logging.getLogger(__name__)

# Argument and parameter lists keep at most this many entries.
MAX_ARGS = 255

# Tokens that can begin a statement; recovery stops in front of them.
STATEMENT_STARTS = frozenset({
    TT.CLASS, TT.FOR, TT.FUN, TT.IF, TT.PRINT, TT.VAR, TT.RETURN, TT.WHILE,
})

# ============================================================================
# Parse errors
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

class UnexpectedEndError(ParseError):
    """Input ended where a token was required."""

class MissingTokenError(ParseError):
    """A required delimiter or keyword was not found."""
    def __init__(self, expected: TT, token: Optional[Tok] = None, message: Optional[str] = None):
        self.expected = expected
        got = token.type.name if token is not None else "nothing"
        super().__init__(message or f"Expected {expected.name}, got {got}", token)

class InvalidTargetError(ParseError):
    """An expression has the wrong syntactic shape for its context."""

class UnexpectedTokenError(ParseError):
    """A token that cannot begin any primary expression."""

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser for Lox.

    Expression precedence (lowest to highest):
    1. assignment (=, right associative)
    2. or
    3. and
    4. equality (==, !=)
    5. comparison (<, <=, >, >=)
    6. term (+, -)
    7. factor (*, /)
    8. unary (!, -)
    9. call
    10. primary (literals, identifiers, parens)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = self._token_at(0)
        self.previous = self.current
        self.errors: List[ParseError] = []

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def _token_at(self, idx: int) -> Tok:
        if idx < len(self.tokens):
            return self.tokens[idx]

        last = self.tokens[-1] if self.tokens else None
        if last is None:
            return Tok(TT.EOF, None, 1, 1, 0)
        return Tok(TT.EOF, None, last.line, last.column, last.offset)

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        return self._token_at(self.pos + offset)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
            self.current = self._token_at(self.pos)
        self.previous = prev
        return prev

    def at_end(self) -> bool:
        return self.current.type == TT.EOF

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if self.check(token_type):
            return self.advance()

        if self.at_end():
            raise UnexpectedEndError(message or f"Expected {token_type.name} before end of input", self.current)
        raise MissingTokenError(token_type, self.current, message)

    def _leaf(self, type_: str, tok: Tok, value: object = None) -> Token:
        return make_token(type_, tok.value if value is None else value,
                          line=tok.line, column=tok.column, start_pos=tok.offset)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program, recovering from errors statement by statement"""
        stmts: List[Node] = []

        while not self.at_end():
            stmt = self.declaration()
            if stmt is not None:
                stmts.append(stmt)

        return Tree('program', stmts)

    def declaration(self) -> Optional[Node]:
        """Parse one declaration; on failure record the error and resynchronize"""
        start = self.pos

        try:
            if self.match(TT.VAR):
                return self.parse_var_decl()
            if self.match(TT.FUN):
                return self.parse_fun_decl()
            return self.parse_statement()
        except ParseError as err:
            self.errors.append(err)
            logger.debug("parse error: %s", err)
            self.synchronize(start)
            return None

    def synchronize(self, start: int) -> None:
        """
        Panic mode: discard tokens up to a statement boundary.

        A `;` is consumed; a statement keyword is left for the next
        declaration. When the error sits on the declaration's first token
        it is dropped first so the parser always moves forward, and a
        dropped `;` ends recovery on its own.
        """
        if self.pos == start:
            tok = self.advance()
            if tok.type == TT.SEMI:
                logger.debug("dropped stray %r", tok)
                return

        while not self.at_end():
            if self.match(TT.SEMI):
                break
            if self.check(*STATEMENT_STARTS):
                break
            self.advance()

        logger.debug("resynchronized at %r", self.current)

    # ========================================================================
    # Declarations
    # ========================================================================

    def parse_var_decl(self) -> Tree:
        """Parse variable declaration: var name [= expr];"""
        name = self.expect(TT.IDENT, "Expected variable name")

        if self.match(TT.ASSIGN):
            init = self.parse_expr()
        else:
            init = self._leaf('NIL', name, 'nil')

        self.expect(TT.SEMI, "Expected ';' after variable declaration")
        return Tree('vardecl', [self._leaf('IDENT', name), init])

    def parse_fun_decl(self) -> Tree:
        """Parse function declaration: fun name(params) { body }"""
        name = self.expect(TT.IDENT, "Expected function name")
        self.expect(TT.LPAR, "Expected '(' after function name")
        params = self.parse_param_list()
        self.expect(TT.RPAR, "Expected ')' after parameters")
        self.expect(TT.LBRACE, "Expected '{' before function body")
        body = self.parse_block()

        return Tree('fndecl', [self._leaf('IDENT', name), params, body])

    def parse_param_list(self) -> Tree:
        """Parse function parameter list, keeping at most MAX_ARGS names"""
        params: List[Token] = []

        if self.check(TT.RPAR):
            return Tree('paramlist', params)

        while True:
            param = self.expect(TT.IDENT, "Expected parameter name")
            if len(params) < MAX_ARGS:
                params.append(self._leaf('IDENT', param))

            if not self.match(TT.COMMA):
                break

        return Tree('paramlist', params)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Node:
        """
        Parse a single statement.

        Statements include:
        - Control flow (if, while, for)
        - print and return
        - Blocks
        - Expression statements
        """
        if self.match(TT.PRINT):
            return self.parse_print_stmt()
        if self.match(TT.IF):
            return self.parse_if_stmt()
        if self.match(TT.WHILE):
            return self.parse_while_stmt()
        if self.match(TT.FOR):
            return self.parse_for_stmt()
        if self.check(TT.RETURN):
            return self.parse_return_stmt()
        if self.match(TT.LBRACE):
            return self.parse_block()

        return self.parse_expr_stmt()

    def parse_print_stmt(self) -> Tree:
        value = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after value")
        return Tree('printstmt', [value])

    def parse_expr_stmt(self) -> Tree:
        expr = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after expression")
        return Tree('exprstmt', [expr])

    def parse_block(self) -> Tree:
        """Parse the declarations of a block whose '{' was already consumed"""
        stmts: List[Node] = []

        while not self.check(TT.RBRACE) and not self.at_end():
            stmt = self.declaration()
            if stmt is not None:
                stmts.append(stmt)

        self.expect(TT.RBRACE, "Expected '}' after block")
        return Tree('block', stmts)

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if (expr) stmt [else stmt]
        """
        self.expect(TT.LPAR, "Expected '(' after 'if'")
        cond = self.parse_expr()
        self.expect(TT.RPAR, "Expected ')' after if condition")

        then_branch = self.parse_statement()
        if self.match(TT.ELSE):
            else_branch = self.parse_statement()
            return Tree('ifstmt', [cond, then_branch, else_branch])

        return Tree('ifstmt', [cond, then_branch])

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while (expr) stmt"""
        self.expect(TT.LPAR, "Expected '(' after 'while'")
        cond = self.parse_expr()
        self.expect(TT.RPAR, "Expected ')' after condition")
        body = self.parse_statement()
        return Tree('whilestmt', [cond, body])

    def parse_for_stmt(self) -> Tree:
        """
        Parse for loop and desugar it:
        for (init; cond; incr) body  =>  { init; while (cond) { body; incr; } }
        """
        for_tok = self.previous
        self.expect(TT.LPAR, "Expected '(' after 'for'")

        init: Optional[Node]
        if self.match(TT.SEMI):
            init = None
        elif self.match(TT.VAR):
            init = self.parse_var_decl()
        else:
            init = self.parse_expr_stmt()

        cond: Node
        if self.check(TT.SEMI):
            cond = self._leaf('TRUE', for_tok, 'true')
        else:
            cond = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after loop condition")

        incr: Optional[Node] = None
        if not self.check(TT.RPAR):
            incr = self.parse_expr()
        self.expect(TT.RPAR, "Expected ')' after for clauses")

        body = self.parse_statement()

        loop_body: List[Node] = [body]
        if incr is not None:
            loop_body.append(Tree('exprstmt', [incr]))
        loop = Tree('whilestmt', [cond, Tree('block', loop_body)])

        outer: List[Node] = [init, loop] if init is not None else [loop]
        return Tree('block', outer)

    def parse_return_stmt(self) -> Tree:
        """Parse return statement: return [expr];"""
        self.expect(TT.RETURN)

        if self.match(TT.SEMI):
            return Tree('returnstmt', [])

        value = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after return value")
        return Tree('returnstmt', [value])

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Node:
        return self.parse_assignment()

    def parse_assignment(self) -> Node:
        """Parse assignment: IDENT = assignment (right associative)"""
        target = self.parse_or_expr()

        if self.check(TT.ASSIGN):
            eq_tok = self.advance()
            value = self.parse_assignment()

            if ident_name(target) is None:
                raise InvalidTargetError("Invalid assignment target", eq_tok)
            return Tree('assign', [target, value])

        return target

    def parse_or_expr(self) -> Node:
        """Parse logical OR: expr or expr"""
        left = self.parse_and_expr()

        while self.match(TT.OR):
            right = self.parse_and_expr()
            left = Tree('or', [left, right])

        return left

    def parse_and_expr(self) -> Node:
        """Parse logical AND: expr and expr"""
        left = self.parse_equality_expr()

        while self.match(TT.AND):
            right = self.parse_equality_expr()
            left = Tree('and', [left, right])

        return left

    def _parse_binary(self, label: str, operators: tuple, operand) -> Node:
        """Left-associative loop shared by every binary precedence level"""
        left = operand()

        while self.check(*operators):
            op = self.advance()
            right = operand()
            left = Tree(label, [left, self._leaf(op.type.name, op), right])

        return left

    def parse_equality_expr(self) -> Node:
        return self._parse_binary('equalityexpr', (TT.EQ, TT.NEQ), self.parse_compare_expr)

    def parse_compare_expr(self) -> Node:
        return self._parse_binary('compareexpr', (TT.GT, TT.GTE, TT.LT, TT.LTE), self.parse_add_expr)

    def parse_add_expr(self) -> Node:
        return self._parse_binary('addexpr', (TT.PLUS, TT.MINUS), self.parse_mul_expr)

    def parse_mul_expr(self) -> Node:
        return self._parse_binary('mulexpr', (TT.STAR, TT.SLASH), self.parse_unary_expr)

    def parse_unary_expr(self) -> Node:
        """Parse unary operators: -expr, !expr"""
        if self.check(TT.BANG, TT.MINUS):
            op = self.advance()
            operand = self.parse_unary_expr()
            return Tree('unary', [self._leaf(op.type.name, op), operand])

        return self.parse_call_expr()

    def parse_call_expr(self) -> Node:
        """Parse call: IDENT(args)"""
        if self.check(TT.IDENT) and self.peek(1).type == TT.LPAR:
            name = self.advance()
            self.advance()  # (
            args = self.parse_arg_list()
            self.expect(TT.RPAR, "Expected ')' after arguments")
            return Tree('call', [self._leaf('IDENT', name), args])

        return self.parse_primary_expr()

    def parse_arg_list(self) -> Tree:
        """Parse call arguments, silently dropping entries past MAX_ARGS"""
        args: List[Node] = []

        if self.check(TT.RPAR):
            return Tree('arglist', args)

        while True:
            arg = self.parse_expr()
            if len(args) < MAX_ARGS:
                args.append(arg)

            if not self.match(TT.COMMA):
                break

        return Tree('arglist', args)

    def parse_primary_expr(self) -> Node:
        """
        Parse primary expressions:
        - Literals (numbers, strings, true, false, nil)
        - Identifiers
        - Parenthesized expressions
        """
        tok = self.current

        if self.match(TT.NUMBER):
            return self._leaf('NUMBER', tok)
        if self.match(TT.STRING):
            return self._leaf('STRING', tok)
        if self.match(TT.TRUE):
            return self._leaf('TRUE', tok)
        if self.match(TT.FALSE):
            return self._leaf('FALSE', tok)
        if self.match(TT.NIL):
            return self._leaf('NIL', tok)
        if self.match(TT.IDENT):
            return self._leaf('IDENT', tok)

        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR, "Expected ')' after expression")
            return Tree('group', [expr])

        if self.at_end():
            raise UnexpectedEndError("Expected expression before end of input", tok)
        raise UnexpectedTokenError(f"Unexpected token in expression: {tok.type.name}", tok)

# ============================================================================
# Entry points
# ============================================================================

def parse_tokens(tokens: List[Tok]) -> Tuple[Tree, List[ParseError]]:
    """Parse a token stream, returning the program and the recovered errors."""
    parser = Parser(tokens)
    program = parser.parse()
    return program, parser.errors


def parse_source(source: str) -> Tree:
    """
    Parse Lox source code to AST.

    Statements that fail to parse are skipped; use `parse_tokens` to
    inspect the collected errors.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse()


def parse_expr_fragment(source: str) -> Node:
    """
    Parse a standalone expression fragment. Unlike `parse_source` this
    raises on the first error instead of recovering.
    """
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    parser = Parser(tokens)
    expr = parser.parse_expr()

    if not parser.at_end():
        raise UnexpectedTokenError("Unexpected tokens after expression fragment", parser.current)
    return expr
