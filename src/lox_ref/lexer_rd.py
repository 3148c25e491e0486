"""
Lexer for Lox - Recursive Descent Parser

Tokenizes Lox source code into a stream of tokens.

Features:
- Single-pass tokenization
- Position tracking (line, column, offset)
- `//` line comments
- Numeric and string literal payloads
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    Lox lexer.

    Whitespace and comments are dropped; every other lexeme becomes a Tok.
    The stream always ends with a single EOF token.
    """

    # Keyword mapping
    KEYWORDS = {
        'and': TT.AND,
        'class': TT.CLASS,
        'else': TT.ELSE,
        'false': TT.FALSE,
        'for': TT.FOR,
        'fun': TT.FUN,
        'if': TT.IF,
        'nil': TT.NIL,
        'or': TT.OR,
        'print': TT.PRINT,
        'return': TT.RETURN,
        'super': TT.SUPER,
        'this': TT.THIS,
        'true': TT.TRUE,
        'var': TT.VAR,
        'while': TT.WHILE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.BANG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (';', TT.SEMI),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

        # Start of the lexeme being scanned
        self.start_pos = 0
        self.start_line = 1
        self.start_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.mark_start()
        self.emit(TT.EOF, None)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        if self.skip_whitespace():
            return

        # Comments
        if self.peek() == '/' and self.peek(1) == '/':
            self.skip_comment()
            return

        self.mark_start()

        if self.peek() == '"':
            self.scan_string()
            return

        if self.is_digit(self.peek()):
            self.scan_number()
            return

        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        self.scan_operator()

    def scan_string(self):
        """Scan string literal: "..." (may span lines, no escapes)"""
        self.advance()  # Opening quote
        value = ''

        while self.pos < len(self.source) and self.peek() != '"':
            value += self.advance()

        if self.pos >= len(self.source):
            raise LexError("Unterminated string", self.start_line, self.start_column)

        self.advance()  # Closing quote
        self.emit(TT.STRING, value)

    def scan_number(self):
        """Scan number literal"""
        text = ''

        # Integer part
        while self.is_digit(self.peek()):
            text += self.advance()

        # Decimal part
        if self.peek() == '.' and self.is_digit(self.peek(1)):
            text += self.advance()  # .
            while self.is_digit(self.peek()):
                text += self.advance()

        self.emit(TT.NUMBER, float(text))

    def scan_identifier(self):
        """Scan identifier or keyword"""
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    @staticmethod
    def is_digit(ch: str) -> bool:
        """ASCII digits only; `str.isdigit` also accepts superscripts"""
        return '0' <= ch <= '9'

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace including newlines, return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\r', '\n'):
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\0'):
            self.advance()

    def mark_start(self):
        self.start_pos = self.pos
        self.start_line = self.line
        self.start_column = self.column

    def emit(self, token_type: TT, value):
        """Emit a token positioned at the start of its lexeme"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.start_line,
            column=self.start_column,
            offset=self.start_pos,
        )
        self.tokens.append(tok)


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()
