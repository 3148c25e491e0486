"""prompt_toolkit lexer for live Lox syntax highlighting in the REPL."""

from __future__ import annotations

import re
from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as LoxScanner, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

_KEYWORDS = {
    TT.AND, TT.CLASS, TT.ELSE, TT.FOR, TT.FUN, TT.IF, TT.OR,
    TT.PRINT, TT.RETURN, TT.SUPER, TT.THIS, TT.VAR, TT.WHILE,
}

_OPERATORS = {
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.BANG, TT.NEQ, TT.ASSIGN,
    TT.EQ, TT.GT, TT.GTE, TT.LT, TT.LTE,
}

_PUNCTUATION = {TT.LPAR, TT.RPAR, TT.LBRACE, TT.RBRACE, TT.COMMA, TT.DOT, TT.SEMI}

_NUMBER_RE = re.compile(r"\d+(\.\d+)?")


def _group_for(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    t = tok.type

    if t in _KEYWORDS:
        return "keyword"
    if t in (TT.TRUE, TT.FALSE):
        return "boolean"
    if t == TT.NIL:
        return "constant"
    if t == TT.NUMBER:
        return "number"
    if t == TT.STRING:
        return "string"
    if t == TT.IDENT:
        # callee position or the name right after `fun`
        nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
        prev = tokens[idx - 1] if idx > 0 else None
        if (nxt is not None and nxt.type == TT.LPAR) or (prev is not None and prev.type == TT.FUN):
            return "function"
        return "identifier"
    if t in _OPERATORS:
        return "operator"
    if t in _PUNCTUATION:
        return "punctuation"

    return ""


def _token_end(text: str, tok: Tok) -> int:
    """Offset one past the last character of `tok` in `text`."""
    if tok.type == TT.STRING:
        return tok.offset + len(tok.value) + 2
    if tok.type == TT.NUMBER:
        m = _NUMBER_RE.match(text, tok.offset)
        return m.end() if m else tok.offset + 1

    return tok.offset + len(str(tok.value))


def _gap_fragments(gap: str) -> StyleAndTextTuples:
    idx = gap.find("//")
    if idx < 0:
        return [("", gap)]

    parts: StyleAndTextTuples = []
    if idx > 0:
        parts.append(("", gap[:idx]))
    parts.append((GROUP_STYLE["comment"], gap[idx:]))
    return parts


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = LoxScanner(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF:
            break

        if tok.offset > pos:
            result.extend(_gap_fragments(text[pos:tok.offset]))

        end = _token_end(text, tok)
        style = GROUP_STYLE.get(_group_for(tokens, i), "")
        result.append((style, text[tok.offset:end]))
        pos = end

    # Trailing whitespace or comment.
    if pos < len(text):
        result.extend(_gap_fragments(text[pos:]))

    return result if result else [("", text)]


class LoxLexer(Lexer):
    """prompt_toolkit Lexer that highlights Lox source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
