"""Lexer for UWSC source text.

The terminals are declared as a lark grammar and run through lark's basic
lexer with no parser attached. Lark settles longest-match and priority
questions ("<>" against "<", digits against words); this module maps the
resulting lark tokens onto the token kinds in :mod:`uwscript.tokens` and
exposes the pull-style ``next_token()`` interface the parser consumes.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from lark import Lark
from lark import Token as LarkToken

from . import tokens
from .tokens import Token, lookup_ident


TOKEN_GRAMMAR = r"""
    WORD: /[A-Za-z_][A-Za-z0-9_]*/
    INT: /[0-9]+/
    STRING: /"[^"\n]*"/
    EOL: /(\r?\n)+/

    NOT_EQUAL: "<>"
    LESS_EQUAL: "<="
    GREATER_EQUAL: ">="
    LESS: "<"
    GREATER: ">"
    EQUAL: "="
    PLUS: "+"
    MINUS: "-"
    ASTERISK: "*"
    SLASH: "/"
    BANG: "!"
    COMMA: ","
    LPAREN: "("
    RPAREN: ")"
    LBRACKET: "["
    RBRACKET: "]"
    LBRACE: "{"
    RBRACE: "}"

    // anything else becomes a single ILLEGAL token for the parser to report
    ILLEGAL.-1: /./

    COMMENT: /\/\/[^\n]*/
    BLANK: /[ \t\f]+/
    %ignore COMMENT
    %ignore BLANK
"""

TOKEN_LEXER = Lark(TOKEN_GRAMMAR, parser=None, lexer='basic')

# lark terminal name -> token kind
TERMINAL_KINDS = {
    'INT': tokens.INT,
    'EOL': tokens.EOL,
    'NOT_EQUAL': tokens.NOT_EQUAL,
    'LESS_EQUAL': tokens.LESS_EQUAL,
    'GREATER_EQUAL': tokens.GREATER_EQUAL,
    'LESS': tokens.LESS,
    'GREATER': tokens.GREATER,
    'EQUAL': tokens.EQUAL,
    'PLUS': tokens.PLUS,
    'MINUS': tokens.MINUS,
    'ASTERISK': tokens.ASTERISK,
    'SLASH': tokens.SLASH,
    'BANG': tokens.BANG,
    'COMMA': tokens.COMMA,
    'LPAREN': tokens.LPAREN,
    'RPAREN': tokens.RPAREN,
    'LBRACKET': tokens.LBRACKET,
    'RBRACKET': tokens.RBRACKET,
    'LBRACE': tokens.LBRACE,
    'RBRACE': tokens.RBRACE,
    'ILLEGAL': tokens.ILLEGAL,
}


class Lexer:
    """Pull-style tokenizer over a complete source string.

    Once the input is exhausted every further call to :meth:`next_token`
    returns the same EOF token.
    """

    def __init__(self, source: str):
        self.source = source
        self._stream: Iterator[LarkToken] = TOKEN_LEXER.lex(source)
        self._eof: Optional[Token] = None
        self._line = 1
        self._column = 1

    def next_token(self) -> Token:
        if self._eof is not None:
            return self._eof
        raw = next(self._stream, None)
        if raw is None:
            self._eof = Token(tokens.EOF, '', self._line, self._column)
            return self._eof
        if raw.end_line is not None:
            self._line, self._column = raw.end_line, raw.end_column
        return convert_token(raw)

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == tokens.EOF:
                return


def convert_token(raw: LarkToken) -> Token:
    text = str(raw)
    if raw.type == 'WORD':
        kind = lookup_ident(text)
    elif raw.type == 'STRING':
        kind = tokens.STRING
        text = text[1:-1]
    else:
        kind = TERMINAL_KINDS[raw.type]
        if kind == tokens.EOL:
            text = '\n'
    return Token(kind, text, raw.line or 0, raw.column or 0)


def tokenize(source: str) -> List[Token]:
    """Return every token of ``source``, ending with a single EOF token."""
    return list(Lexer(source))
