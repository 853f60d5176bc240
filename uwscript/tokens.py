"""Token kinds and the keyword table for the UWSC dialect.

Operator and delimiter kinds are spelled as the symbol itself so parse
errors read naturally ("expected next token to be ), got EOL instead").
"""

from __future__ import annotations

from dataclasses import dataclass

ILLEGAL = 'ILLEGAL'
EOF = 'EOF'
EOL = 'EOL'

IDENT = 'IDENT'
INT = 'INT'
STRING = 'STRING'

ASSIGN = '='
EQUAL = '='
NOT_EQUAL = '<>'
LESS = '<'
LESS_EQUAL = '<='
GREATER = '>'
GREATER_EQUAL = '>='
PLUS = '+'
MINUS = '-'
ASTERISK = '*'
SLASH = '/'
BANG = '!'

COMMA = ','
LPAREN = '('
RPAREN = ')'
LBRACKET = '['
RBRACKET = ']'
LBRACE = '{'
RBRACE = '}'

DIM = 'DIM'
PUBLIC = 'PUBLIC'
CONST = 'CONST'
HASHTBL = 'HASHTBL'
TRUE = 'TRUE'
FALSE = 'FALSE'
MOD = 'MOD'
IF = 'IF'
IFB = 'IFB'
THEN = 'THEN'
ELSE = 'ELSE'
ELSEIF = 'ELSEIF'
ENDIF = 'ENDIF'
FUNCTION = 'FUNCTION'
PROCEDURE = 'PROCEDURE'
FEND = 'FEND'
RESULT = 'RESULT'
FOR = 'FOR'
TO = 'TO'
STEP = 'STEP'
IN = 'IN'
NEXT = 'NEXT'
CONTINUE = 'CONTINUE'
BREAK = 'BREAK'

KEYWORDS = {
    name: name for name in (
        DIM, PUBLIC, CONST, HASHTBL, TRUE, FALSE, MOD,
        IF, IFB, THEN, ELSE, ELSEIF, ENDIF,
        FUNCTION, PROCEDURE, FEND, RESULT,
        FOR, TO, STEP, IN, NEXT, CONTINUE, BREAK,
    )
}

# Tokens that close a block without being consumed by the block parser.
BLOCK_END = frozenset({ELSE, ELSEIF, ENDIF, FEND, NEXT})


def lookup_ident(word: str) -> str:
    """Classify a word as a keyword kind (case-insensitive) or IDENT."""
    return KEYWORDS.get(word.upper(), IDENT)


@dataclass(frozen=True)
class Token:
    type: str
    literal: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return self.literal
