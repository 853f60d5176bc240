"""UWSC script interpreter: lexer, Pratt parser and tree-walking evaluator."""

from .environment import Environment
from .errors import ParseError, UwscError
from .interpreter import Interpreter, evaluate, run_program
from .parser import parse, parse_program

__all__ = [
    'Environment',
    'Interpreter',
    'ParseError',
    'UwscError',
    'evaluate',
    'parse',
    'parse_program',
    'run_program',
]
