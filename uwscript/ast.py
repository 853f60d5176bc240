"""Abstract Syntax Tree (AST) definitions for the UWSC dialect.

The parser builds these nodes and the interpreter walks them. Every node
keeps the token it was created from, and ``str(node)`` renders a
canonical source-like form. Runtime diagnostics quote that form, e.g.
``array has wrong size: [1, (2 * 2), (3 + 3)]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from textwrap import indent
from typing import List, Optional, Union

from .tokens import Token


@dataclass
class Node:
    """Base class for all AST nodes."""
    token: Token


class Statement(Node):
    pass


class Expression(Node):
    pass


def _body(block: 'BlockStatement') -> str:
    text = str(block)
    return indent(text, '    ') + '\n' if text else ''


@dataclass
class Program:
    statements: List[Statement] = field(default_factory=list)

    def __str__(self) -> str:
        return '\n'.join(str(s) for s in self.statements)


# Expressions

@dataclass
class Identifier(Expression):
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class IntegerLiteral(Expression):
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class StringLiteral(Expression):
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'


@dataclass
class BooleanLiteral(Expression):
    value: bool

    def __str__(self) -> str:
        return 'TRUE' if self.value else 'FALSE'


@dataclass
class PrefixExpression(Expression):
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f'({self.operator}{self.right})'


@dataclass
class InfixExpression(Expression):
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f'({self.left} {self.operator} {self.right})'


@dataclass
class AssignmentExpression(Expression):
    left: Expression  # Identifier or IndexExpression
    value: Expression

    def __str__(self) -> str:
        return f'{self.left} = {self.value}'


@dataclass
class EmptyArgument(Expression):
    """An omitted positional argument, as in ``CALCARRAY(a, CALC_ADD, , 2)``."""

    def __str__(self) -> str:
        return ''


@dataclass
class CallExpression(Expression):
    function: Expression
    arguments: List[Expression] = field(default_factory=list)

    def __str__(self) -> str:
        args = ', '.join(str(a) for a in self.arguments)
        return f'{self.function}({args})'


@dataclass
class ArrayLiteral(Expression):
    size: Optional[Expression] = None
    elements: List[Expression] = field(default_factory=list)

    def __str__(self) -> str:
        if self.elements:
            return '[' + ', '.join(str(e) for e in self.elements) + ']'
        if self.size is not None:
            return f'[{self.size}]'
        return '[]'


@dataclass
class IndexExpression(Expression):
    left: Expression
    index: Expression
    option: Optional[Expression] = None

    def __str__(self) -> str:
        if self.option is not None:
            return f'({self.left}[{self.index}, {self.option}])'
        return f'({self.left}[{self.index}])'


# Statements

@dataclass
class ExpressionStatement(Statement):
    expression: Optional[Expression]

    def __str__(self) -> str:
        return str(self.expression) if self.expression is not None else ''


@dataclass
class DimStatement(Statement):
    name: Identifier
    value: Optional[Expression] = None
    is_public: bool = False

    def __str__(self) -> str:
        keyword = 'PUBLIC' if self.is_public else 'DIM'
        return f'{keyword} {_declaration(self.name, self.value)}'


@dataclass
class ConstStatement(Statement):
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f'CONST {_declaration(self.name, self.value)}'


def _declaration(name: Identifier, value: Optional[Expression]) -> str:
    if value is None:
        return str(name)
    if isinstance(value, ArrayLiteral):
        size = '' if value.size is None else str(value.size)
        text = f'{name}[{size}]'
        if value.elements:
            text += ' = ' + ', '.join(str(e) for e in value.elements)
        return text
    return f'{name} = {value}'


@dataclass
class HashTableStatement(Statement):
    name: Identifier
    value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.value is None:
            return f'HASHTBL {self.name}'
        return f'HASHTBL {self.name} = {self.value}'


@dataclass
class BlockStatement(Statement):
    statements: List[Statement] = field(default_factory=list)

    def __str__(self) -> str:
        return '\n'.join(str(s) for s in self.statements)


@dataclass
class IfStatement(Statement):
    """Single-line ``IF cond THEN stmt [ELSE stmt]``."""
    condition: Expression
    consequence: Statement
    alternative: Optional[Statement] = None

    def __str__(self) -> str:
        text = f'IF {self.condition} THEN {self.consequence}'
        if self.alternative is not None:
            text += f' ELSE {self.alternative}'
        return text


@dataclass
class IfbStatement(Statement):
    """Block form ``IFB … ELSEIF … ELSE … ENDIF``.

    An ``ELSEIF`` chain is stored as a nested IfbStatement in ``alternative``.
    """
    condition: Expression
    consequence: BlockStatement
    alternative: Optional[Union[BlockStatement, 'IfbStatement']] = None

    def __str__(self) -> str:
        return f'IFB {self.condition} THEN\n' + self._tail()

    def _tail(self) -> str:
        text = _body(self.consequence)
        if isinstance(self.alternative, IfbStatement):
            text += f'ELSEIF {self.alternative.condition} THEN\n' + self.alternative._tail()
            return text
        if self.alternative is not None:
            text += 'ELSE\n' + _body(self.alternative)
        return text + 'ENDIF'


@dataclass
class FunctionStatement(Statement):
    name: Identifier
    parameters: List[Identifier]
    body: BlockStatement
    is_procedure: bool = False

    def __str__(self) -> str:
        keyword = 'PROCEDURE' if self.is_procedure else 'FUNCTION'
        params = ', '.join(str(p) for p in self.parameters)
        return f'{keyword} {self.name}({params})\n' + _body(self.body) + 'FEND'


@dataclass
class ResultStatement(Statement):
    value: Expression

    def __str__(self) -> str:
        return f'RESULT = {self.value}'


@dataclass
class ForToStepStatement(Statement):
    loop_var: Identifier
    start: Expression
    end: Expression
    step: Optional[Expression]
    block: BlockStatement

    def __str__(self) -> str:
        head = f'FOR {self.loop_var} = {self.start} TO {self.end}'
        if self.step is not None:
            head += f' STEP {self.step}'
        return head + '\n' + _body(self.block) + 'NEXT'


@dataclass
class ForInStatement(Statement):
    loop_var: Identifier
    collection: Identifier
    block: BlockStatement

    def __str__(self) -> str:
        return f'FOR {self.loop_var} IN {self.collection}\n' + _body(self.block) + 'NEXT'


@dataclass
class ContinueStatement(Statement):
    def __str__(self) -> str:
        return 'CONTINUE'


@dataclass
class BreakStatement(Statement):
    def __str__(self) -> str:
        return 'BREAK'
