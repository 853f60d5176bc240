"""JSON serialization/deserialization for the UWSC AST.

Converts between AST dataclasses and plain dict/list structures suitable
for JSON encoding. Each node becomes ``{"node": <class name>, <field>: ...}``
and each token a ``[kind, literal, line, column]`` list, which is enough
for a full round-trip.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Type

from . import ast
from .tokens import Token

NODE_TYPES: Dict[str, Type[Any]] = {
    cls.__name__: cls
    for cls in (
        ast.Program,
        ast.Identifier, ast.IntegerLiteral, ast.StringLiteral, ast.BooleanLiteral,
        ast.PrefixExpression, ast.InfixExpression, ast.AssignmentExpression,
        ast.EmptyArgument, ast.CallExpression, ast.ArrayLiteral, ast.IndexExpression,
        ast.ExpressionStatement, ast.DimStatement, ast.ConstStatement,
        ast.HashTableStatement, ast.BlockStatement, ast.IfStatement, ast.IfbStatement,
        ast.FunctionStatement, ast.ResultStatement, ast.ForToStepStatement,
        ast.ForInStatement, ast.ContinueStatement, ast.BreakStatement,
    )
}


def ast_to_obj(node: Any) -> Any:
    if node is None or isinstance(node, (int, str, bool)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]
    if isinstance(node, Token):
        return [node.type, node.literal, node.line, node.column]
    name = type(node).__name__
    if is_dataclass(node) and name in NODE_TYPES:
        obj: Dict[str, Any] = {'node': name}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f'Unsupported AST node for serialization: {name}')


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (int, str, bool)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(x) for x in obj]
    if not isinstance(obj, dict) or obj.get('node') not in NODE_TYPES:
        raise ValueError(f'Unknown AST object: {obj!r}')
    cls = NODE_TYPES[obj['node']]
    kwargs = {}
    for f in fields(cls):
        value = obj.get(f.name)
        if f.name == 'token':
            kwargs[f.name] = Token(*value)
        else:
            kwargs[f.name] = ast_from_obj(value)
    return cls(**kwargs)
