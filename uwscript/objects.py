"""Runtime values for the UWSC interpreter.

Integer, String and Boolean compare by value. Array, HashTable and Function
compare by identity: several bindings may hold the same instance and
mutation through one of them is visible through all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .ast import BlockStatement, Expression, Identifier

INTEGER_OBJ = 'INTEGER'
STRING_OBJ = 'STRING'
BOOLEAN_OBJ = 'BOOLEAN'
NULL_OBJ = 'NULL'
EMPTY_OBJ = 'EMPTY'
ARRAY_OBJ = 'ARRAY'
HASH_OBJ = 'HASHTBL'
FUNCTION_OBJ = 'FUNCTION'
ERROR_OBJ = 'ERROR'
BUILTIN_OBJ = 'BUILTIN_FUNCTION'
BUILTIN_CONSTANT_OBJ = 'BUILTIN_CONSTANT'
RESULT_VALUE_OBJ = 'RESULT_VALUE'

FNV_OFFSET_BASIS = 0xcbf29ce484222325
FNV_PRIME = 0x100000001b3
UINT64_MASK = 0xFFFFFFFFFFFFFFFF


def fnv1a64(data: bytes) -> int:
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & UINT64_MASK
    return h


@dataclass(frozen=True, order=True)
class HashKey:
    type: str
    value: int


class Object:
    """Base class for every runtime value."""
    obj_type = ''

    def inspect(self) -> str:
        raise NotImplementedError


@dataclass
class Integer(Object):
    value: int
    obj_type = INTEGER_OBJ

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(INTEGER_OBJ, self.value & UINT64_MASK)


@dataclass
class String(Object):
    value: str
    obj_type = STRING_OBJ

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(STRING_OBJ, fnv1a64(self.value.encode('utf-8')))


@dataclass
class Boolean(Object):
    value: bool
    obj_type = BOOLEAN_OBJ

    def inspect(self) -> str:
        return 'True' if self.value else 'False'

    def hash_key(self) -> HashKey:
        return HashKey(BOOLEAN_OBJ, 1 if self.value else 0)


@dataclass
class Null(Object):
    obj_type = NULL_OBJ

    def inspect(self) -> str:
        return 'NULL'


@dataclass
class Empty(Object):
    obj_type = EMPTY_OBJ

    def inspect(self) -> str:
        return ''


def truncating_divmod(a: int, b: int) -> Tuple[int, int]:
    """Quotient rounded toward zero and the matching remainder."""
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q, a - b * q


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()
EMPTY = Empty()


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


@dataclass(eq=False)
class Array(Object):
    elements: List[Object] = field(default_factory=list)
    obj_type = ARRAY_OBJ

    def inspect(self) -> str:
        return '[' + ', '.join(e.inspect() for e in self.elements) + ']'


@dataclass
class HashPair:
    key: Object
    value: Object


@dataclass(eq=False)
class HashTable(Object):
    """Hash table keyed by Integer, String or Boolean values.

    String keys are case-folded unless ``is_case_sensitive`` is set. Pairs
    keep their insertion order; positional lookups follow it when the table
    is sorted and follow hash-key order otherwise.
    """
    pairs: Dict[HashKey, HashPair] = field(default_factory=dict)
    is_sorted: bool = False
    is_case_sensitive: bool = False
    obj_type = HASH_OBJ

    def key_for(self, key: Object) -> Optional[HashKey]:
        """Return the HashKey for ``key``, or None when it is not hashable."""
        if isinstance(key, String) and not self.is_case_sensitive:
            return String(key.value.upper()).hash_key()
        if isinstance(key, (Integer, String, Boolean)):
            return key.hash_key()
        return None

    def get(self, hash_key: HashKey) -> Optional[HashPair]:
        return self.pairs.get(hash_key)

    def put(self, hash_key: HashKey, key: Object, value: Object):
        pair = self.pairs.get(hash_key)
        if pair is None:
            self.pairs[hash_key] = HashPair(key, value)
        else:
            pair.value = value

    def remove(self, hash_key: HashKey) -> bool:
        return self.pairs.pop(hash_key, None) is not None

    def get_pair_by_index(self, index: int) -> Optional[HashPair]:
        if index < 0 or index >= len(self.pairs):
            return None
        if self.is_sorted:
            return list(self.pairs.values())[index]
        return self.pairs[sorted(self.pairs)[index]]

    def inspect(self) -> str:
        items = ', '.join(f'{p.key.inspect()}: {p.value.inspect()}' for p in self.pairs.values())
        return '{' + items + '}'


@dataclass(eq=False)
class Function(Object):
    name: str
    parameters: List[Identifier]
    body: BlockStatement
    env: Any  # Environment; typed loosely to avoid an import cycle
    is_procedure: bool = False
    obj_type = FUNCTION_OBJ

    def inspect(self) -> str:
        keyword = 'PROCEDURE' if self.is_procedure else 'FUNCTION'
        params = ', '.join(str(p) for p in self.parameters)
        return f'{keyword} {self.name}({params})'


@dataclass
class Error(Object):
    message: str
    obj_type = ERROR_OBJ

    def inspect(self) -> str:
        return f'ERROR: {self.message}'


@dataclass
class ResultValue(Object):
    """Marks that a RESULT statement ran; unwrapped by the function call."""
    value: Object
    obj_type = RESULT_VALUE_OBJ

    def inspect(self) -> str:
        return self.value.inspect()


class ConstantTag(Enum):
    CALC_ADD = 'CALC_ADD'
    CALC_MIN = 'CALC_MIN'
    CALC_MAX = 'CALC_MAX'
    CALC_AVR = 'CALC_AVR'
    HASH_CASECARE = 'HASH_CASECARE'
    HASH_SORT = 'HASH_SORT'
    HASH_EXISTS = 'HASH_EXISTS'
    HASH_REMOVE = 'HASH_REMOVE'
    HASH_KEY = 'HASH_KEY'
    HASH_VAL = 'HASH_VAL'
    HASH_REMOVEALL = 'HASH_REMOVEALL'


@dataclass
class BuiltinConstant(Object):
    tag: ConstantTag
    value: Object
    obj_type = BUILTIN_CONSTANT_OBJ

    def inspect(self) -> str:
        return self.value.inspect()


def is_constant(obj: Object, tag: ConstantTag) -> bool:
    return isinstance(obj, BuiltinConstant) and obj.tag is tag


@dataclass
class BuiltinArgument:
    """A call argument: the expression as written and its evaluated value."""
    expression: Expression
    value: Object


@dataclass
class DirectResult:
    value: Object


@dataclass
class ReferenceResult:
    """Write ``value`` back into ``expression``; the call evaluates to ``result``."""
    expression: Expression
    value: Object
    result: Object


BuiltinOutcome = Union[DirectResult, ReferenceResult]


@dataclass(eq=False)
class BuiltinFunction(Object):
    name: str
    min_args: int
    max_args: Optional[int]  # None for variadic
    fn: Callable[[List[BuiltinArgument]], BuiltinOutcome]
    obj_type = BUILTIN_OBJ

    def inspect(self) -> str:
        return f'<builtin {self.name}>'


def type_name(obj: Object) -> str:
    return obj.obj_type
