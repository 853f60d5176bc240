"""Tree-walking interpreter for the UWSC dialect.

``Interpreter.eval_node`` is the single dispatch point over AST node
types. Runtime failures are raised as :class:`UwscError` wherever they are
detected and turned back into an ``Error`` value at :meth:`Interpreter.run`,
so callers always receive a value: the program's result, ``None`` when the
last statement produced nothing, or an ``Error``.

Arrays and hash tables are shared by reference. Index assignment and the
in-place builtins mutate the instance every binding points at.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .ast import (
    ArrayLiteral, AssignmentExpression, BlockStatement, BooleanLiteral, BreakStatement,
    CallExpression, ConstStatement, ContinueStatement, DimStatement, EmptyArgument,
    Expression, ExpressionStatement, ForInStatement, ForToStepStatement, FunctionStatement,
    HashTableStatement, Identifier, IfbStatement, IfStatement, IndexExpression,
    InfixExpression, IntegerLiteral, Node, PrefixExpression, Program, ResultStatement,
    Statement, StringLiteral,
)
from .environment import Environment
from .errors import BreakSignal, ContinueSignal, LoopSignal, UwscError
from .objects import (
    Array, Boolean, BuiltinArgument, BuiltinConstant, BuiltinFunction, ConstantTag,
    EMPTY, Error, Function, HashTable, Integer, NULL, Object, ReferenceResult, ResultValue,
    String, is_constant, native_bool, truncating_divmod, type_name,
)
from .parser import parse_program
from .std import BUILTINS, Builtin, lookup_builtin

DEFAULT_MAX_DEPTH = 100

HASH_OPTIONS = (ConstantTag.HASH_EXISTS, ConstantTag.HASH_REMOVE, ConstantTag.HASH_KEY, ConstantTag.HASH_VAL)


def is_truthy(obj: Optional[Object]) -> bool:
    """Only FALSE and the integer 0 are false."""
    if isinstance(obj, Boolean):
        return obj.value
    if isinstance(obj, Integer):
        return obj.value != 0
    return True


class Interpreter:
    """Evaluates UWSC programs.

    ``debug_level`` > 0 writes a trace to ``debug_file``: calls at level 1,
    declarations and assignments at level 2, branches and loop iterations
    at level 3. ``max_depth`` bounds nested user-function calls.
    """

    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 max_depth: int = DEFAULT_MAX_DEPTH, builtins: Optional[Dict[str, Builtin]] = None):
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.max_depth = max_depth
        self.builtins = BUILTINS if builtins is None else builtins
        self.depth = 0

    def debug(self, msg: str):
        if self.debug_level > 0 and self.debug_fp:
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    def run(self, program: Program, env: Optional[Environment] = None) -> Optional[Object]:
        if env is None:
            env = Environment()
        if self.debug_level > 0 and self.debug_fp is None:
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
        self.depth = 0
        try:
            self.debug(f'run program ({len(program.statements)} statements)')
            result = self.eval_program(program, env)
            self.debug(f'program finished: {result.inspect() if result is not None else "nothing"}')
            return result
        except UwscError as e:
            self.debug(f'error: {e.err.message}')
            return e.err
        except LoopSignal as e:
            return Error(f'{"BREAK" if isinstance(e, BreakSignal) else "CONTINUE"} outside of loop')
        except RecursionError:
            return Error('maximum recursion depth exceeded')
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def eval_program(self, program: Program, env: Environment) -> Optional[Object]:
        self.hoist_functions(program.statements, env)
        result: Optional[Object] = None
        for stmt in program.statements:
            result = self.eval_node(stmt, env)
            if isinstance(result, ResultValue):
                return result.value
        return result

    def hoist_functions(self, statements: List[Statement], env: Environment):
        """Bind top-level functions first so calls may precede definitions."""
        for stmt in statements:
            if isinstance(stmt, FunctionStatement):
                self.eval_node(stmt, env)

    def eval_block(self, block: BlockStatement, env: Environment) -> Optional[Object]:
        result: Optional[Object] = None
        for stmt in block.statements:
            result = self.eval_node(stmt, env)
            if isinstance(result, ResultValue):
                return result
        return result

    def eval_node(self, node: Node, env: Environment) -> Optional[Object]:
        # Statements
        if isinstance(node, ExpressionStatement):
            return self.eval_node(node.expression, env)
        if isinstance(node, DimStatement):
            value = EMPTY if node.value is None else self.eval_node(node.value, env)
            target = env.root() if node.is_public else env
            target.declare(node.name.value, value)
            if self.debug_level >= 2:
                self.debug(f'declare {node.name.value} = {value.inspect()}')
            return None
        if isinstance(node, ConstStatement):
            value = self.eval_node(node.value, env)
            env.set_const(node.name.value, value)
            if self.debug_level >= 2:
                self.debug(f'declare const {node.name.value} = {value.inspect()}')
            return None
        if isinstance(node, HashTableStatement):
            env.declare(node.name.value, self.new_hash_table(node, env))
            if self.debug_level >= 2:
                self.debug(f'declare hashtbl {node.name.value}')
            return None
        if isinstance(node, BlockStatement):
            return self.eval_block(node, env)
        if isinstance(node, (IfStatement, IfbStatement)):
            condition = self.eval_node(node.condition, env)
            truthy = is_truthy(condition)
            if self.debug_level >= 3:
                self.debug(f'if {node.condition} -> {truthy}')
            if truthy:
                return self.eval_node(node.consequence, env)
            if node.alternative is not None:
                return self.eval_node(node.alternative, env)
            return NULL
        if isinstance(node, FunctionStatement):
            fn = Function(node.name.value, node.parameters, node.body, env, node.is_procedure)
            env.declare(node.name.value, fn)
            if self.debug_level >= 2:
                self.debug(f'define {fn.inspect()}')
            return None
        if isinstance(node, ResultStatement):
            return ResultValue(self.eval_node(node.value, env))
        if isinstance(node, ForToStepStatement):
            return self.eval_for_to_step(node, env)
        if isinstance(node, ForInStatement):
            return self.eval_for_in(node, env)
        if isinstance(node, ContinueStatement):
            raise ContinueSignal()
        if isinstance(node, BreakStatement):
            raise BreakSignal()

        # Expressions
        if isinstance(node, Identifier):
            return self.eval_identifier(node, env)
        if isinstance(node, IntegerLiteral):
            return Integer(node.value)
        if isinstance(node, StringLiteral):
            return String(node.value)
        if isinstance(node, BooleanLiteral):
            return native_bool(node.value)
        if isinstance(node, PrefixExpression):
            return self.eval_prefix(node.operator, self.eval_node(node.right, env))
        if isinstance(node, InfixExpression):
            left = self.eval_node(node.left, env)
            right = self.eval_node(node.right, env)
            return self.eval_infix(node, left, right)
        if isinstance(node, AssignmentExpression):
            return self.assign(node.left, self.eval_node(node.value, env), env)
        if isinstance(node, CallExpression):
            return self.eval_call(node, env)
        if isinstance(node, EmptyArgument):
            return EMPTY
        if isinstance(node, ArrayLiteral):
            return self.eval_array_literal(node, env)
        if isinstance(node, IndexExpression):
            return self.eval_index(node, env)
        if isinstance(node, Program):
            return self.eval_program(node, env)
        raise UwscError(Error(f'unknown node: {type(node).__name__}'))

    # Declarations

    def new_hash_table(self, node: HashTableStatement, env: Environment) -> HashTable:
        if node.value is None:
            return HashTable()
        flag = self.eval_node(node.value, env)
        if is_constant(flag, ConstantTag.HASH_SORT):
            return HashTable(is_sorted=True)
        if is_constant(flag, ConstantTag.HASH_CASECARE):
            return HashTable(is_case_sensitive=True)
        raise UwscError(Error(f'unknown hash declare: {node.value}'))

    def eval_array_literal(self, node: ArrayLiteral, env: Environment) -> Array:
        elements = [self.eval_node(e, env) for e in node.elements]
        if node.size is None:
            return Array(elements)
        size = self.eval_node(node.size, env)
        if not isinstance(size, Integer) or size.value + 1 < 0:
            raise UwscError(Error(f'array has wrong size: {node}'))
        count = size.value + 1
        if not node.elements:
            return Array([EMPTY] * count)
        if len(elements) != count:
            raise UwscError(Error(f'array has wrong size: {node}'))
        return Array(elements)

    # Expressions

    def eval_identifier(self, node: Identifier, env: Environment) -> Object:
        value = env.get(node.value)
        if value is not None:
            return value
        builtin = lookup_builtin(node.value, self.builtins)
        if builtin is not None:
            return builtin
        raise UwscError(Error(f'identifier not found: {node.value}'))

    def eval_prefix(self, operator: str, right: Object) -> Object:
        if operator == '!':
            return native_bool(not is_truthy(right))
        if operator == '-' and isinstance(right, Integer):
            return Integer(-right.value)
        raise UwscError(Error(f'unknown operator: {operator}{type_name(right)}'))

    def eval_infix(self, node: InfixExpression, left: Object, right: Object) -> Object:
        op = node.operator
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self.eval_integer_infix(node, left.value, right.value)
        if isinstance(left, String) and isinstance(right, String) and op == '+':
            return String(left.value + right.value)
        if type_name(left) != type_name(right):
            raise UwscError(Error(f'type mismatch: {type_name(left)} {op} {type_name(right)}'))
        raise UwscError(Error(f'unknown operator: {type_name(left)} {op} {type_name(right)}'))

    def eval_integer_infix(self, node: InfixExpression, a: int, b: int) -> Object:
        op = node.operator
        if op == '+':
            return Integer(a + b)
        if op == '-':
            return Integer(a - b)
        if op == '*':
            return Integer(a * b)
        if op in ('/', 'MOD'):
            if b == 0:
                raise UwscError(Error(f'division by zero: {node}'))
            quotient, remainder = truncating_divmod(a, b)
            return Integer(quotient if op == '/' else remainder)
        if op == '=':
            return native_bool(a == b)
        if op == '<>':
            return native_bool(a != b)
        if op == '<':
            return native_bool(a < b)
        if op == '<=':
            return native_bool(a <= b)
        if op == '>':
            return native_bool(a > b)
        if op == '>=':
            return native_bool(a >= b)
        raise UwscError(Error(f'unknown operator: INTEGER {op} INTEGER'))

    def eval_index(self, node: IndexExpression, env: Environment) -> Object:
        left = self.eval_node(node.left, env)
        index = self.eval_node(node.index, env)
        if isinstance(left, Array):
            if node.option is not None:
                raise UwscError(Error(f'index option not supported for ARRAY: {node}'))
            if not isinstance(index, Integer):
                raise UwscError(Error(f'index should be integer: {node}'))
            if 0 <= index.value < len(left.elements):
                return left.elements[index.value]
            return NULL
        if isinstance(left, HashTable):
            if node.option is None:
                pair = left.get(self.hash_key(left, index))
                return pair.value if pair is not None else NULL
            return self.eval_hash_option(node, left, index, self.eval_node(node.option, env))
        raise UwscError(Error(f'index operator not supported: {type_name(left)}'))

    def hash_key(self, table: HashTable, index: Object):
        key = table.key_for(index)
        if key is None:
            raise UwscError(Error(f'unusable as hash key: {type_name(index)}'))
        return key

    def eval_hash_option(self, node: IndexExpression, table: HashTable, index: Object, option: Object) -> Object:
        if not isinstance(option, BuiltinConstant) or option.tag not in HASH_OPTIONS:
            raise UwscError(Error(f'unknown hash option: {node.option}'))
        if option.tag is ConstantTag.HASH_EXISTS:
            return native_bool(table.get(self.hash_key(table, index)) is not None)
        if option.tag is ConstantTag.HASH_REMOVE:
            return native_bool(table.remove(self.hash_key(table, index)))
        if not isinstance(index, Integer):
            raise UwscError(Error(f'index should be integer: {node}'))
        pair = table.get_pair_by_index(index.value)
        if pair is None:
            return NULL
        return pair.key if option.tag is ConstantTag.HASH_KEY else pair.value

    def assign(self, target: Expression, value: Object, env: Environment) -> Object:
        if self.debug_level >= 2:
            self.debug(f'assign {target} = {value.inspect()}')
        if isinstance(target, Identifier):
            current = env.get(target.value)
            if isinstance(current, HashTable) and is_constant(value, ConstantTag.HASH_REMOVEALL):
                env.set(target.value, HashTable())
                return value
            return env.set(target.value, value)
        if isinstance(target, IndexExpression):
            if target.option is not None:
                raise UwscError(Error(f'cannot assign to {target}'))
            container = self.eval_node(target.left, env)
            index = self.eval_node(target.index, env)
            if isinstance(container, Array):
                if not isinstance(index, Integer):
                    raise UwscError(Error(f'index should be integer: {target}'))
                if not 0 <= index.value < len(container.elements):
                    raise UwscError(Error(f'index out of range: {target}'))
                container.elements[index.value] = value
                return value
            if isinstance(container, HashTable):
                container.put(self.hash_key(container, index), index, value)
                return value
            raise UwscError(Error(f'index operator not supported: {type_name(container)}'))
        raise UwscError(Error(f'cannot assign to {target}'))

    # Calls

    def eval_call(self, node: CallExpression, env: Environment) -> Object:
        function = self.eval_node(node.function, env)
        args = [BuiltinArgument(expr, self.eval_node(expr, env)) for expr in node.arguments]
        if isinstance(function, Function):
            return self.apply_function(function, [arg.value for arg in args])
        if isinstance(function, BuiltinFunction):
            return self.apply_builtin(function, args, env)
        raise UwscError(Error(f'not a function: {type_name(function)}'))

    def apply_function(self, fn: Function, args: List[Object]) -> Object:
        if len(args) != len(fn.parameters):
            raise UwscError(Error(
                f'wrong number of arguments to {fn.name}: want={len(fn.parameters)}, got={len(args)}'))
        if self.depth >= self.max_depth:
            raise UwscError(Error(f'maximum call depth exceeded: {self.max_depth}'))
        if self.debug_level >= 1:
            self.debug(f'call {fn.name}({", ".join(a.inspect() for a in args)})')
        call_env = Environment.new_enclosed(fn.env)
        for param, arg in zip(fn.parameters, args):
            call_env.declare(param.value, arg)
        if not fn.is_procedure:
            call_env.declare('RESULT', NULL)
        self.depth += 1
        try:
            result = self.eval_block(fn.body, call_env)
        finally:
            self.depth -= 1
        if fn.is_procedure:
            return NULL
        if isinstance(result, ResultValue):
            return result.value
        raise UwscError(Error('result value does not exist'))

    def apply_builtin(self, builtin: BuiltinFunction, args: List[BuiltinArgument], env: Environment) -> Object:
        if len(args) < builtin.min_args or (builtin.max_args is not None and len(args) > builtin.max_args):
            want = str(builtin.min_args) if builtin.min_args == builtin.max_args else \
                f'{builtin.min_args}..{builtin.max_args if builtin.max_args is not None else ""}'
            raise UwscError(Error(f'wrong number of arguments to {builtin.name}: got={len(args)}, want={want}'))
        if self.debug_level >= 1:
            self.debug(f'call builtin {builtin.name}({", ".join(a.value.inspect() for a in args)})')
        outcome = builtin.fn(args)
        if isinstance(outcome, ReferenceResult):
            self.assign(outcome.expression, outcome.value, env)
            return outcome.result
        return outcome.value

    # Loops

    def loop_bound(self, expr: Expression) -> int:
        if not isinstance(expr, IntegerLiteral):
            raise UwscError(Error(f'for loop bound should be integer literal: {expr}'))
        return expr.value

    def eval_for_to_step(self, node: ForToStepStatement, env: Environment) -> Optional[Object]:
        start = self.loop_bound(node.start)
        end = self.loop_bound(node.end)
        step = 1 if node.step is None else self.loop_bound(node.step)
        if step == 0:
            raise UwscError(Error(f'for loop step should not be zero: {node.step}'))
        counter = start
        while (step > 0 and counter <= end) or (step < 0 and counter >= end):
            env.set(node.loop_var.value, Integer(counter))
            if self.debug_level >= 3:
                self.debug(f'for {node.loop_var.value} = {counter}')
            try:
                result = self.eval_loop_body(node.block, env)
            except BreakSignal:
                break
            if result is not None:
                return result
            counter += step
        return None

    def eval_for_in(self, node: ForInStatement, env: Environment) -> Optional[Object]:
        collection = self.eval_identifier(node.collection, env)
        if not isinstance(collection, Array):
            raise UwscError(Error(f'for-in collection should be array: {node.collection}'))
        for element in list(collection.elements):
            env.set(node.loop_var.value, element)
            if self.debug_level >= 3:
                self.debug(f'for {node.loop_var.value} in {node.collection}: {element.inspect()}')
            try:
                result = self.eval_loop_body(node.block, env)
            except BreakSignal:
                break
            if result is not None:
                return result
        return None

    def eval_loop_body(self, block: BlockStatement, env: Environment) -> Optional[ResultValue]:
        """Run one iteration; returns a ResultValue when RESULT ended the body."""
        try:
            for stmt in block.statements:
                result = self.eval_node(stmt, env)
                if isinstance(result, ResultValue):
                    return result
        except ContinueSignal:
            pass
        return None


def evaluate(program: Program, env: Optional[Environment] = None) -> Optional[Object]:
    return Interpreter().run(program, env)


def run_program(source: str, debug_level: int = 0) -> Optional[Object]:
    """Parse and run UWSC source. Parse errors raise ParseError."""
    program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level)
    return interpreter.run(program)
