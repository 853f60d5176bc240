import pytest

from uwscript.environment import Environment
from uwscript.interpreter import Interpreter, evaluate, run_program
from uwscript.objects import Array, Boolean, EMPTY, Error, HashTable, Integer, NULL, String
from uwscript.parser import parse_program


def run(source):
    return evaluate(parse_program(source), Environment())


def error_message(source):
    result = run(source)
    assert isinstance(result, Error), result
    return result.message


@pytest.mark.parametrize('source, expected', [
    ('5', 5),
    ('-5', -5),
    ('5 + 5 + 5 + 5 - 10', 10),
    ('2 * (5 + 10)', 30),
    ('50 / 2 * 2 + 10', 60),
    ('7 / 2', 3),
    ('-7 / 2', -3),
    ('7 / -2', -3),
    ('7 MOD 3', 1),
    ('-7 MOD 3', -1),
    ('7 MOD -3', 1),
])
def test_integer_arithmetic(source, expected):
    assert run(source) == Integer(expected)


@pytest.mark.parametrize('source, expected', [
    ('1 < 2', True),
    ('1 > 2', False),
    ('1 <= 1', True),
    ('2 >= 3', False),
    ('1 = 1', True),
    ('1 <> 1', False),
    ('TRUE', True),
    ('!TRUE', False),
    ('!0', True),
    ('!5', False),
])
def test_boolean_results(source, expected):
    assert run(source) == Boolean(expected)


def test_string_concatenation():
    assert run('"Hello" + " " + "World"') == String('Hello World')


@pytest.mark.parametrize('source, message', [
    ('5 + TRUE', 'type mismatch: INTEGER + BOOLEAN'),
    ('5 + TRUE\n5', 'type mismatch: INTEGER + BOOLEAN'),
    ('-TRUE', 'unknown operator: -BOOLEAN'),
    ('TRUE + FALSE', 'unknown operator: BOOLEAN + BOOLEAN'),
    ('"a" - "b"', 'unknown operator: STRING - STRING'),
    ('"a" = "a"', 'unknown operator: STRING = STRING'),
    ('foobar', 'identifier not found: foobar'),
    ('DIM x = 1\nx(2)', 'not a function: INTEGER'),
    ('10 / (5 - 5)', 'division by zero: (10 / (5 - 5))'),
    ('1 MOD 0', 'division by zero: (1 MOD 0)'),
    ('DIM a[1] = 1, 2 * 2, 3 + 3', 'array has wrong size: [1, (2 * 2), (3 + 3)]'),
    ('HASHTBL h = 5', 'unknown hash declare: 5'),
    ('HASHTBL h\nDIM a[] = 1\nh[a]', 'unusable as hash key: ARRAY'),
    ('DIM s = "x"\ns[0]', 'index operator not supported: STRING'),
    ('CONST c = 1\nc = 2', 'cannot assign to constant: c'),
    ('DIM a[] = 1, 2\na[2] = 5', 'index out of range: (a[2])'),
    ('LENGTH(1, 2)', 'wrong number of arguments to LENGTH: got=2, want=1'),
    ('FUNCTION f(a)\nRESULT = a\nFEND\nf(1, 2)', 'wrong number of arguments to f: want=1, got=2'),
])
def test_errors(source, message):
    assert error_message(source) == message


def test_error_stops_evaluation():
    env = Environment()
    result = evaluate(parse_program('DIM a = 1\nDIM b = a + TRUE\na = 99'), env)
    assert isinstance(result, Error)
    assert env.get('a') == Integer(1)
    assert env.get('b') is None


@pytest.mark.parametrize('source, expected', [
    ('IF TRUE THEN 10', Integer(10)),
    ('IF FALSE THEN 10', NULL),
    ('IF 1 THEN 10', Integer(10)),
    ('IF 0 THEN 10', NULL),
    ('IF "" THEN 10', Integer(10)),
    ('IF 1 < 2 THEN 10 ELSE 20', Integer(10)),
    ('IF 1 > 2 THEN 10 ELSE 20', Integer(20)),
])
def test_truthiness(source, expected):
    assert run(source) == expected


def test_ifb_chain_and_block_scope():
    source = '\n'.join([
        'DIM x = 2',
        'IFB x = 1 THEN',
        '    DIM r = "one"',
        'ELSEIF x = 2 THEN',
        '    DIM r = "two"',
        'ELSE',
        '    DIM r = "other"',
        'ENDIF',
        'r',
    ])
    assert run(source) == String('two')


def test_dim_forms():
    env = Environment()
    evaluate(parse_program('DIM v = 5\nDIM e\nDIM a[2]\nDIM z[-1]\nDIM n[]'), env)
    assert env.get('v') == Integer(5)
    assert env.get('e') is EMPTY
    assert env.get('a').elements == [EMPTY, EMPTY, EMPTY]
    assert env.get('z').elements == []
    assert env.get('n').elements == []


def test_array_read_out_of_range_is_null():
    assert run('DIM a[] = 1, 2, 3\na[3]') == NULL
    assert run('DIM a[] = 1, 2, 3\na[-1]') == NULL
    assert run('DIM a[] = 1, 2, 3\na[1]') == Integer(2)


def test_arrays_are_shared_between_bindings():
    assert run('DIM a[] = 1, 2, 3\nDIM b = a\na[0] = 100\nb[0]') == Integer(100)


def test_nested_array_assignment():
    assert run('DIM inner[] = 1, 2\nDIM outer[] = inner, 0\nouter[0][1] = 9\ninner[1]') == Integer(9)


def test_function_call_and_closure():
    assert run('FUNCTION fn(x)\nRESULT = x + 5\nFEND\nfn(5)') == Integer(10)
    source = '\n'.join([
        'DIM base = 100',
        'FUNCTION add_base(x)',
        '    RESULT = base + x',
        'FEND',
        'base = 1',
        'add_base(2)',
    ])
    assert run(source) == Integer(3)


def test_result_ends_the_function_body():
    source = 'DIM hits = 0\nFUNCTION f()\nRESULT = 1\nhits = hits + 1\nFEND\nf()\nhits'
    assert run(source) == Integer(0)


def test_result_slot_starts_null():
    assert run('FUNCTION f()\nRESULT = RESULT\nFEND\nf()') == NULL


def test_missing_result_is_an_error():
    assert error_message('FUNCTION f()\nDIM a = 1\nFEND\nf()') == 'result value does not exist'


def test_procedure_has_no_result():
    assert run('PROCEDURE p()\nDIM a = 1\nFEND\np()') == NULL


def test_dim_inside_function_is_local():
    source = 'PROCEDURE p()\nDIM inner = 1\nFEND\np()\ninner'
    assert error_message(source) == 'identifier not found: inner'


def test_assignment_updates_owning_scope():
    source = 'DIM count = 0\nPROCEDURE bump()\ncount = count + 1\nFEND\nbump()\nbump()\ncount'
    assert run(source) == Integer(2)


def test_assignment_to_unbound_name_creates_local():
    source = 'PROCEDURE p()\nfresh = 1\nFEND\np()\nfresh'
    assert error_message(source) == 'identifier not found: fresh'


def test_parameters_shadow_outer_bindings():
    source = 'DIM x = 1\nFUNCTION f(x)\nx = x + 10\nRESULT = x\nFEND\nf(5) + x'
    assert run(source) == Integer(16)


def test_public_declares_globally():
    source = 'PROCEDURE p()\nPUBLIC shared = 42\nFEND\np()\nshared'
    assert run(source) == Integer(42)


def test_functions_are_hoisted():
    assert run('twice(4)\nFUNCTION twice(n)\nRESULT = n * 2\nFEND') is None
    assert run('DIM r = twice(4)\nFUNCTION twice(n)\nRESULT = n * 2\nFEND\nr') == Integer(8)


def test_empty_argument_binds_empty():
    assert run('FUNCTION f(a, b)\nRESULT = b\nFEND\nf(1, )') is EMPTY


def test_for_to_step_with_continue_skips_body():
    source = '\n'.join([
        'DIM acc = 0',
        'FOR n = 0 TO 10 STEP 2',
        '    CONTINUE',
        '    acc = acc + 1',
        'NEXT',
        'acc',
    ])
    assert run(source) == Integer(0)


def test_for_to_step_counts_inclusive():
    assert run('DIM s = 0\nFOR i = 1 TO 4\ns = s + i\nNEXT\ns') == Integer(10)
    assert run('DIM s = 0\nFOR i = 0 TO 10 STEP 5\ns = s * 10 + i\nNEXT\ns') == Integer(60)
    assert run('DIM s = 0\nFOR i = 3 TO 1 STEP -1\ns = s * 10 + i\nNEXT\ns') == Integer(321)
    assert run('DIM s = 0\nFOR i = 5 TO 1\ns = s + 1\nNEXT\ns') == Integer(0)


def test_break_inside_nested_if():
    source = 'DIM s = 0\nFOR i = 1 TO 100\nIFB i > 3 THEN\nBREAK\nENDIF\ns = s + i\nNEXT\ns'
    assert run(source) == Integer(6)


def test_for_in():
    source = 'DIM s = 0\nDIM a[] = 1, 2, 3, 4\nFOR x IN a\nIF x = 2 THEN CONTINUE\ns = s + x\nNEXT\ns'
    assert run(source) == Integer(8)
    assert error_message('DIM n = 1\nFOR x IN n\nNEXT') == 'for-in collection should be array: n'


def test_result_inside_loop_returns_from_function():
    source = '\n'.join([
        'FUNCTION find(arr, target)',
        '    DIM i = 0',
        '    FOR x IN arr',
        '        IF x = target THEN RESULT = i',
        '        i = i + 1',
        '    NEXT',
        '    RESULT = -1',
        'FEND',
        'DIM a[] = 5, 6, 7',
        'find(a, 7) * 10 + find(a, 9)',
    ])
    assert run(source) == Integer(19)


def test_for_bound_must_be_literal():
    assert error_message('DIM n = 3\nFOR i = 1 TO n\nNEXT') == 'for loop bound should be integer literal: n'
    assert error_message('FOR i = 1 TO 3 STEP 0\nNEXT') == 'for loop step should not be zero: 0'


def test_hash_table_operations():
    source = '\n'.join([
        'HASHTBL h = HASH_SORT',
        'h["a"] = 1',
        'h["b"] = 2',
        'h["c"] = 3',
    ])
    env = Environment()
    evaluate(parse_program(source), env)
    table = env.get('h')
    assert isinstance(table, HashTable) and table.is_sorted
    assert evaluate(parse_program('h[1, HASH_KEY]'), env) == String('b')
    assert evaluate(parse_program('h[1, HASH_VAL]'), env) == Integer(2)
    assert evaluate(parse_program('h[9, HASH_VAL]'), env) == NULL
    assert evaluate(parse_program('h["b"]'), env) == Integer(2)
    assert evaluate(parse_program('h["zz"]'), env) == NULL
    assert evaluate(parse_program('h["a", HASH_EXISTS]'), env) == Boolean(True)
    assert evaluate(parse_program('h["a", HASH_REMOVE]'), env) == Boolean(True)
    assert evaluate(parse_program('h["a", HASH_REMOVE]'), env) == Boolean(False)
    assert evaluate(parse_program('h[0, HASH_KEY]'), env) == String('b')


def test_hash_remove_all():
    source = 'HASHTBL h = HASH_SORT\nh["a"]=1\nh["b"]=2\nh["c"]=3\nh = HASH_REMOVEALL\nh["a", HASH_EXISTS]'
    assert run(source) == Boolean(False)


def test_hash_case_policy():
    assert run('HASHTBL h\nh["Key"] = 1\nh["KEY"]') == Integer(1)
    assert run('HASHTBL h = HASH_CASECARE\nh["Key"] = 1\nh["KEY"]') == NULL


def test_hash_mixed_key_types():
    source = 'HASHTBL h\nh[1] = "int"\nh["1"] = "str"\nh[TRUE] = "bool"\nh[1] + h["1"] + h[TRUE]'
    assert run(source) == String('intstrbool')


def test_builtin_constant_names_are_case_insensitive():
    assert run('DIM a[] = 1, 2\ncalcarray(a, calc_add)') == Integer(3)


def test_user_binding_shadows_builtin():
    assert run('DIM length = 7\nlength') == Integer(7)


def test_top_level_result_ends_program():
    assert run('DIM a = 1\nRESULT = a + 1\na = 50\na') == Integer(2)


def test_max_depth_guard():
    program = parse_program('FUNCTION loop(n)\nRESULT = loop(n + 1)\nFEND\nloop(0)')
    result = Interpreter(max_depth=20).run(program)
    assert isinstance(result, Error)
    assert result.message == 'maximum call depth exceeded: 20'


def test_debug_log(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    program = parse_program('FUNCTION f(x)\nRESULT = x\nFEND\nDIM v = f(3)\nIF v THEN v = 4')
    interp = Interpreter(debug_level=3, debug_file=str(debug_file))
    assert interp.run(program) == Integer(4)
    log = debug_file.read_text(encoding='utf-8')
    assert 'call f(3)' in log
    assert 'declare v = 3' in log
    assert 'if v -> True' in log


def test_run_program():
    assert run_program('DIM a[] = 1, 2, 3\nLENGTH(a)') == Integer(3)


def test_array_inspect():
    assert run('DIM a[] = 1, "x", TRUE\na').inspect() == '[1, x, True]'
    assert isinstance(run('DIM a[]\na'), Array)
