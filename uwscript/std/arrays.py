from typing import Dict, List, Optional, Tuple

from uwscript.errors import UwscError
from uwscript.objects import (
    Array, BuiltinArgument, BuiltinConstant, BuiltinFunction, BuiltinOutcome, ConstantTag,
    DirectResult, EMPTY, Empty, Error, Integer, NULL, Object, ReferenceResult, String,
    truncating_divmod, type_name,
)


def _unsupported(name: str, position: int, value: Object) -> UwscError:
    return UwscError(Error(f'argument {position} to `{name}` not supported, got {type_name(value)}'))


def _array_arg(name: str, args: List[BuiltinArgument], position: int = 1) -> Array:
    value = args[position - 1].value
    if not isinstance(value, Array):
        raise _unsupported(name, position, value)
    return value


def _optional_int(name: str, args: List[BuiltinArgument], position: int) -> Optional[int]:
    """Integer argument at ``position``; None when omitted or passed as an empty slot."""
    if len(args) < position:
        return None
    value = args[position - 1].value
    if isinstance(value, Empty):
        return None
    if not isinstance(value, Integer):
        raise _unsupported(name, position, value)
    return value.value


def _bounds(array: Array, start: Optional[int], end: Optional[int]) -> Tuple[int, int]:
    first = 0 if start is None else max(start, 0)
    last = len(array.elements) - 1 if end is None else min(end, len(array.elements) - 1)
    return first, last


def std_length(args: List[BuiltinArgument]) -> BuiltinOutcome:
    value = args[0].value
    if isinstance(value, String):
        return DirectResult(Integer(len(value.value)))
    if isinstance(value, Array):
        return DirectResult(Integer(len(value.elements)))
    raise UwscError(Error(f'argument to `LENGTH` not supported, got {type_name(value)}'))


def std_resize(args: List[BuiltinArgument]) -> BuiltinOutcome:
    array = _array_arg('RESIZE', args)
    if len(args) == 1:
        return DirectResult(Integer(len(array.elements) - 1))
    size = args[1].value
    if not isinstance(size, Integer):
        raise _unsupported('RESIZE', 2, size)
    count = max(size.value + 1, 0)
    elements = array.elements[:count]
    elements.extend(EMPTY for _ in range(count - len(elements)))
    return ReferenceResult(args[0].expression, Array(elements), size)


def std_calcarray(args: List[BuiltinArgument]) -> BuiltinOutcome:
    array = _array_arg('CALCARRAY', args)
    op = args[1].value
    if not isinstance(op, BuiltinConstant):
        raise _unsupported('CALCARRAY', 2, op)
    first, last = _bounds(array, _optional_int('CALCARRAY', args, 3), _optional_int('CALCARRAY', args, 4))
    numbers: List[int] = []
    for i in range(first, last + 1):
        element = array.elements[i]
        if isinstance(element, Empty):
            continue
        if not isinstance(element, Integer):
            raise UwscError(Error(
                f'array of argument 1 has not integer element. array[{i}]={element.inspect()}'))
        numbers.append(element.value)
    if op.tag is ConstantTag.CALC_ADD:
        return DirectResult(Integer(sum(numbers)))
    if op.tag not in (ConstantTag.CALC_MIN, ConstantTag.CALC_MAX, ConstantTag.CALC_AVR):
        raise UwscError(Error(f'argument 2 to `CALCARRAY` not supported, got {op.tag.name}'))
    if not numbers:
        return DirectResult(NULL)
    if op.tag is ConstantTag.CALC_MIN:
        return DirectResult(Integer(min(numbers)))
    if op.tag is ConstantTag.CALC_MAX:
        return DirectResult(Integer(max(numbers)))
    average, _ = truncating_divmod(sum(numbers), len(numbers))
    return DirectResult(Integer(average))


def std_setclear(args: List[BuiltinArgument]) -> BuiltinOutcome:
    array = _array_arg('SETCLEAR', args)
    fill = args[1].value if len(args) > 1 else EMPTY
    for i in range(len(array.elements)):
        array.elements[i] = fill
    return DirectResult(NULL)


def std_slice(args: List[BuiltinArgument]) -> BuiltinOutcome:
    array = _array_arg('SLICE', args)
    first, last = _bounds(array, _optional_int('SLICE', args, 2), _optional_int('SLICE', args, 3))
    return DirectResult(Array(array.elements[first:last + 1]))


def std_join(args: List[BuiltinArgument]) -> BuiltinOutcome:
    array = _array_arg('JOIN', args)
    separator = ' '
    if len(args) > 1 and not isinstance(args[1].value, Empty):
        if not isinstance(args[1].value, String):
            raise _unsupported('JOIN', 2, args[1].value)
        separator = args[1].value.value
    return DirectResult(String(separator.join(e.inspect() for e in array.elements)))


def populate_array_builtins() -> Dict[str, BuiltinFunction]:
    return {
        'LENGTH': BuiltinFunction('LENGTH', 1, 1, std_length),
        'RESIZE': BuiltinFunction('RESIZE', 1, 2, std_resize),
        'CALCARRAY': BuiltinFunction('CALCARRAY', 2, 4, std_calcarray),
        'SETCLEAR': BuiltinFunction('SETCLEAR', 1, 2, std_setclear),
        'SLICE': BuiltinFunction('SLICE', 1, 3, std_slice),
        'JOIN': BuiltinFunction('JOIN', 1, 2, std_join),
    }
