from typing import Dict, List

from uwscript.objects import BuiltinArgument, BuiltinFunction, BuiltinOutcome, DirectResult, NULL


def std_print(args: List[BuiltinArgument]) -> BuiltinOutcome:
    print(' '.join(arg.value.inspect() for arg in args))
    return DirectResult(NULL)


def populate_io_builtins() -> Dict[str, BuiltinFunction]:
    return {'PRINT': BuiltinFunction('PRINT', 0, None, std_print)}
