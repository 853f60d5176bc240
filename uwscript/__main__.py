"""CLI entry point for the UWSC interpreter.

Usage:
    python -m uwscript [-v|-vv|-vvv] [--max-depth N] <program_file>
    python -m uwscript --emit-ast <program_file>
    python -m uwscript [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --max-depth   Maximum nesting of user function calls
  --emit-ast    Parse the given .uws file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. When the program ends with a value it is
printed; a runtime error is reported on stderr with exit status 1.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast import Program
from .ast_json import ast_from_obj, ast_to_obj
from .errors import ParseError
from .interpreter import DEFAULT_MAX_DEPTH, Interpreter
from .objects import Error
from .parser import parse_program


def read_source(path: str) -> str:
    program_file = Path(path)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    return program_file.read_text(encoding='utf-8')


def parse_or_exit(source: str) -> Program:
    try:
        return parse_program(source)
    except ParseError as e:
        for message in e.errors:
            print(f"Parse error: {message}", file=sys.stderr)
        sys.exit(1)


def execute(program: Program, args: argparse.Namespace) -> None:
    interpreter = Interpreter(debug_level=args.v, max_depth=args.max_depth)
    result = interpreter.run(program)
    if isinstance(result, Error):
        print(f"Runtime error: {result.message}", file=sys.stderr)
        sys.exit(1)
    if result is not None:
        print(result.inspect())


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='uwscript', description="UWSC script interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH,
                        help='maximum nesting of user function calls')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='UWS_FILE', help='emit AST JSON for the given .uws file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='UWSC program file (.uws) to execute')
    args = parser.parse_args(argv)

    if args.emit_ast:
        program_file = Path(args.emit_ast)
        program = parse_or_exit(read_source(args.emit_ast))
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    if args.ast:
        data = json.loads(read_source(args.ast))
        execute(ast_from_obj(data), args)
        return

    if not args.program:
        parser.error('missing program file; or use --emit-ast/--ast')
    execute(parse_or_exit(read_source(args.program)), args)


if __name__ == '__main__':
    main()
