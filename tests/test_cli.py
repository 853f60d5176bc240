import json

import pytest

from uwscript.__main__ import main


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding='utf-8')
    return path


def test_runs_program_and_prints_result(tmp_path, capsys):
    path = write(tmp_path, 'prog.uws', 'PRINT("hi")\n1 + 2\n')
    main([str(path)])
    assert capsys.readouterr().out == 'hi\n3\n'


def test_runtime_error_exits_with_status_1(tmp_path, capsys):
    path = write(tmp_path, 'bad.uws', 'DIM a = 1 + TRUE\n')
    with pytest.raises(SystemExit) as excinfo:
        main([str(path)])
    assert excinfo.value.code == 1
    assert 'Runtime error: type mismatch: INTEGER + BOOLEAN' in capsys.readouterr().err


def test_parse_error_exits_with_status_1(tmp_path, capsys):
    path = write(tmp_path, 'bad.uws', 'DIM = 1\n')
    with pytest.raises(SystemExit) as excinfo:
        main([str(path)])
    assert excinfo.value.code == 1
    assert 'Parse error: expected next token to be IDENT' in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main([str(tmp_path / 'nope.uws')])
    assert 'not found' in capsys.readouterr().err


def test_emit_ast_then_run_it(tmp_path, capsys):
    path = write(tmp_path, 'prog.uws', 'FUNCTION sq(n)\nRESULT = n * n\nFEND\nsq(7)\n')
    main(['--emit-ast', str(path)])
    out_path = tmp_path / 'prog.uws.ast.json'
    assert capsys.readouterr().out.strip() == str(out_path)
    assert json.loads(out_path.read_text(encoding='utf-8'))['statements'][0]['node'] == 'FunctionStatement'
    main(['--ast', str(out_path)])
    assert capsys.readouterr().out == '49\n'


def test_max_depth_flag(tmp_path, capsys):
    path = write(tmp_path, 'deep.uws', 'FUNCTION f(n)\nRESULT = f(n + 1)\nFEND\nf(0)\n')
    with pytest.raises(SystemExit):
        main(['--max-depth', '5', str(path)])
    assert 'maximum call depth exceeded: 5' in capsys.readouterr().err


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = write(tmp_path, 'prog.uws', 'DIM a = 1\n')
    main(['-vv', str(path)])
    assert 'declare a = 1' in (tmp_path / 'debug.txt').read_text(encoding='utf-8')
