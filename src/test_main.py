"""Tests for the run_tbt pipeline and the command line entry point."""

import pytest

from tbt.main import run_tbt, run_steps
from tbt.lexer import tokenize
from tbt.parser import parse
from tbt.cli import main, parse_key_schedule, limit_value

FOREVER_PROGRAM = "canvas 3 1\nspawn id=1 x=0 y=0\nrepeat 100 forever\n. move id=1 right"


def test_run_tbt_batch(capsys):
    result = run_tbt("canvas 3 3\nspawn id=1 x=0 y=0\nmove id=1 right")
    assert result['objects'][1].x == 1
    out = capsys.readouterr().out
    assert "Tokenizing..." in out
    assert "Interpreting..." in out
    assert "Moved id=1 to (1,0) right" in out
    assert "Board:" in out


def test_run_tbt_reports_syntax_errors(capsys):
    assert run_tbt("canvas 3 3\nif id=1 is near id=2") is None
    out = capsys.readouterr().out
    assert "Error: Unknown relation 'near' (at line 2)" in out


def test_run_tbt_steps(capsys):
    result = run_tbt(FOREVER_PROGRAM, steps=2)
    assert result['ticks'] == 2
    assert result['done'] is False
    assert result['objects'][1].x == 2
    assert "Stepping (up to 2 ticks)..." in capsys.readouterr().out


def test_run_tbt_forever_limit(capsys):
    result = run_tbt(FOREVER_PROGRAM, forever_limit=1)
    assert result['objects'][1].x == 1
    assert "Repeat forever stopped after 1 iterations" in result['output']


def test_run_steps_stops_when_done():
    result = run_steps(parse(tokenize("repeat 100 2\n. wait 1")), 10)
    assert result['done'] is True
    assert result['ticks'] == 3


def test_run_steps_with_keys():
    code = (
        "canvas 3 3\nspawn id=2 x=1 y=1\nassign w to id=2\n"
        "if id=2 is assigned w\n..true\n. despawn id=2\n"
        "repeat 10 forever\n. wait 1"
    )
    result = run_steps(parse(tokenize(code)), 3, keys={1: {'w': 1}})
    assert result['objects'] == {}
    assert result['ticks'] == 3


def test_run_steps_zero_ticks():
    result = run_steps(parse(tokenize(FOREVER_PROGRAM)), 0)
    assert result['ticks'] == 0
    assert result['done'] is False
    assert result['objects'][1].x == 0


def test_parse_key_schedule():
    assert parse_key_schedule("2:w,5:-w, 5:d") == {2: {'w': 1}, 5: {'w': 0, 'd': 1}}
    assert parse_key_schedule(None) == {}
    for bad in ("w", "x:w", "2:", "2:-"):
        with pytest.raises(ValueError):
            parse_key_schedule(bad)


def test_limit_value():
    assert limit_value("none") is None
    assert limit_value("25") == 25


def test_cli_writes_exports(tmp_path, capsys):
    source = tmp_path / "game.tbt"
    source.write_text("canvas 2 1\nspawn id=1 x=1 y=0 state=3\n")
    board_csv = tmp_path / "board.csv"
    objects_csv = tmp_path / "objects.csv"
    main([str(source), '--csv', str(board_csv), '--objects-csv', str(objects_csv)])
    assert board_csv.read_text() == ",1\n"
    assert objects_csv.exists()
    assert "Board saved to:" in capsys.readouterr().out


def test_cli_steps_and_keys(tmp_path, capsys):
    source = tmp_path / "game.tbt"
    source.write_text(FOREVER_PROGRAM)
    main([str(source), '--steps', '2', '--keys', '0:w'])
    assert "Stepping (up to 2 ticks)..." in capsys.readouterr().out


def test_cli_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "missing.tbt")])
    assert excinfo.value.code == 1
    assert "not found" in capsys.readouterr().out


def test_cli_parse_error_exits(tmp_path):
    source = tmp_path / "bad.tbt"
    source.write_text("canvas 3")
    with pytest.raises(SystemExit) as excinfo:
        main([str(source)])
    assert excinfo.value.code == 1


def test_cli_bad_key_schedule(tmp_path, capsys):
    source = tmp_path / "game.tbt"
    source.write_text("canvas 1 1")
    with pytest.raises(SystemExit):
        main([str(source), '--steps', '1', '--keys', 'oops'])
    assert "Invalid key schedule entry" in capsys.readouterr().out


def test_deeply_nested_program_reports_an_error(tmp_path, capsys):
    source = tmp_path / "deep.tbt"
    source.write_text("if id=1 is on id=1\n..true\n" + ". if id=1 is on id=1\n..true\n" * 2000)
    with pytest.raises(SystemExit) as excinfo:
        main([str(source)])
    assert excinfo.value.code == 1
    assert "Error: Block nesting too deep" in capsys.readouterr().out
