"""Tests for the batch interpreter."""

import random

from tbt.lexer import tokenize
from tbt.parser import parse
from tbt.interpreter import Interpreter, interpret
from tbt.world import World


def run(code, **options):
    return interpret(parse(tokenize(code)), **options)


def lines(result):
    return result['output'].splitlines()


def position(result, id):
    obj = result['objects'][id]
    return obj.x, obj.y


def test_move_right():
    result = run("canvas 3 3\nspawn id=1 x=0 y=0\nmove id=1 right")
    assert position(result, 1) == (1, 0)
    assert result['board'][0][1] == ['1']
    assert lines(result) == [
        "Canvas initialized: 3x3",
        "Spawned id=1 at (0,0) state=0",
        "Moved id=1 to (1,0) right",
    ]


def test_spawn_on_occupied_tile_replaces_occupant():
    result = run("canvas 2 2\nspawn id=1 x=0 y=0\nspawn id=2 x=0 y=0")
    assert result['board'][0][0] == ['2']
    assert list(result['objects']) == [2]
    assert "Replaced existing objects 1 with id=2 at (0,0)" in lines(result)


def test_despawn_twice_is_a_soft_error():
    result = run("canvas 2 2\nspawn id=1 x=1 y=1\ndespawn id=1\ndespawn id=1\nwait 5")
    assert result['objects'] == {}
    assert lines(result)[-3:] == [
        "Despawned id=1",
        "[INTERPRETER ERROR] Attempted to remove non-existent object id=1",
        "Waited 5 ms",
    ]


def test_out_of_bounds_move_is_logged_and_ignored():
    result = run("canvas 2 2\nspawn id=1 x=0 y=0\nmove id=1 left")
    assert position(result, 1) == (0, 0)
    assert result['board'][0][0] == ['1']
    assert lines(result)[-1] == "[INTERPRETER ERROR] Move failed: out of bounds (-1,0), board size: 2x2"


def test_out_of_bounds_spawn_is_rejected():
    result = run("canvas 2 2\nspawn id=1 x=5 y=0")
    assert result['objects'] == {}
    assert "out of bounds: id=1 at (5,0)" in lines(result)[-1]


def test_move_with_set_and_swap():
    result = run("canvas 3 1\nspawn id=1 x=0 y=0\nspawn id=2 x=1 y=0\nmove id=1 right set=7 swap")
    assert position(result, 1) == (1, 0)
    assert position(result, 2) == (0, 0)
    assert result['objects'][1].state == 7
    assert lines(result)[-1] == "Moved id=1 to (1,0) right set state=7 with swap"


def test_variables_and_expressions():
    result = run("ref=a(5)\nref=b([add ref(a) 3])\nmul(ref(b), 2)\nadd 1 2")
    assert result['variables'] == {'a': 5, 'b': 8}
    assert lines(result) == [
        "Variable a set to 5",
        "Variable b set to 8",
        "Result: 16",
        "Result: 3",
    ]


def test_spawn_position_from_expression():
    result = run("canvas 4 4\nref=col(2)\nspawn id=1 x=[add(ref(col), 1)] y=[sub 3 1] state=[mul 2 2]")
    assert position(result, 1) == (3, 2)
    assert result['objects'][1].state == 4


def test_evaluation_error_yields_zero():
    result = run("div(1, 0)")
    assert lines(result) == [
        "[INTERPRETER ERROR] Error evaluating value: Division by zero",
        "Result: 0",
    ]


def test_random_with_seeded_rng():
    code = "canvas 10 1\nspawn id=1 x=[random(0, 9)] y=0"
    first = run(code, rng=random.Random(3))
    second = run(code, rng=random.Random(3))
    assert position(first, 1) == position(second, 1)
    assert 0 <= position(first, 1)[0] <= 9


def test_repeat_runs_count_times():
    result = run("canvas 5 1\nspawn id=1 x=0 y=0\nrepeat 50 3\n. move id=1 right")
    assert position(result, 1) == (3, 0)
    output = lines(result)
    assert "Repeat iteration 1/3 (delay 50 ms)" in output
    assert "Repeat iteration 3/3 (delay 50 ms)" in output
    assert output.count("Waited 50 ms") == 3


def test_repeat_without_count_uses_default():
    result = run("repeat 10\n. wait 1")
    assert lines(result).count("Waited 1 ms") == 10
    result = run("repeat 10\n. wait 1", default_repeat=2)
    assert lines(result).count("Waited 1 ms") == 2


def test_repeat_forever_is_capped():
    result = run("canvas 10 1\nspawn id=1 x=0 y=0\nrepeat 10 forever\n. move id=1 right", forever_limit=5)
    assert position(result, 1) == (5, 0)
    assert "Repeat iteration 5/∞ (delay 10 ms)" in lines(result)
    assert lines(result)[-1] == "Repeat forever stopped after 5 iterations"


def test_if_spatial_relations():
    code = (
        "canvas 3 3\nspawn id=1 x=0 y=1\nspawn id=2 x=1 y=1\n"
        "if id=1 is left id=2\n..true\n. move id=1 up\n..false\n. move id=1 down\n"
        "if id=1 is on id=2\n..true\n. despawn id=1\n..false\n. wait 1"
    )
    result = run(code)
    assert position(result, 1) == (0, 0)
    output = lines(result)
    assert "If condition (left) is true" in output
    assert "If condition (on) is false" in output
    assert output[-1] == "Waited 1 ms"


def test_if_is_compares_ids():
    result = run("if id=1 is id=1\n..true\n. wait 1\nif id=1 is id=2\n..true\n. wait 2")
    assert lines(result) == [
        "If condition (is) is true",
        "Waited 1 ms",
        "If condition (is) is false",
    ]


def test_assign_jumps_into_matching_if():
    code = (
        "canvas 3 3\nspawn id=1 x=0 y=0\n"
        "if id=1 is assigned w\n..true\n. move id=1 right\n"
        "assign w to id=1"
    )
    result = run(code)
    assert result['assignments'] == {'w': 1}
    assert position(result, 1) == (1, 0)
    assert lines(result)[-4:] == [
        "If condition (assigned w) is false",
        "Assigned key 'w' to value 1",
        "(assign-jump) If condition (assigned w) is true",
        "Moved id=1 to (1,0) right",
    ]


def test_assign_jump_skips_other_ids():
    code = (
        "canvas 3 3\nspawn id=1 x=0 y=0\n"
        "if id=2 is assigned w\n..true\n. move id=1 right\n"
        "assign w to id=1"
    )
    result = run(code)
    assert position(result, 1) == (0, 0)


def test_nested_assign_jump_is_not_reentered():
    code = (
        "if id=1 is assigned w\n..true\n. assign w to id=1\n"
        "assign w to id=1"
    )
    result = run(code)
    assert "[INTERPRETER ERROR] Skipping nested assign-jump for key 'w'" in lines(result)


def test_statements_after_soft_errors_still_run():
    result = run("move id=9 right\nspawn id=1 x=0 y=0\nwait 3")
    output = lines(result)
    assert output[0] == "[INTERPRETER ERROR] Object with id=9 does not exist for move"
    assert output[-1] == "Waited 3 ms"


def test_notify_receives_snapshots():
    events = []
    run("canvas 2 2\nspawn id=1 x=0 y=0\nmove id=1 right\ndespawn id=1\nwait 1", notify=events.append)
    assert [e['event'] for e in events] == ['canvas', 'spawn', 'move', 'despawn']
    assert events[1]['objects'] == {1: {'id': 1, 'x': 0, 'y': 0, 'state': 0}}
    assert events[2]['board'][0][1] == ['1']
    assert events[2]['output'].endswith("Moved id=1 to (1,0) right\n")


def test_failing_notify_is_logged():
    def boom(payload):
        raise RuntimeError("boom")

    result = run("canvas 2 2", notify=boom)
    assert lines(result) == [
        "Canvas initialized: 2x2",
        "[INTERPRETER ERROR] Notify callback failed: boom",
    ]


def test_context_is_shared():
    world = World()
    run("canvas 2 2\nspawn id=1 x=1 y=0\nref=a(4)", context=world)
    assert world.objects[1].x == 1
    assert world.variables == {'a': 4}

    interpreter = Interpreter()
    result = interpreter.interpret(parse(tokenize("move id=1 left")), world)
    assert world.objects[1].x == 0
    assert result['board'] is world.board


def test_debug_trace():
    result = run("ref=a(1)\nref=b(ref(a))", debug=True)
    assert "[INTERPRETER] Variable lookup: a = 1" in lines(result)
    plain = run("ref=a(1)\nref=b(ref(a))")
    assert not any(line.startswith("[INTERPRETER]") for line in lines(plain))


def test_second_canvas_keeps_one_object_per_tile():
    result = run("canvas 3 3\nspawn id=1 x=0 y=0\ncanvas 3 3\nspawn id=2 x=0 y=0")
    assert result['board'][0][0] == ['2']
    assert list(result['objects']) == [2]


def test_shrinking_canvas_logs_dropped_objects():
    result = run("canvas 3 3\nspawn id=1 x=0 y=0\nspawn id=2 x=2 y=2\ncanvas 2 2")
    assert list(result['objects']) == [1]
    assert lines(result)[-1] == "Dropped objects outside the canvas: 2"
