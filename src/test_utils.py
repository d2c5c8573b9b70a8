"""Tests for board export helpers."""

import math

import pyarrow as pa
import pytest

from tbt.utils import (
    normalize_number, is_number, is_grid_index, board_to_csv, export_board_csv,
    objects_table, export_objects_csv, state_color, format_board
)
from tbt.world import TileObject


def test_number_helpers():
    assert normalize_number(3.0) == 3 and isinstance(normalize_number(3.0), int)
    assert normalize_number(2.5) == 2.5
    assert math.isinf(normalize_number(float('inf')))
    assert is_number(1) and is_number(1.5)
    assert not is_number(True)
    assert not is_number(float('nan'))
    assert not is_number('1')
    assert is_grid_index(2.0)
    assert not is_grid_index(2.5)
    assert not is_grid_index(float('inf'))


def test_board_to_csv():
    board = [[['1'], []], [[], ['2', '3']]]
    assert board_to_csv(board) == "1,\n,2|3\n"
    assert board_to_csv([]) == ""


def test_export_board_csv(tmp_path):
    path = tmp_path / "board.csv"
    export_board_csv([[['7'], []]], str(path))
    assert path.read_text() == "7,\n"


def test_objects_table_is_sorted_by_id():
    objects = {
        10: TileObject(10, 1, 2, 5),
        2: TileObject(2, 0, 0, 0),
        3: TileObject(3, 2, 2, float('nan')),
    }
    table = objects_table(objects)
    assert isinstance(table, pa.Table)
    assert table.column_names == ['id', 'x', 'y', 'state', 'r', 'g', 'b']
    assert table.schema.field('id').type == pa.float64()
    assert table.column('id').to_pylist() == [2.0, 3.0, 10.0]
    assert table.column('x').to_pylist() == [0.0, 2.0, 1.0]
    states = table.column('state').to_pylist()
    assert states[0] == 0.0 and states[2] == 5.0
    assert math.isnan(states[1])


def test_objects_table_empty():
    assert objects_table({}).num_rows == 0


def test_export_objects_csv(tmp_path):
    path = tmp_path / "objects.csv"
    export_objects_csv({1: TileObject(1, 2, 3, 4)}, str(path))
    lines = path.read_text().splitlines()
    assert len(lines) == 2
    assert 'id' in lines[0] and 'state' in lines[0]
    assert lines[1].startswith('1')


@pytest.mark.parametrize("state, rgb", [
    (0, (0, 0, 0)),
    (0b11100000, (252, 0, 0)),
    (0b00011100, (0, 252, 0)),
    (0b00000011, (0, 0, 255)),
    (255, (252, 252, 255)),
    (float('nan'), (0, 0, 0)),
    (float('inf'), (0, 0, 0)),
])
def test_state_color(state, rgb):
    assert state_color(state) == rgb


def test_format_board():
    text = format_board([[['1'], []], [[], ['2', '3']]])
    lines = text.splitlines()
    assert len(lines) == 3
    assert lines[1].startswith(" 0 |")
    assert lines[1].split('|', 1)[1].split() == ['1', '.']
    assert '2|3' in lines[2]
    assert format_board([]) == "Board is empty"


def test_objects_table_carries_state_colors():
    objects = {1: TileObject(1, 0, 0, 0b11100011), 2: TileObject(2, 1, 0, float('nan'))}
    table = objects_table(objects)
    assert table.schema.field('r').type == pa.uint8()
    assert table.column('r').to_pylist() == [252, 0]
    assert table.column('g').to_pylist() == [0, 0]
    assert table.column('b').to_pylist() == [255, 0]
