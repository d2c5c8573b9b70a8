import csv
import io
import math

import pyarrow as pa
import pyarrow.csv as pa_csv


def normalize_number(value):
    """Collapse integral floats to int so ids print as "2", not "2.0"."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def is_grid_index(value):
    """True for numbers that can address a board row or column."""
    return is_number(value) and math.isfinite(value) and float(value).is_integer()


def board_to_csv(board):
    """Returns the board in CSV format, one row per board row.

    Each cell holds the ids stacked on that tile joined by '|', or an
    empty string for an empty tile. No headers are written.

    Returns:
        str: CSV representation of the board
    """
    if not board:
        return ""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    for row in board:
        writer.writerow(['|'.join(cell) for cell in row])
    return output.getvalue()


def export_board_csv(board, filename):
    with open(filename, 'w', newline='') as f:
        f.write(board_to_csv(board))


def objects_table(objects):
    """Builds a pyarrow Table (id, x, y, state, r, g, b) from an objects mapping.

    r, g and b are the tile colour decoded from the state by state_color().
    """
    records = [objects[key] for key in sorted(objects, key=float)]
    colors = [state_color(o.state) for o in records]
    return pa.table({
        'id': pa.array([float(o.id) for o in records], type=pa.float64()),
        'x': pa.array([float(o.x) for o in records], type=pa.float64()),
        'y': pa.array([float(o.y) for o in records], type=pa.float64()),
        'state': pa.array([_as_float(o.state) for o in records], type=pa.float64()),
        'r': pa.array([c[0] for c in colors], type=pa.uint8()),
        'g': pa.array([c[1] for c in colors], type=pa.uint8()),
        'b': pa.array([c[2] for c in colors], type=pa.uint8()),
    })


def export_objects_csv(objects, filename):
    pa_csv.write_csv(objects_table(objects), filename)


def state_color(state):
    """Decodes an 8-bit RRRGGGBB state into an (r, g, b) triple."""
    state = int(state) if is_number(state) and math.isfinite(state) else 0
    r = ((state >> 5) & 0b111) * 36
    g = ((state >> 2) & 0b111) * 36
    b = (state & 0b11) * 85
    return r, g, b


def _as_float(value):
    return float(value) if is_number(value) else float('nan')


def format_board(board):
    """Human-readable board: column numbers on top, row numbers on the left,
    '.' for an empty tile and stacked ids joined by '|'."""
    if not board:
        return "Board is empty"
    cells = [['|'.join(cell) if cell else '.' for cell in row] for row in board]
    width = max(3, max(len(text) for row in cells for text in row) + 1)
    lines = ["    " + "".join(f"{col:>{width}}" for col in range(len(board[0])))]
    for y, row in enumerate(cells):
        lines.append(f"{y:2d} |" + "".join(f"{text:>{width}}" for text in row))
    return "\n".join(lines)
