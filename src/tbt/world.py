"""
World state for TBT programs.

A World owns the board (rows of tiles, each tile a list of object id
strings), the object records, the variables written by ref=NAME(...) and the
key assignments. Interpreters mutate one World in place; nested runs share it
by reference.

Board operations raise ValueError for anything the program got wrong
(unknown id, out-of-bounds target, ...). The interpreters catch these and log
them, so a bad statement never stops a run.
"""

import copy

from .utils import normalize_number, is_number, is_grid_index

# Relative moves as (dx, dy); over/under are aliases of up/down
DIRECTION_DELTAS = {
    'left': (-1, 0),
    'right': (1, 0),
    'up': (0, -1),
    'down': (0, 1),
    'over': (0, -1),
    'under': (0, 1),
}

SPATIAL_RELATIONS = ('is', 'on', 'under', 'over', 'left', 'right')


class TileObject:
    """An object living on the board."""

    def __init__(self, id, x, y, state=0):
        self.id = id
        self.x = x
        self.y = y
        self.state = state

    @classmethod
    def from_dict(cls, data):
        return cls(data['id'], data['x'], data['y'], data.get('state', 0))

    def to_dict(self):
        return {'id': self.id, 'x': self.x, 'y': self.y, 'state': self.state}

    def __eq__(self, other):
        return isinstance(other, TileObject) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"TileObject(id={self.id}, x={self.x}, y={self.y}, state={self.state})"


class World:
    def __init__(self, canvas=None, board=None, objects=None, variables=None, assignments=None):
        self.canvas = canvas if canvas is not None else {'width': 0, 'height': 0}
        self.board = board if board is not None else []
        self.objects = objects if objects is not None else {}
        self.variables = variables if variables is not None else {}
        self.assignments = assignments if assignments is not None else {}
        for key, value in list(self.objects.items()):
            if isinstance(value, dict):
                self.objects[key] = TileObject.from_dict(value)

    @classmethod
    def from_context(cls, context=None):
        """Wrap a caller-supplied context without copying it.

        Args:
            context: None, a World, or a mapping with any of the keys
                canvas, board, objects, variables, assignments
        """
        if context is None:
            return cls()
        if isinstance(context, World):
            return context
        return cls(
            canvas=context.get('canvas'),
            board=context.get('board'),
            objects=context.get('objects'),
            variables=context.get('variables'),
            assignments=context.get('assignments'),
        )

    @property
    def width(self):
        return self.canvas.get('width', 0)

    @property
    def height(self):
        return self.canvas.get('height', 0)

    def size_text(self):
        return f"{self.width}x{self.height}"

    def init_board(self, width, height):
        """Set the canvas size and replace the board with empty tiles.

        Objects that still fit are put back on their tiles; the rest are
        dropped.

        Returns:
            list: ids of the dropped objects
        """
        if not (is_grid_index(width) and is_grid_index(height)):
            raise ValueError(f"Invalid board dimensions: width={width}, height={height}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Board dimensions must be positive: width={width}, height={height}")
        self.canvas['width'] = int(width)
        self.canvas['height'] = int(height)
        # Replace in place so callers sharing the list see the new board
        self.board[:] = [[[] for _ in range(int(width))] for _ in range(int(height))]

        dropped = []
        for id, obj in list(self.objects.items()):
            if self.in_bounds(obj.x, obj.y):
                self.cell(obj.x, obj.y).append(str(id))
            else:
                del self.objects[id]
                dropped.append(str(id))
        return dropped

    def in_bounds(self, x, y):
        if not (is_grid_index(x) and is_grid_index(y)):
            return False
        return 0 <= x < len(self.board[0] if self.board else []) and 0 <= y < len(self.board)

    def cell(self, x, y):
        return self.board[int(y)][int(x)]

    def spawn(self, id, x, y, state=0):
        """Place (or re-place) an object.

        The id is first scrubbed from every tile, then every occupant of the
        destination tile is evicted (last writer wins) and its record dropped.

        Returns:
            list: ids evicted from the destination tile
        """
        id = _require_id(id, 'spawn')
        if not (is_grid_index(x) and is_grid_index(y)):
            raise ValueError(f"Object has invalid coordinates: x={x}, y={y}")
        x, y = int(x), int(y)
        if not self.in_bounds(x, y):
            raise ValueError(f"Object placement out of bounds: id={id} at ({x},{y}), "
                             f"board size: {self.size_text()}")

        self._scrub(id)
        tile = self.cell(x, y)
        evicted = [oid for oid in tile if oid != str(id)]
        for oid in evicted:
            self.objects.pop(normalize_number(_parse_id(oid)), None)
        tile[:] = [str(id)]
        self.objects[id] = TileObject(id, x, y, normalize_number(state))
        return evicted

    def despawn(self, id):
        """Remove an object from the board and from the object records.

        Returns:
            TileObject: the removed record
        """
        id = _require_id(id, 'despawn')
        obj = self.objects.get(id)
        if obj is None:
            raise ValueError(f"Attempted to remove non-existent object id={id}")
        if self.in_bounds(obj.x, obj.y) and str(id) in self.cell(obj.x, obj.y):
            self.cell(obj.x, obj.y).remove(str(id))
        else:
            self._scrub(id)
        del self.objects[id]
        return obj

    def target_position(self, obj, rel=None, x=None, y=None):
        """Where a move would take obj: relative step first, explicit x/y win."""
        new_x, new_y = obj.x, obj.y
        if rel:
            if rel not in DIRECTION_DELTAS:
                raise ValueError(f"Unknown direction: {rel}")
            dx, dy = DIRECTION_DELTAS[rel]
            new_x, new_y = obj.x + dx, obj.y + dy
        if x is not None:
            new_x = x
        if y is not None:
            new_y = y
        return new_x, new_y

    def move(self, id, rel=None, x=None, y=None, set=None, swap=False):
        """Move an existing object.

        An out-of-bounds target is rejected and nothing changes. With swap,
        objects already on the target tile take the mover's old tile.

        Returns:
            tuple: ((old_x, old_y), (new_x, new_y), swapped_ids)
        """
        id = _require_id(id, 'move')
        obj = self.objects.get(id)
        if obj is None:
            raise ValueError(f"Object with id={id} does not exist for move")
        new_x, new_y = self.target_position(obj, rel, x, y)
        if not (is_grid_index(new_x) and is_grid_index(new_y)):
            raise ValueError(f"Move failed: invalid coordinates newX={new_x}, newY={new_y}")
        new_x, new_y = int(new_x), int(new_y)
        if not self.in_bounds(new_x, new_y):
            raise ValueError(f"Move failed: out of bounds ({new_x},{new_y}), "
                             f"board size: {self.size_text()}")

        old_x, old_y = obj.x, obj.y
        old_tile = self.cell(old_x, old_y) if self.in_bounds(old_x, old_y) else None
        if old_tile is not None and str(id) in old_tile:
            old_tile.remove(str(id))
        else:
            self._scrub(id)

        swapped = []
        target = self.cell(new_x, new_y)
        if swap and old_tile is not None and (new_x, new_y) != (old_x, old_y):
            swapped = list(target)
            target.clear()
            for oid in swapped:
                old_tile.append(oid)
                other = self.objects.get(normalize_number(_parse_id(oid)))
                if other is not None:
                    other.x, other.y = old_x, old_y

        obj.x, obj.y = new_x, new_y
        target.append(str(id))
        if set is not None:
            obj.state = normalize_number(set)
        return (old_x, old_y), (new_x, new_y), swapped

    def relation_holds(self, left_id, relation, right_id):
        """Test a spatial relation between two objects (left = A, right = B)."""
        if relation == 'is':
            return is_number(left_id) and is_number(right_id) and left_id == right_id
        if relation not in SPATIAL_RELATIONS:
            raise ValueError(f"Unknown relation: {relation}")
        a = self.objects.get(left_id) if is_number(left_id) else None
        b = self.objects.get(right_id) if is_number(right_id) else None
        if a is None or b is None:
            return False
        if relation == 'on':
            return a.x == b.x and a.y == b.y
        if relation == 'under':
            return a.x == b.x and a.y == b.y + 1
        if relation == 'over':
            return a.x == b.x and a.y == b.y - 1
        if relation == 'left':
            return a.y == b.y and a.x == b.x - 1
        return a.y == b.y and a.x == b.x + 1

    def snapshot(self):
        """Plain-data copy of the canvas, board and objects."""
        return {
            'canvas': dict(self.canvas),
            'board': copy.deepcopy(self.board),
            'objects': {key: obj.to_dict() for key, obj in self.objects.items()},
        }

    def _scrub(self, id):
        for row in self.board:
            for tile in row:
                if str(id) in tile:
                    tile[:] = [oid for oid in tile if oid != str(id)]


def _parse_id(text):
    try:
        return int(text)
    except ValueError:
        return float(text)


def _require_id(id, action):
    if not is_number(id):
        raise ValueError(f"Invalid id for {action}: {id}")
    return normalize_number(id)
