"""
Stepwise (tick-driven) interpreter for real-time input.

Each top-level `repeat` becomes a process. Every call to step() first fires
the key-press interrupts, then advances every unfinished process by exactly
one iteration of its block. An external driver (an animation loop, the CLI)
decides when the next tick happens.
"""

from .ast import Canvas, RefAssign, Spawn, Repeat, If, Assign
from .interpreter import Executor, FOREVER

STEPWISE_DEFAULT_COUNT = 1  # Iterations for `repeat D` without a count
KEY_DIRECTIONS = {'w': 'up', 'a': 'left', 's': 'down', 'd': 'right'}
PRESSED = 1


class Process:
    """A top-level repeat block plus its iteration counter."""

    def __init__(self, node):
        self.node = node
        self.iteration = 0

    @property
    def limit(self):
        if self.node.count == FOREVER:
            return None
        if self.node.count is None:
            return STEPWISE_DEFAULT_COUNT
        return self.node.count

    @property
    def finished(self):
        return self.limit is not None and self.iteration >= self.limit

    def progress_text(self):
        limit = '∞' if self.limit is None else self.limit
        return f"{self.iteration + 1}/{limit}"


class StepInterpreter(Executor):
    ERROR_PREFIX = '[TBT-STEPWISE]'
    TRACE_PREFIX = '[TBT-STEPWISE]'

    def __init__(self, statements, notify=None, debug=False, rng=None):
        super().__init__(notify=notify, debug=debug, rng=rng)
        self.statements = statements
        self.processes = []
        self.initialized = False
        self.previous_assignments = {}
        # Statements allowed inside blocks; canvas only runs during init
        del self.handlers[Canvas]
        self.handlers[If] = self._if
        self.init_handlers = {
            Canvas: self._canvas,
            Spawn: self._spawn,
            Assign: self._init_assign,
            RefAssign: self._ref_assign,
        }
        self._trace(f"StepInterpreter created with {len(statements)} AST nodes")

    @property
    def assignments(self):
        return self.world.assignments

    def init(self):
        """Run the setup statements once and build one process per repeat."""
        if self.initialized:
            return
        self._trace("Initializing...")
        for node in self.statements:
            if type(node) in self.init_handlers:
                self._run(node, self.init_handlers)
            else:
                self._trace(f"Skipping non-init node type: {type(node).__name__}")
        self.processes = [Process(node) for node in self.statements if isinstance(node, Repeat)]
        self._trace(f"Found {len(self.processes)} repeat blocks to process")
        self.initialized = True

    def step(self, assignments=None):
        """Advance one tick.

        Args:
            assignments (dict): key -> value for this tick; a key whose value
                becomes 1 fires its interrupts once

        Returns:
            dict: done, output, board, objects, canvas
        """
        try:
            if not self.initialized:
                self.init()
            for key, value in (assignments or {}).items():
                if self.world.assignments.get(key) != value:
                    self._trace(f"Assignment change: {key} {self.world.assignments.get(key)} -> {value}")
            self.world.assignments.update(assignments or {})

            self._fire_interrupts()
            self.previous_assignments = dict(self.world.assignments)

            any_active = False
            for process in self.processes:
                if process.finished:
                    continue
                self._trace(f"Processing repeat iteration {process.progress_text()}")
                self._run_block(process.node.block)
                process.iteration += 1
                any_active = True
            return self.make_result(done=not any_active)
        except Exception as e:
            self._log_error(f"Error in step: {type(e).__name__}: {e}")
            return self.make_result(done=True)

    def move_object_by_key(self, key):
        """Move the object bound to a w/a/s/d key one tile in that direction."""
        direction = KEY_DIRECTIONS.get(key)
        if direction is None:
            return
        id = self.world.assignments.get(key)
        if id is None or id not in self.world.objects:
            return
        try:
            self.world.move(id, rel=direction)
        except ValueError as e:
            self._log_error(str(e))
            return
        self._emit(f"[TBT] Moved id={id} {direction} by key '{key}'")
        self._notify('move')

    def make_result(self, done):
        return {
            'done': done,
            'output': self.output,
            'board': self.world.board,
            'objects': self.world.objects,
            'canvas': self.world.canvas,
        }

    # Top-level lookups used by interrupts and polling
    def _bound_ids(self, key):
        return [self._value(node.value) for node in self.statements
                if isinstance(node, Assign) and node.key == key]

    def _assigned_ifs(self, key):
        return [node for node in self.statements
                if isinstance(node, If) and node.relation == 'assigned' and node.assigned_key == key]

    def _fire_interrupts(self):
        for key, value in list(self.world.assignments.items()):
            if value != PRESSED or self.previous_assignments.get(key) == PRESSED:
                continue
            self._trace(f"Key press edge detected: {key}")
            for bound_id in self._bound_ids(key):
                for node in self._assigned_ifs(key):
                    if self._value(node.left_id) == bound_id:
                        self._trace(f"Interrupt: running true block of if assigned {key} for id={bound_id}")
                        self._run_block(node.true_block)

    def _key_held_for(self, key, id):
        # Polled every tick: the key is down and a top-level assign binds it to id
        if self.world.assignments.get(key) != PRESSED:
            return False
        return any(bound_id == id for bound_id in self._bound_ids(key))

    def _init_assign(self, stmt):
        value = self._value(stmt.value)
        self.world.assignments[stmt.key] = value
        self._trace(f"Assignment during init: key={stmt.key} -> value={value}")

    def _if(self, stmt):
        left_id = self._value(stmt.left_id)
        if stmt.relation == 'assigned':
            condition = self._key_held_for(stmt.assigned_key, left_id)
            label = f"assigned {stmt.assigned_key}"
        else:
            condition = self._spatial_condition(stmt, left_id)
            label = stmt.relation
        self._trace(f"If condition ({label}) is {'true' if condition else 'false'}")
        self._run_block(stmt.true_block if condition else stmt.false_block)

    def _unhandled(self, stmt):
        self._log_error(f"Unsupported statement in stepwise block: {type(stmt).__name__}")
