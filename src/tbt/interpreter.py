import itertools

from .ast import (
    Canvas, RefAssign, ExprStatement, Spawn, Despawn, Move, Wait, Repeat, If, Assign
)
from .expression import ExpressionEvaluator
from .world import World
from .utils import is_number, normalize_number

DEFAULT_REPEAT_COUNT = 10     # Iterations for `repeat D` without a count
DEFAULT_FOREVER_LIMIT = 1000  # Iterations after which a batch `forever` stops
FOREVER = 'forever'


class Executor:
    """Statement execution shared by the batch and the stepwise interpreter.

    Holds the World, the expression evaluator and the running output log.
    Every statement runs inside _run(); a ValueError is a fault in the
    program and is logged as an error line, anything else is logged as an
    interpreter error. Neither stops the run.
    """

    ERROR_PREFIX = '[INTERPRETER ERROR]'
    TRACE_PREFIX = '[INTERPRETER]'

    def __init__(self, world=None, notify=None, debug=False, rng=None):
        self.world = world if world is not None else World()
        self.notify = notify
        self.debug = debug
        self.rng = rng
        self.lines = []
        self.evaluator = self._make_evaluator()
        self.handlers = {
            Canvas: self._canvas,
            RefAssign: self._ref_assign,
            ExprStatement: self._expr,
            Spawn: self._spawn,
            Despawn: self._despawn,
            Move: self._move,
            Wait: self._wait,
        }

    def _make_evaluator(self):
        return ExpressionEvaluator(self.world.variables, rng=self.rng,
                                   trace=self._trace if self.debug else None)

    @property
    def output(self):
        return ''.join(line + '\n' for line in self.lines)

    # ---- logging ----

    def _emit(self, line):
        self.lines.append(line)

    def _log_error(self, message):
        self.lines.append(f"{self.ERROR_PREFIX} {message}")

    def _trace(self, message):
        if self.debug:
            self.lines.append(f"{self.TRACE_PREFIX} {message}")

    def _notify(self, event):
        if self.notify is None:
            return
        payload = self.world.snapshot()
        payload['event'] = event
        payload['output'] = self.output
        try:
            self.notify(payload)
        except Exception as e:
            self._log_error(f"Notify callback failed: {e}")

    # ---- execution ----

    def _run(self, stmt, handlers=None):
        handler = (handlers or self.handlers).get(type(stmt))
        if handler is None:
            self._unhandled(stmt)
            return
        try:
            handler(stmt)
        except ValueError as e:
            self._log_error(str(e))
        except Exception as e:
            self._emit(f"Interpreter Error: {type(e).__name__}: {e}")

    def _unhandled(self, stmt):
        self._log_error(f"Unknown statement: {stmt!r}")

    def _run_block(self, block):
        for stmt in block:
            self._run(stmt)

    def _value(self, node):
        """Evaluate a value; evaluation failures are logged and give 0."""
        try:
            return self.evaluator.evaluate(node)
        except Exception as e:
            self._log_error(f"Error evaluating value: {e}")
            return 0

    def _optional_value(self, node):
        return self._value(node) if node is not None else None

    # ---- statements ----

    def _canvas(self, stmt):
        dropped = self.world.init_board(stmt.width, stmt.height)
        self._emit(f"Canvas initialized: {stmt.width}x{stmt.height}")
        if dropped:
            self._emit(f"Dropped objects outside the canvas: {','.join(dropped)}")
        self._notify('canvas')

    def _ref_assign(self, stmt):
        value = self._value(stmt.value)
        self.world.variables[stmt.name] = value
        self._emit(f"Variable {stmt.name} set to {value}")

    def _expr(self, stmt):
        self._emit(f"Result: {self._value(stmt.expr)}")

    def _spawn(self, stmt):
        id = self._value(stmt.id)
        x = self._value(stmt.x)
        y = self._value(stmt.y)
        state = self._value(stmt.state)
        evicted = self.world.spawn(id, x, y, state)
        obj = self.world.objects[normalize_number(id)]
        if evicted:
            self._emit(f"Replaced existing objects {','.join(evicted)} with id={obj.id} at ({obj.x},{obj.y})")
        self._emit(f"Spawned id={obj.id} at ({obj.x},{obj.y}) state={obj.state}")
        self._notify('spawn')

    def _despawn(self, stmt):
        obj = self.world.despawn(self._value(stmt.id))
        self._emit(f"Despawned id={obj.id}")
        self._notify('despawn')

    def _move(self, stmt):
        id = self._value(stmt.id)
        x = self._optional_value(stmt.x)
        y = self._optional_value(stmt.y)
        state = self._optional_value(stmt.set)
        _, (new_x, new_y), _ = self.world.move(id, rel=stmt.rel, x=x, y=y, set=state, swap=stmt.swap)
        obj = self.world.objects[normalize_number(id)]
        line = f"Moved id={obj.id} to ({new_x},{new_y})"
        if stmt.rel:
            line += f" {stmt.rel}"
        if state is not None:
            line += f" set state={obj.state}"
        if stmt.swap:
            line += " with swap"
        self._emit(line)
        self._notify('move')

    def _wait(self, stmt):
        if not is_number(stmt.duration):
            raise ValueError(f"Invalid duration for wait: {stmt.duration}")
        self._emit(f"Waited {stmt.duration} ms")

    def _spatial_condition(self, stmt, left_id):
        right_id = self._value(stmt.right_id)
        try:
            return self.world.relation_holds(left_id, stmt.relation, right_id)
        except ValueError as e:
            self._log_error(str(e))
            return False


class Interpreter(Executor):
    """Batch interpreter: runs a whole program once, top to bottom.

    `repeat` blocks run in an explicit loop over the shared World.
    `repeat ... forever` stops after forever_limit iterations (None lets it
    run without bound).
    """

    def __init__(self, notify=None, debug=False, rng=None,
                 forever_limit=DEFAULT_FOREVER_LIMIT, default_repeat=DEFAULT_REPEAT_COUNT):
        super().__init__(notify=notify, debug=debug, rng=rng)
        self.forever_limit = forever_limit
        self.default_repeat = default_repeat
        self.program = []
        self._jumping = set()
        self.handlers.update({
            Repeat: self._repeat,
            If: self._if,
            Assign: self._assign,
        })

    def interpret(self, statements, context=None):
        """Interprets and executes the AST statements.

        Args:
            statements (list): Statements produced by the parser
            context: Optional World or mapping (canvas, board, objects,
                variables, assignments) to run against; it is mutated in place

        Returns:
            dict: output, board, objects, canvas, variables, assignments
        """
        self.world = World.from_context(context)
        self.evaluator = self._make_evaluator()
        self.lines = []
        self.program = statements
        self._run_block(statements)
        return {
            'output': self.output,
            'board': self.world.board,
            'objects': self.world.objects,
            'canvas': self.world.canvas,
            'variables': self.world.variables,
            'assignments': self.world.assignments,
        }

    def _repeat(self, stmt):
        if stmt.count == FOREVER:
            iterations = itertools.count() if self.forever_limit is None else range(self.forever_limit)
            label = '∞'
        else:
            count = self.default_repeat if stmt.count is None else stmt.count
            if not is_number(count) or count < 0:
                raise ValueError(f"Invalid repeat count: {stmt.count}")
            iterations = range(int(count))
            label = str(int(count))

        done = 0
        for i in iterations:
            self._emit(f"Repeat iteration {i + 1}/{label} (delay {stmt.delay} ms)")
            self._run_block(stmt.block)
            self._emit(f"Waited {stmt.delay} ms")
            done += 1
        if stmt.count == FOREVER:
            self._emit(f"Repeat forever stopped after {done} iterations")

    def _if(self, stmt):
        left_id = self._value(stmt.left_id)
        if stmt.relation == 'assigned':
            if not stmt.assigned_key:
                raise ValueError("Malformed AST: missing assigned_key in 'assigned' relation")
            assignments = self.world.assignments
            condition = stmt.assigned_key in assignments and assignments[stmt.assigned_key] == left_id
            label = f"assigned {stmt.assigned_key}"
        else:
            condition = self._spatial_condition(stmt, left_id)
            label = stmt.relation
        self._emit(f"If condition ({label}) is {'true' if condition else 'false'}")
        self._run_block(stmt.true_block if condition else stmt.false_block)

    def _assign(self, stmt):
        value = self._value(stmt.value)
        self.world.assignments[stmt.key] = value
        self._emit(f"Assigned key '{stmt.key}' to value {value}")

        # Assigning a key jumps straight into every top-level
        # `if ... is assigned KEY` whose id matches
        if stmt.key in self._jumping:
            self._log_error(f"Skipping nested assign-jump for key '{stmt.key}'")
            return
        self._jumping.add(stmt.key)
        try:
            for node in self.program:
                if isinstance(node, If) and node.relation == 'assigned' and node.assigned_key == stmt.key:
                    if self._value(node.left_id) == value:
                        self._emit(f"(assign-jump) If condition (assigned {stmt.key}) is true")
                        self._run_block(node.true_block)
        finally:
            self._jumping.discard(stmt.key)


def interpret(statements, context=None, **options):
    """Run a parsed TBT program once.

    Args:
        statements (list): AST from parse()
        context: Optional World or mapping shared with the caller
        **options: notify, debug, rng, forever_limit, default_repeat

    Returns:
        dict: output, board, objects, canvas, variables, assignments
    """
    return Interpreter(**options).interpret(statements, context)
