# Abstract Syntax Tree (AST) Node classes
# These classes represent the structure of a TBT program after parsing
class Node:
    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        fields = ', '.join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({fields})"


# ---- Expressions ----

# Represents a numeric literal (e.g., 5)
class Number(Node):
    def __init__(self, value):
        self.value = value  # Numeric value


# Represents a bare identifier used as a literal label (e.g., the w in `assign w`)
# Never a variable read; variables are only read through ref(NAME)
class LiteralLabel(Node):
    def __init__(self, name):
        self.name = name


# Represents a variable read (e.g., ref(score))
class VariableRead(Node):
    def __init__(self, name):
        self.name = name  # Variable name


# Represents a function call (e.g., [add 1 ref(x)])
class FunctionCall(Node):
    def __init__(self, name, args):
        self.name = name  # One of add, sub, mul, div, mod, random, ref
        self.args = args  # List of expression nodes


# ---- Statements ----

# canvas W H
class Canvas(Node):
    def __init__(self, width, height):
        self.width = width
        self.height = height


# ref=NAME(VALUE)
class RefAssign(Node):
    def __init__(self, name, value):
        self.name = name    # Variable name
        self.value = value  # Expression to be assigned


# A standalone expression, evaluated only for its logged result
class ExprStatement(Node):
    def __init__(self, expr):
        self.expr = expr


# spawn id=V x=V y=V state=V
class Spawn(Node):
    def __init__(self, id, x, y, state):
        self.id = id
        self.x = x
        self.y = y
        self.state = state


# despawn id=N (N is always a literal number)
class Despawn(Node):
    def __init__(self, id):
        self.id = id


# move id=V [dir] [x=V] [y=V] [set=V] [swap]
class Move(Node):
    def __init__(self, id, x=None, y=None, rel=None, set=None, swap=False):
        self.id = id
        self.x = x          # Absolute column, or None
        self.y = y          # Absolute row, or None
        self.rel = rel      # left/right/up/down/over/under, or None
        self.set = set      # New state expression, or None
        self.swap = swap


# wait N
class Wait(Node):
    def __init__(self, duration):
        self.duration = duration  # Milliseconds


# repeat DELAY [COUNT|forever] followed by .-prefixed statements
class Repeat(Node):
    def __init__(self, delay, count, block):
        self.delay = delay  # Milliseconds between iterations
        self.count = count  # int, 'forever' or None
        self.block = block  # List of statements


# if id=L is REL [id=R | KEY] ..true ... ..false ...
class If(Node):
    def __init__(self, left_id, relation, right_id=None, assigned_key=None,
                 true_block=None, false_block=None):
        self.left_id = left_id
        self.relation = relation          # is/on/under/over/left/right/assigned
        self.right_id = right_id          # Only for spatial relations
        self.assigned_key = assigned_key  # Only for 'assigned'
        self.true_block = true_block if true_block is not None else []
        self.false_block = false_block if false_block is not None else []


# assign KEY to ref(NAME) | id=V
class Assign(Node):
    def __init__(self, key, value):
        self.key = key      # External key name (e.g., w)
        self.value = value  # Expression yielding the object id
