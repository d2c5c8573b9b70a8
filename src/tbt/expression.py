# expression.py
# This module defines the ExpressionEvaluator class, which reduces TBT value
# expressions (numbers, labels, variable reads and function calls) to numbers.
# Both the batch and the stepwise interpreter evaluate every value-bearing
# statement field through it.

import math
import random
import re
from functools import reduce

from .ast import Number, LiteralLabel, VariableRead, FunctionCall
from .utils import normalize_number

MAX_EVAL_DEPTH = 32

NUMERIC_LABEL_PATTERN = re.compile(r'^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:e[+-]?\d+)?\s*$', re.I)


class ExpressionEvaluator:
    """
    Evaluator for TBT value expressions.
    Arguments are evaluated left to right before a function is applied.
    Nesting deeper than MAX_EVAL_DEPTH raises RecursionError; callers turn
    that (and any other evaluation error) into a logged value of 0.
    """

    def __init__(self, variables, rng=None, trace=None):
        """
        :param variables: Mapping of variable name to number, read by ref(NAME).
        :param rng: random.Random used by random(lo, hi); the module RNG by default.
        :param trace: Optional callable receiving one debug line per reduction.
        """
        self.variables = variables
        self.rng = rng or random.Random()
        self.trace = trace
        self.functions = {
            'add': self._add,
            'sub': self._sub,
            'mul': self._mul,
            'div': self._div,
            'mod': self._mod,
            'random': self._random,
        }

    def evaluate(self, node, depth=0):
        """
        Reduce an expression node to a number.
        :param node: Expression node, or a raw number / numeric string.
        :param depth: Current nesting depth.
        :return: The value (int where integral), NaN for non-numeric labels,
                 None for a missing node.
        """
        if depth > MAX_EVAL_DEPTH:
            raise RecursionError('Too much recursion in value evaluation')
        if node is None:
            return None
        if isinstance(node, bool):
            return int(node)
        if isinstance(node, (int, float)):
            return normalize_number(node)
        if isinstance(node, str):
            return coerce_label(node)
        if isinstance(node, Number):
            return normalize_number(node.value)
        if isinstance(node, LiteralLabel):
            return coerce_label(node.name)
        if isinstance(node, VariableRead):
            value = self.variables.get(node.name, 0)
            self._trace(f"Variable lookup: {node.name} = {value}")
            return value
        if isinstance(node, FunctionCall):
            return self._call(node, depth)
        self._trace(f"Unknown node type: {type(node).__name__}, returning 0")
        return 0

    def _call(self, node, depth):
        args = [self.evaluate(arg, depth + 1) for arg in node.args]
        if node.name == 'ref':
            return self._ref(node, args)
        function = self.functions.get(node.name)
        if function is None:
            self._trace(f"Unknown function: {node.name}, returning 0")
            return 0
        result = normalize_number(function(args))
        self._trace(f"{node.name}({','.join(str(a) for a in args)}) = {result}")
        return result

    def _ref(self, node, args):
        # ref(label) reads the variable named by the label; any other
        # argument is already a value
        if not node.args:
            return 0
        target = node.args[0]
        if isinstance(target, LiteralLabel):
            value = self.variables.get(target.name, 0)
            self._trace(f"ref({target.name}) = {value}")
            return value
        if isinstance(target, str):
            return self.variables.get(target, 0)
        self._trace(f"ref(dynamic) = {args[0]}")
        return args[0]

    @staticmethod
    def _add(args):
        return sum(args, 0)

    @staticmethod
    def _sub(args):
        if not args:
            return 0
        if len(args) == 1:
            return -args[0]
        return reduce(lambda a, b: a - b, args[1:], args[0])

    @staticmethod
    def _mul(args):
        return reduce(lambda a, b: a * b, args, 1)

    @staticmethod
    def _div(args):
        if not args:
            raise ValueError('div expects at least one argument')

        def divide(a, b):
            if b == 0:
                raise ZeroDivisionError('Division by zero')
            return a / b
        return reduce(divide, args[1:], args[0])

    @staticmethod
    def _mod(args):
        if not args:
            raise ValueError('mod expects at least one argument')

        # Remainder takes the sign of the dividend
        def remainder(a, b):
            if b == 0:
                raise ZeroDivisionError('Modulo by zero')
            return math.fmod(a, b)
        return reduce(remainder, args[1:], args[0])

    def _random(self, args):
        if len(args) < 2:
            raise ValueError('random expects two arguments (lo, hi)')
        lo, hi = args[0], args[1]
        if hi < lo:
            raise ValueError(f'random bounds out of order: {lo} > {hi}')
        return math.floor(self.rng.random() * (hi - lo + 1)) + lo

    def _trace(self, message):
        if self.trace is not None:
            self.trace(message)


def coerce_label(text):
    """Numeric coercion of a literal label; NaN when it is not a number."""
    if NUMERIC_LABEL_PATTERN.match(text):
        return normalize_number(float(text))
    return float('nan')


def evaluate(node, variables=None, rng=None):
    """Evaluate an expression node against a variables mapping."""
    return ExpressionEvaluator(variables if variables is not None else {}, rng=rng).evaluate(node)
