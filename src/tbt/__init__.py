"""
TBT Interpreter

A tile-based language for placing, moving and reacting to objects on a grid,
with a batch interpreter and a tick-driven stepwise interpreter.
"""

from .lexer import tokenize
from .parser import parse
from .formatter import unparse
from .interpreter import Interpreter, interpret
from .stepwise import StepInterpreter
from .world import World
from .main import run_tbt

__version__ = "0.1.0"
__all__ = ["run_tbt", "tokenize", "parse", "unparse", "interpret", "Interpreter",
           "StepInterpreter", "World"]
