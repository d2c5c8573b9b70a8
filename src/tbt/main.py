from .lexer import Lexer
from .parser import Parser
from .interpreter import Interpreter, DEFAULT_FOREVER_LIMIT
from .stepwise import StepInterpreter
from .utils import format_board


def run_tbt(code, debug=False, steps=None, keys=None, forever_limit=DEFAULT_FOREVER_LIMIT,
            notify=None, rng=None):
    """Run a TBT program.

    Args:
        code (str): The source code to execute
        debug (bool): If True, the interpreter adds trace lines to its output
        steps (int): Run the stepwise interpreter for at most this many ticks
            instead of a single batch run
        keys (dict): tick index -> {key: value} assignments fed to step()
        forever_limit (int): Iteration cap for `repeat ... forever` in batch mode
        notify (callable): Receives a snapshot after every mutating statement
        rng (random.Random): Source of randomness for random(lo, hi)

    Returns:
        dict: The interpreter result, or None if the program does not parse
    """
    print("Input code:")
    print(code)
    print("\nTokenizing...")

    try:
        tokens = Lexer(code).tokenize()
        if debug:
            print("Tokens:", [str(t) for t in tokens])

        print("\nParsing...")
        ast = Parser(tokens).parse()
    except SyntaxError as e:
        print(f"Error: {e}")
        return None

    if steps is None:
        print("\nInterpreting...")
        interpreter = Interpreter(notify=notify, debug=debug, rng=rng, forever_limit=forever_limit)
        result = interpreter.interpret(ast)
    else:
        print(f"\nStepping (up to {steps} ticks)...")
        result = run_steps(ast, steps, keys=keys, notify=notify, debug=debug, rng=rng)

    print("\nOutput:")
    print(result['output'], end='')
    print("\nBoard:")
    print(format_board(result['board']))
    return result


def run_steps(ast, steps, keys=None, **options):
    """Drive a StepInterpreter for up to `steps` ticks, stopping when done.

    Returns:
        dict: The last step() result plus the number of ticks run
    """
    interpreter = StepInterpreter(ast, **options)
    interpreter.init()
    keys = keys or {}
    result = None
    ticks = 0
    for tick in range(steps):
        result = interpreter.step(keys.get(tick, {}))
        ticks += 1
        if result['done']:
            break
    if result is None:
        result = interpreter.make_result(done=not interpreter.processes)
    result['ticks'] = ticks
    return result
