import sys
import argparse
import os

from .main import run_tbt
from .interpreter import DEFAULT_FOREVER_LIMIT
from .stepwise import PRESSED
from .utils import export_board_csv, export_objects_csv


def parse_key_schedule(text):
    """Turn "2:w,5:-w" into {2: {'w': 1}, 5: {'w': 0}}.

    A key without '-' is pressed on that tick, with '-' it is released.
    """
    schedule = {}
    if not text:
        return schedule
    for item in text.split(','):
        item = item.strip()
        if not item:
            continue
        tick, sep, key = item.partition(':')
        if not sep or not tick.strip().isdigit() or not key.strip().lstrip('-'):
            raise ValueError(f"Invalid key schedule entry: '{item}'")
        key = key.strip()
        value = PRESSED
        if key.startswith('-'):
            key, value = key[1:], 0
        schedule.setdefault(int(tick), {})[key] = value
    return schedule


def limit_value(text):
    """argparse type for --forever-limit; 'none' removes the cap."""
    if text.lower() == 'none':
        return None
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError("limit must be >= 0")
    return value


def main(argv=None):
    parser = argparse.ArgumentParser(description='TBT grid language interpreter')
    parser.add_argument('filename', help='Path to the .tbt file to execute')
    parser.add_argument('--debug', action='store_true', help='Add interpreter trace lines to the output')
    parser.add_argument('--steps', type=int, help='Run the stepwise interpreter for at most N ticks')
    parser.add_argument('--keys', help='Key schedule for --steps, e.g. "2:w,5:-w"')
    parser.add_argument('--forever-limit', type=limit_value, default=DEFAULT_FOREVER_LIMIT,
                        help="Iterations before a batch 'repeat ... forever' stops ('none' for no cap)")
    parser.add_argument('--csv', help='Write the final board to this CSV file')
    parser.add_argument('--objects-csv', help='Write the final objects table to this CSV file')

    args = parser.parse_args(argv)

    try:
        with open(args.filename, 'r') as file:
            code = file.read()
        keys = parse_key_schedule(args.keys)

        result = run_tbt(code, debug=args.debug, steps=args.steps, keys=keys,
                         forever_limit=args.forever_limit)
        if result is None:
            sys.exit(1)

        if args.csv:
            export_board_csv(result['board'], args.csv)
            print(f"\nBoard saved to: {os.path.abspath(args.csv)}")
        if args.objects_csv:
            export_objects_csv(result['objects'], args.objects_csv)
            print(f"Objects saved to: {os.path.abspath(args.objects_csv)}")

    except FileNotFoundError:
        print(f"Error: File '{args.filename}' not found")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
