import enum
import sys

from rich.console import Console
from rich.pretty import pprint

from cmdbind import *

__prog__ = "cmdbind-demo"


class Mode(enum.Enum):
    fast = 1
    safe = 2
    help = 3


class Options:
    count = Argument(INT, ArgumentFlag.REQUIRED, short="c", help="How many times to run.")
    verbose = Argument(BOOL, help="Print every step.")
    mode = Argument(Mode, default=Mode.safe, help="Run mode.")
    tags = Argument(array(str), help="Labels attached to the run.")
    files = Argument(array(str), positional=True, help="Input files.")


if __name__ == '__main__':
    if parse_help(sys.argv[1:]):
        print(arguments_usage(Options, None), end="")
        sys.exit(0)
    options = Options()
    try:
        parse_arguments(sys.argv[1:], options, reporter=silence, strict=True)
    except ParseExit as exit:
        Console(stderr=True).print(exit)
        sys.exit(1)
    pprint(vars(options))
