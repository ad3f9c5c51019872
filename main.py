from rich.console import Console
from rich.pretty import pprint

from switchboard import *

__prog__ = "demo"

parser = Parser([
    Group("General"),
    Option("help", "h", type="bool", help="Print this help and exit."),
    Option("verbose", "v", type="arrayOfBool", help="Verbose output. Use multiple times for more."),
    Option("file", "f", help_arg="FILE", completion="file", env="DEMO_FILE", help="File to process."),
    Group("Tuning"),
    Option("count", "c", type="positiveInteger", default="1", help="How many passes to run."),
    Option("since", type="date", help="Only consider entries newer than this date."),
    Option("completion", type="bool", hidden=True, help="Print a Bash completion script."),
])


if __name__ == '__main__':
    try:
        results = parser.parse()
    except SwitchboardError as error:
        Console(stderr=True).print(error)
        raise SystemExit(1) from None

    if results.get("help"):
        print("usage: %s [OPTIONS] [ARGS...]\n\nOptions:" % __prog__)
        print(parser.help(include_env=True, include_default=True), end="")
    elif results.get("completion"):
        print(parser.bash_completion(name=__prog__, argtypes=["file"]), end="")
    else:
        pprint(results)
