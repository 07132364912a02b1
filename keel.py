import asyncio
import sys
from pathlib import Path

from keel.keel_config import load_config
from keel.keel_console import Console
from keel.keel_errors import KeelError
from keel.keel_repl import ainput

USAGE = "usage: keel.py [--network NAME] [--config PATH] [--no-aliases]"


def parse_args(argv):
    """Tiny flag parser: --network NAME, --config PATH, --no-aliases."""
    opts = {"network": None, "config_file": None, "no_aliases": False}
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg in ("--network", "--config"):
            if not args:
                raise SystemExit(f"{arg} needs a value\n{USAGE}")
            opts["network" if arg == "--network" else "config_file"] = args.pop(0)
        elif arg == "--no-aliases":
            opts["no_aliases"] = True
        elif arg in ("-h", "--help"):
            print(USAGE)
            raise SystemExit(0)
        else:
            raise SystemExit(f"Unknown argument: {arg}\n{USAGE}")
    return opts


async def main(argv=None):
    """Start the console for the project in the current directory."""
    opts = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        options = load_config(str(Path.cwd()), config_file=opts["config_file"], network=opts["network"])
        if opts["no_aliases"]:
            options["no_aliases"] = True
        console = Console(options, reader=ainput)
    except KeelError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    started = await console.start()
    if not started:
        raise SystemExit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
