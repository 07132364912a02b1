"""
Entry point of the console child process.

    python -m keel.keel_child "<command text>" '{"networks": {"name": "<json>"}}'

The command text arrives as a single argument and is split here. Networks
are decoded one by one and replace whatever the project configuration says.
The selected network and the config file in use come from KEEL_NETWORK and
KEEL_CONFIG.
"""
import json
import os
import shlex
import sys
import traceback
from typing import Any, Dict, List, Optional

from keel.keel_command import CommandRegistry
from keel.keel_config import load_config
from keel.keel_errors import ConfigurationError, KeelError
from keel.keel_spawn import CONFIG_ENV, NETWORK_ENV


def parse_bundle(text: str) -> Dict[str, Dict[str, Any]]:
    try:
        bundle = json.loads(text)
        networks = {name: json.loads(cfg) for name, cfg in (bundle.get("networks") or {}).items()}
    except (ValueError, AttributeError, TypeError) as e:
        raise ConfigurationError(f"Invalid configuration passed to the console child: {e}") from e
    return networks


def run(argv: List[str], working_directory: Optional[str] = None) -> int:
    if len(argv) < 1:
        print("usage: python -m keel.keel_child <command> [config]", file=sys.stderr)
        return 2
    try:
        words = shlex.split(argv[0])
        networks = parse_bundle(argv[1]) if len(argv) > 1 else None
        options = load_config(
            working_directory or os.getcwd(),
            config_file=os.environ.get(CONFIG_ENV) or None,
            network=os.environ.get(NETWORK_ENV),
            networks=networks,
        )
        registry = CommandRegistry.from_config(options.get("commands"))
        spec = registry.lookup(" ".join(words), options.get("no_aliases", False))
        if spec is None:
            raise KeelError(f"Unknown command: {words[0] if words else ''}")
        spec.resolve()(options, words[1:])
    except KeelError as e:
        print(str(e), file=sys.stderr)
        return 1
    except Exception:
        traceback.print_exc()
        return 1
    return 0


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
