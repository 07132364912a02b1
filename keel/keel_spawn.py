from __future__ import annotations
import json
import os
import subprocess
import sys
from typing import Any, Callable, Dict, List, Optional

from keel.keel_errors import CommandDispatchError
from keel.keel_serialize import serialize

CHILD_MODULE = "keel.keel_child"
# The active network and config file travel in the environment; argv carries only the command and networks
NETWORK_ENV = "KEEL_NETWORK"
CONFIG_ENV = "KEEL_CONFIG"


def serialize_networks(networks: Optional[Dict[str, Any]]) -> str:
    """
    The child's config bundle: `{"networks": {name: "<json>"}}`.

    Each network is encoded on its own so the child decodes them one by one;
    live objects in a network record (providers and the like) are dropped.
    """
    encoded = {}
    for name, cfg in (networks or {}).items():
        encoded[name] = serialize(cfg or {}, fmt="json", pretty=False)
    return json.dumps({"networks": encoded})


class ChildProcessDispatcher:
    """Runs console commands in a separate Python process.

    The child inherits stdin/stdout/stderr so interactive commands behave as
    they would from a shell, and `dispatch` blocks until it exits. Every
    completed run is followed by `reprovision`, whose failures are logged and
    swallowed.
    """

    def __init__(self, reprovision: Callable[[], Any], logger, *, python: Optional[str] = None, run=None):
        self.reprovision = reprovision
        self.logger = logger
        self.python = python or sys.executable
        # Injectable for tests; same signature as subprocess.run
        self._run = run or subprocess.run

    def command_line(self, command_text: str, options: Dict[str, Any]) -> List[str]:
        return [self.python, "-m", CHILD_MODULE, command_text, serialize_networks(options.get("networks"))]

    def child_env(self, options: Dict[str, Any]) -> Dict[str, str]:
        env = dict(os.environ)
        if options.get("network"):
            env[NETWORK_ENV] = str(options["network"])
        if options.get("config_file"):
            env[CONFIG_ENV] = str(options["config_file"])
        else:
            env.pop(CONFIG_ENV, None)
        return env

    def dispatch(self, command_text: str, options: Dict[str, Any]) -> Optional[Exception]:
        """Run one command. Returns the spawn error, if any, instead of raising it."""
        argv = self.command_line(command_text, options)
        self._debug("spawn", argv[:4])
        try:
            completed = self._run(
                argv,
                stdin=None, stdout=None, stderr=None,
                cwd=options.get("working_directory"),
                env=self.child_env(options),
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            return CommandDispatchError(command_text, str(e))
        except KeyboardInterrupt:
            self.logger.log("Command interrupted.")
        else:
            if completed.returncode != 0:
                self._debug("child exited with status", completed.returncode)

        try:
            self.reprovision()
        except Exception as e:
            self.logger.log(e)
        return None

    def _debug(self, *parts):
        debug = getattr(self.logger, "debug", None)
        if callable(debug):
            debug(*parts)


__all__ = ["CHILD_MODULE", "CONFIG_ENV", "NETWORK_ENV", "ChildProcessDispatcher", "serialize_networks"]
