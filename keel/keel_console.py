"""
The interactive console.

Every input line is either a registered command, which runs in a child
process and is followed by a reprovisioning pass, or Python source, which
is evaluated in the session's persistent namespace. Input that starts with
`await` is rewritten first so it can run outside an async function.
"""
from __future__ import annotations
import sys
from typing import Any, Callable, Dict, List, Optional

import pystache

from keel.keel_command import CommandClassifier, CommandRegistry
from keel.keel_config import PROGRAM_NAME, REQUIRED_OPTIONS, expect_options
from keel.keel_context import ExecutionContext
from keel.keel_executor import DEFAULT_FILENAME, ScriptExecutor
from keel.keel_http import create_interface_adapter
from keel.keel_provision import Provisioner
from keel.keel_repl import Repl, format_error
from keel.keel_spawn import ChildProcessDispatcher

PROMPT_TEMPLATE = "{{program}}({{network}})> "


class Console:
    def __init__(self,
                 options: Dict[str, Any],
                 *,
                 registry: Optional[CommandRegistry] = None,
                 dispatcher: Optional[ChildProcessDispatcher] = None,
                 interface_adapter=None,
                 reader: Optional[Callable] = None,
                 filename: str = DEFAULT_FILENAME):
        expect_options(options, REQUIRED_OPTIONS)
        self.options = options
        self.logger = options["logger"]
        self.program_name = options.get("program_name") or PROGRAM_NAME

        self.registry = registry or CommandRegistry.from_config(options.get("commands"))
        self.classifier = CommandClassifier(
            self.registry,
            program_name=self.program_name,
            aliases_disabled=bool(options.get("no_aliases")),
        )
        self.context = ExecutionContext()
        self.provisioner = Provisioner(options, self.context)
        self.dispatcher = dispatcher or ChildProcessDispatcher(self.provision, self.logger)
        self.executor = ScriptExecutor(filename)

        network = (options["networks"] or {}).get(options["network"]) or {}
        self.interface_adapter = interface_adapter or create_interface_adapter(
            options["provider"], network.get("type"))

        self.repl: Optional[Repl] = None
        self._reader = reader
        self._filename = filename
        self._exit_handler_registered = False

    @property
    def prompt(self) -> str:
        template = self.options.get("prompt") or PROMPT_TEMPLATE
        renderer = pystache.Renderer(escape=lambda u: u)
        return renderer.render(template, {"program": self.program_name, "network": self.options["network"]})

    async def start(self) -> bool:
        """Connect, provision, and run the loop. Returns False when the console could not start."""
        try:
            accounts = await self.interface_adapter.get_accounts()
            abstractions = self.provision()
        except Exception as e:
            self.logger.log("Unexpected error: Cannot provision contracts while instantiating the console.")
            self.logger.log(format_error(e))
            return False

        self.context.bind("accounts", accounts)
        self.context.bind("adapter", self.interface_adapter)
        self.context.bind("artifacts", self.options["resolver"])

        self.repl = Repl(self.prompt, self.interpret, self.context, filename=self._filename, reader=self._reader)
        self.reset_contracts_in_console_context(abstractions)
        await self.repl.run()
        return True

    def provision(self) -> List[Any]:
        return self.provisioner.provision()

    def reset_contracts_in_console_context(self, abstractions: Optional[List[Any]]):
        self.context.bind_contracts(abstractions or [])

    def run_spawn(self, command: str, options: Dict[str, Any], callback: Callable[..., None]):
        error = self.dispatcher.dispatch(command, options)
        if error is not None:
            # Report here, before the prompt comes back
            if self.repl is not None:
                self.repl.report_error(error)
            else:
                self.logger.log(format_error(error))
        callback()
        if self.repl is not None:
            if not self._exit_handler_registered:
                self.repl.once("exit", self._exit)
                self._exit_handler_registered = True
            self.repl.display_prompt()

    def _exit(self):
        sys.exit(0)

    async def interpret(self, input: str, context, filename: str, callback: Callable[..., None]):
        """The REPL eval hook: `callback(error)` or `callback(None, value)`."""
        command = self.classifier.classify(input)
        if command is not None:
            return self.run_spawn(command, self.options, callback)

        source = self.classifier.normalize(input)
        try:
            value = await self.executor.evaluate(source, context)
        except Exception as e:
            return callback(e)
        return callback(None, value)


__all__ = ["Console", "PROMPT_TEMPLATE"]
