from __future__ import annotations
import asyncio
import sys
import traceback
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from keel.keel_executor import DEFAULT_FILENAME, format_user_traceback, is_known_error
from keel.keel_printer import Printer

EXIT_COMMANDS = ("exit", ".exit")

# (input, context, filename, callback) -> awaitable; callback(error) or callback(None, value)
EvalHook = Callable[[str, Any, str, Callable[..., None]], Awaitable[Any]]


# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def format_error(e: BaseException, filename: str = DEFAULT_FILENAME) -> str:
    """Known errors print as their message, syntax errors with a caret, the rest as a traceback."""
    if is_known_error(e):
        return str(e)
    if isinstance(e, SyntaxError):
        return "".join(traceback.format_exception_only(type(e), e)).rstrip()
    return format_user_traceback(e, filename).rstrip()


class Repl:
    """The read-eval-print loop.

    Each line goes to `eval_hook`; the loop waits until the hook has fully
    settled before prompting again. Listeners subscribe to lifecycle events
    with `on`/`once` (currently `exit`, emitted when the loop ends).
    """

    def __init__(self,
                 prompt: str,
                 eval_hook: EvalHook,
                 context,
                 *,
                 filename: str = DEFAULT_FILENAME,
                 reader: Optional[Callable[[str], Awaitable[str]]] = None,
                 printer: Optional[Printer] = None,
                 output=None,
                 error_output=None):
        self.prompt = prompt
        self.eval_hook = eval_hook
        self.context = context
        self.filename = filename
        self.reader = reader or ainput
        self.printer = printer or Printer()
        self._out = output
        self._err = error_output
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}
        self._prompt_shown = False
        self.closed = False

    # --- Events ---
    def on(self, event: str, handler: Callable[..., Any]):
        self._listeners.setdefault(event, []).append(handler)
        return handler

    def once(self, event: str, handler: Callable[..., Any]):
        def wrapper(*args):
            self.off(event, wrapper)
            return handler(*args)
        return self.on(event, wrapper)

    def off(self, event: str, handler: Callable[..., Any]):
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args):
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    # --- Output ---
    @property
    def out(self):
        return self._out or sys.stdout

    @property
    def err(self):
        return self._err or sys.stderr

    def display_prompt(self):
        self.out.write(self.prompt)
        self.out.flush()
        self._prompt_shown = True

    def report(self, value: Any):
        if value is None:
            return
        self.context.namespace["_"] = value
        print(self.printer.pformat(value), file=self.out)

    def report_error(self, error: BaseException):
        print(format_error(error, self.filename), file=self.err)

    # --- Loop ---
    async def read_line(self) -> str:
        prompt = "" if self._prompt_shown else self.prompt
        self._prompt_shown = False
        return await self.reader(prompt)

    async def evaluate(self, line: str) -> Tuple[Optional[BaseException], Any]:
        """Run one line through the eval hook; returns (error, value)."""
        outcome: List[Tuple[Optional[BaseException], Any]] = []

        def callback(error=None, value=None):
            outcome.append((error, value))

        try:
            await self.eval_hook(line, self.context, self.filename, callback)
        except Exception as e:
            # A hook that raises instead of calling back
            return e, None
        return outcome[0] if outcome else (None, None)

    async def run(self):
        while not self.closed:
            try:
                raw = await self.read_line()
                if raw == "":
                    raise EOFError
            except EOFError:
                print(file=self.out)
                break
            line = raw.strip()
            if not line:
                continue
            if line in EXIT_COMMANDS:
                break
            error, value = await self.evaluate(raw)
            if error is not None:
                self.report_error(error)
            else:
                self.report(value)
        self.close()

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.emit("exit")


__all__ = ["EXIT_COMMANDS", "Repl", "ainput", "format_error"]
