"""
Compiles and runs console input against the persistent namespace.

A unit is compiled in `eval` mode when the input is a single expression.
Otherwise it is compiled in `exec` mode, with a trailing expression
statement split off and evaluated separately so that its value becomes the
result (`x = 1` gives None, `f(); 2` gives 2). Awaitable results are awaited,
so every evaluation settles the same way whether or not it suspended.
"""
from __future__ import annotations

import ast
import asyncio
import contextlib
import inspect
import linecache
import signal
import threading
import traceback
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from keel.keel_errors import KeelError, ScriptInterrupted
from keel.keel_rewriter import RewriteResult, rewrite

DEFAULT_FILENAME = "<console>"


@dataclass
class CompiledUnit:
    body: Optional[Any] = None   # code object run with exec
    tail: Optional[Any] = None   # code object run with eval; its value is the result


def shift_lines(tree: ast.AST, offset: int) -> ast.AST:
    """Move every node `offset` lines up, never above line 1."""
    if not offset:
        return tree
    for node in ast.walk(tree):
        if "lineno" not in node._attributes or getattr(node, "lineno", None) is None:
            continue
        start = node.lineno
        end = getattr(node, "end_lineno", None) or start
        node.lineno = max(1, start - offset)
        node.end_lineno = max(1, end - offset)
        # Nodes spanning wrapper lines can collapse onto one line
        if node.lineno == node.end_lineno and start != end:
            col = getattr(node, "col_offset", None)
            end_col = getattr(node, "end_col_offset", None)
            if col is not None and end_col is not None and end_col < col:
                node.end_col_offset = col
    return tree


def compile_unit(source: str, filename: str = DEFAULT_FILENAME, line_offset: int = 0) -> CompiledUnit:
    """Compile console input. Raises SyntaxError before anything has run."""
    try:
        tree = ast.parse(source, filename, mode="eval")
    except SyntaxError:
        tree = None
    if tree is not None:
        shift_lines(tree, line_offset)
        return CompiledUnit(tail=compile(tree, filename, "eval"))

    try:
        module = ast.parse(source, filename, mode="exec")
    except SyntaxError as e:
        # Report the position in the input, not in the wrapper
        if line_offset and e.lineno is not None:
            e.lineno = max(1, e.lineno - line_offset)
            if getattr(e, "end_lineno", None) is not None:
                e.end_lineno = max(e.lineno, e.end_lineno - line_offset)
        raise
    shift_lines(module, line_offset)
    tail = None
    if module.body and isinstance(module.body[-1], ast.Expr):
        last = module.body.pop()
        tail = compile(ast.Expression(last.value), filename, "eval")
    body = compile(module, filename, "exec") if module.body else None
    return CompiledUnit(body=body, tail=tail)


@contextlib.contextmanager
def await_slot(context, names: Iterable[str]):
    """Scope the temporary names of one evaluation; they are gone on exit, success or not."""
    names = tuple(names)
    try:
        yield names
    finally:
        for name in names:
            context.pop(name, None)


def remember_source(filename: str, source: str):
    """Let tracebacks show the console input for `filename`."""
    lines = [line + "\n" for line in source.splitlines()] or ["\n"]
    linecache.cache[filename] = (len(source), None, lines, filename)


def format_user_traceback(e: BaseException, filename: str = DEFAULT_FILENAME) -> str:
    """A traceback that starts at the first frame of console code, when there is one."""
    tb = e.__traceback__
    walk = tb
    while walk is not None and walk.tb_frame.f_code.co_filename != filename:
        walk = walk.tb_next
    return "".join(traceback.format_exception(type(e), e, walk if walk is not None else tb))


class ScriptExecutor:
    """Runs rewritten console input in an ExecutionContext.

    With `break_on_sigint`, Ctrl-C while an evaluation is running interrupts
    it: synchronous user code gets a KeyboardInterrupt, a suspended
    evaluation is cancelled at its await. Both surface as ScriptInterrupted.
    Whatever the evaluation already changed in the namespace stays changed.
    """

    def __init__(self, filename: str = DEFAULT_FILENAME, *, break_on_sigint: bool = True):
        self.filename = filename
        self.break_on_sigint = break_on_sigint
        self._in_sync_code = False
        self._interrupted = False

    def compile(self, source: str, line_offset: int = 0) -> CompiledUnit:
        return compile_unit(source, self.filename, line_offset)

    async def evaluate(self, text: str, context) -> Any:
        """Rewrite and execute one line of console input."""
        return await self.execute_rewrite(rewrite(text), context, display_source=text)

    async def execute_rewrite(self, rewritten: RewriteResult, context, *, display_source: Optional[str] = None) -> Any:
        return await self.execute(
            rewritten.source,
            context,
            epilogue=rewritten.epilogue,
            line_offset=rewritten.line_offset,
            temporaries=rewritten.temporaries,
            display_source=display_source,
        )

    async def execute(self,
                      source: str,
                      context,
                      *,
                      epilogue: Optional[str] = None,
                      line_offset: int = 0,
                      temporaries: Iterable[str] = (),
                      display_source: Optional[str] = None) -> Any:
        """
        Compile and run `source`; then, if given, the assignment `epilogue`.
        The epilogue's value replaces the first unit's value.
        """
        remember_source(self.filename, display_source if display_source is not None else source)
        unit = self.compile(source, line_offset)
        # Both units compile before either runs
        assignment = self.compile(epilogue) if epilogue is not None else None
        with await_slot(context, temporaries):
            value = await self._run(unit, context)
            if assignment is not None:
                value = await self._run(assignment, context)
        return value

    async def _run(self, unit: CompiledUnit, context) -> Any:
        namespace = context.namespace
        self._interrupted = False
        with self._sigint_guard():
            try:
                self._in_sync_code = True
                try:
                    if unit.body is not None:
                        exec(unit.body, namespace)
                    value = eval(unit.tail, namespace) if unit.tail is not None else None
                finally:
                    self._in_sync_code = False
                if inspect.isawaitable(value):
                    value = await value
                return value
            except KeyboardInterrupt:
                if not self.break_on_sigint:
                    raise
                raise ScriptInterrupted() from None
            except asyncio.CancelledError:
                if not self._interrupted:
                    raise
                task = asyncio.current_task()
                if task is not None:
                    task.uncancel()
                raise ScriptInterrupted() from None

    @contextlib.contextmanager
    def _sigint_guard(self):
        if not self.break_on_sigint or threading.current_thread() is not threading.main_thread():
            yield
            return
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()

        def on_sigint(signum, frame):
            if self._in_sync_code or task is None:
                raise KeyboardInterrupt
            self._interrupted = True
            loop.call_soon_threadsafe(task.cancel)

        try:
            previous = signal.signal(signal.SIGINT, on_sigint)
        except ValueError:
            # Not allowed to install handlers here; run without interruption
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, previous if previous is not None else signal.default_int_handler)


def is_known_error(e: BaseException) -> bool:
    return isinstance(e, KeelError)


__all__ = [
    "CompiledUnit",
    "DEFAULT_FILENAME",
    "ScriptExecutor",
    "await_slot",
    "compile_unit",
    "format_user_traceback",
    "is_known_error",
    "remember_source",
    "shift_lines",
]
