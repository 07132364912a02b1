"""
Rewrites console input that starts with a top-level `await`.

Python only accepts `await` inside an async function, so an input such as

    balance = await token.balance_of(owner)

is turned into an async wrapper that evaluates the awaited expression, plus
an epilogue that performs the assignment once the wrapper has finished:

    async def _keel_await_outside_<id>():
        global _keel_await_result_<id>, ERROR
        try:
            _keel_await_result_<id> = (
    await token.balance_of(owner)
            )
        except BaseException as _keel_await_error:
            ERROR = _keel_await_error
            raise
    _keel_await_outside_<id>()

    balance = _keel_await_result_<id>
    del _keel_await_result_<id>
    balance

The assignment cannot happen inside the wrapper: a plain assignment there
would bind a local of the wrapper, not a console variable. The result slot
is a module-level name in the console namespace; the executor deletes it
once the evaluation settles, whatever the outcome.

Only a narrow shape is recognized: optional `NAME =`, then `await` (or
`(await`) at the very start of the expression. Anything else, including
`await` later in the line or inside a string, is left untouched.
"""
import re
import uuid
from dataclasses import dataclass
from typing import Optional

# Namespace slot that keeps the last exception raised inside an awaited expression
ERROR_SLOT = "ERROR"

RESULT_PREFIX = "_keel_await_result_"
WRAPPER_PREFIX = "_keel_await_outside_"
_ERROR_VAR = "_keel_await_error"

AWAIT_PATTERN = re.compile(
    r"^\s*"
    r"(?:(?P<target>[A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)\s*)?"
    r"(?P<expression>\(?\s*await\b[\s\S]*)"
)

_WRAPPER = """\
async def {fn}():
    global {slot}, {error_slot}
    try:
        {capture} (
{expression}
        )
    except BaseException as {error_var}:
        {error_slot} = {error_var}
        raise
{fn}()"""

# Lines of wrapper text above the user's expression
WRAPPER_LINE_OFFSET = _WRAPPER.split("\n").index("{expression}")


@dataclass(frozen=True)
class RewriteResult:
    source: str
    epilogue: Optional[str] = None
    target: Optional[str] = None
    expression: Optional[str] = None
    slot: Optional[str] = None
    wrapper: Optional[str] = None
    line_offset: int = 0

    @property
    def matched(self) -> bool:
        return self.expression is not None

    @property
    def body(self) -> Optional[str]:
        """The awaited operand: the expression without its leading `await`."""
        if self.expression is None:
            return None
        return re.sub(r"^(\(?)\s*await\b\s*", r"\1", self.expression, count=1)

    @property
    def temporaries(self) -> tuple:
        """Namespace names this rewrite introduces (to be released after the run)."""
        return tuple(n for n in (self.slot, self.wrapper) if n)


def _strip_terminator(expression: str) -> str:
    expression = expression.rstrip()
    if expression.endswith(";"):
        expression = expression[:-1]
    return expression.strip()


def rewrite(text: str, *, token: Optional[str] = None) -> RewriteResult:
    """
    Rewrite `text` when it starts with a top-level `await`.

    Without a match, `source` is the trimmed input and nothing else is set.
    `token` fixes the suffix of the temporary names (tests pass one for
    stable output); by default a fresh one is generated per call.
    """
    match = AWAIT_PATTERN.match(text or "")
    if not match:
        return RewriteResult(source=(text or "").strip())

    target = match.group("target")
    expression = _strip_terminator(match.group("expression"))
    token = token or uuid.uuid4().hex
    slot = RESULT_PREFIX + token
    fn = WRAPPER_PREFIX + token

    capture = f"{slot} =" if target else "return"
    source = _WRAPPER.format(
        fn=fn,
        slot=slot,
        error_slot=ERROR_SLOT,
        error_var=_ERROR_VAR,
        capture=capture,
        expression=expression,
    )
    epilogue = f"{target} = {slot}\ndel {slot}\n{target}" if target else None
    return RewriteResult(
        source=source,
        epilogue=epilogue,
        target=target,
        expression=expression,
        slot=slot,
        wrapper=fn,
        line_offset=WRAPPER_LINE_OFFSET,
    )


__all__ = [
    "AWAIT_PATTERN",
    "ERROR_SLOT",
    "RewriteResult",
    "WRAPPER_LINE_OFFSET",
    "rewrite",
]
