__version__ = "0.1.0"

from keel.keel_console import Console
from keel.keel_config import ConsoleLogger, load_config
from keel.keel_context import ExecutionContext
from keel.keel_errors import KeelError
from keel.keel_executor import ScriptExecutor
from keel.keel_rewriter import rewrite

__all__ = [
    "Console",
    "ConsoleLogger",
    "ExecutionContext",
    "KeelError",
    "ScriptExecutor",
    "load_config",
    "rewrite",
    "__version__",
]
