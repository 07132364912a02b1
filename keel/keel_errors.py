"""
Error kinds raised by the console.

Anything deriving from KeelError is a "known" error: the REPL prints its
message only. Every other exception is printed with a full traceback.
"""
from typing import Iterable, Optional


class KeelError(Exception):
    """Base class for errors the console reports as a short message."""


class ConfigurationError(KeelError):
    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class ArtifactParseError(KeelError):
    """A present artifact file could not be read or decoded."""
    def __init__(self, filename: str, reason: str):
        super().__init__(f"Error parsing or reading {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class CommandDispatchError(KeelError):
    def __init__(self, command: str, reason: str):
        super().__init__(f"Could not run command '{command}': {reason}")
        self.command = command


class ScriptInterrupted(KeelError):
    def __init__(self, message: str = "Script execution interrupted."):
        super().__init__(message)


class ProviderError(KeelError):
    """JSON-RPC transport failure or an error object in the response."""
    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


__all__ = [
    "KeelError",
    "ConfigurationError",
    "ArtifactParseError",
    "CommandDispatchError",
    "ScriptInterrupted",
    "ProviderError",
]
