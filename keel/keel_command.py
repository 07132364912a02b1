"""
Command registry, the built-in commands, and input classification.

A console line is a command when, after dropping an optional leading
program name, its first word resolves in the registry. Anything else is
left for expression evaluation.
"""
from __future__ import annotations
import importlib
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from keel.keel_errors import ConfigurationError, KeelError

# `name = ...` or `name += ...`: a statement, even when `name` is a command
ASSIGNMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\s*(?:[-+*/%&|^@]|//|\*\*|<<|>>)?=(?!=)")


@dataclass(frozen=True)
class CommandSpec:
    name: str
    target: str
    description: str = ""
    aliases: FrozenSet[str] = field(default_factory=frozenset)

    def resolve(self) -> Callable[[Dict[str, Any], List[str]], Any]:
        """Import the `module:function` target."""
        module_name, _, attr = self.target.partition(":")
        if not module_name or not attr:
            raise KeelError(f"Invalid target for command '{self.name}': {self.target!r}")
        try:
            module = importlib.import_module(module_name)
            return getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise KeelError(f"Could not load command '{self.name}' from {self.target}: {e}") from e


class CommandRegistry:
    def __init__(self, commands: Optional[Iterable[CommandSpec]] = None):
        self.commands: Dict[str, CommandSpec] = {}
        for spec in commands or []:
            self.register(spec)

    def register(self, spec: CommandSpec):
        self.commands[spec.name] = spec

    def names(self) -> List[str]:
        return sorted(self.commands)

    def lookup(self, text: str, aliases_disabled: bool = False) -> Optional[CommandSpec]:
        words = (text or "").split()
        if not words:
            return None
        first = words[0]
        if first in self.commands:
            return self.commands[first]
        if aliases_disabled:
            return None
        for spec in self.commands.values():
            if first in spec.aliases:
                return spec
        return None

    @classmethod
    def from_config(cls, commands: Optional[Dict[str, Any]] = None) -> 'CommandRegistry':
        """Built-in commands plus the `commands:` section of the configuration."""
        registry = cls(BUILTIN_COMMANDS)
        for name, entry in (commands or {}).items():
            if isinstance(entry, str):
                entry = {"target": entry}
            if not isinstance(entry, dict) or not entry.get("target"):
                raise ConfigurationError(f"Command '{name}' needs a 'target' of the form module:function")
            registry.register(CommandSpec(
                name=str(name),
                target=str(entry["target"]),
                description=str(entry.get("description", "")),
                aliases=frozenset(entry.get("aliases") or []),
            ))
        return registry


class CommandClassifier:
    def __init__(self, registry: CommandRegistry, program_name: str = "keel", aliases_disabled: bool = False):
        self.registry = registry
        self.program_name = program_name
        self.aliases_disabled = aliases_disabled

    def normalize(self, raw_input: str) -> str:
        text = (raw_input or "").strip()
        parts = text.split(None, 1)
        if parts and parts[0] == self.program_name:
            return parts[1].strip() if len(parts) > 1 else ""
        return text

    def classify(self, raw_input: str) -> Optional[str]:
        """The normalized command text, or None when the input is not a command."""
        candidate = self.normalize(raw_input)
        if ASSIGNMENT_PATTERN.match(candidate):
            return None
        if self.registry.lookup(candidate, self.aliases_disabled) is None:
            return None
        return candidate


# ===================================================================
# Built-in commands (run inside the console child process)
# ===================================================================

def run_networks(options: Dict[str, Any], argv: List[str]):
    logger = options["logger"]
    networks = options.get("networks") or {}
    if not networks:
        logger.log("No networks configured.")
        return
    width = max(len(n) for n in networks)
    for name in sorted(networks):
        cfg = networks[name] or {}
        where = cfg.get("url") or (f"{cfg.get('host')}:{cfg.get('port', 8545)}" if cfg.get("host") else "-")
        marker = "*" if name == options.get("network") else " "
        logger.log(f"{marker} {name.ljust(width)}  id={cfg.get('network_id', '*')}  {where}")


def run_version(options: Dict[str, Any], argv: List[str]):
    from keel import __version__
    options["logger"].log(f"keel v{__version__}")


def run_help(options: Dict[str, Any], argv: List[str]):
    registry = CommandRegistry.from_config(options.get("commands"))
    logger = options["logger"]
    if argv:
        spec = registry.lookup(argv[0], options.get("no_aliases", False))
        if spec is None:
            raise KeelError(f"Unknown command: {argv[0]}")
        logger.log(f"{spec.name}: {spec.description}")
        if spec.aliases:
            logger.log("  aliases: " + ", ".join(sorted(spec.aliases)))
        return
    logger.log("Commands:")
    width = max(len(n) for n in registry.names())
    for name in registry.names():
        logger.log(f"  {name.ljust(width)}  {registry.commands[name].description}")


BUILTIN_COMMANDS = (
    CommandSpec("networks", "keel.keel_command:run_networks", "Show the configured networks"),
    CommandSpec("version", "keel.keel_command:run_version", "Show the version"),
    CommandSpec("help", "keel.keel_command:run_help", "List the available commands", frozenset({"?"})),
)


__all__ = [
    "BUILTIN_COMMANDS",
    "CommandClassifier",
    "CommandRegistry",
    "CommandSpec",
]
