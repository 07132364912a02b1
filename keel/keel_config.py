from __future__ import annotations
import os
import sys
from typing import Any, Dict, Iterable, Optional

import yaml

from keel.keel_errors import ConfigurationError
from keel.keel_serialize import deserialize, detect_format

CONFIG_FILENAMES = ("keel-config.yaml", "keel-config.yml", "keel-config.json", "keel-config.toml")

REQUIRED_OPTIONS = (
    "working_directory",
    "contracts_directory",
    "contracts_build_directory",
    "migrations_directory",
    "networks",
    "network",
    "network_id",
    "provider",
    "resolver",
    "build_directory",
    "logger",
)

DEFAULT_NETWORK = "development"
PROGRAM_NAME = "keel"


def debug_enabled() -> bool:
    return bool(os.environ.get("KEEL_DEBUG"))


class ConsoleLogger:
    """The session's output sink. `log` prints to stdout; `debug` only with KEEL_DEBUG set."""

    def __init__(self, out=None, err=None):
        self._out = out
        self._err = err

    def log(self, *parts):
        print(*parts, file=self._out or sys.stdout)

    def debug(self, *parts):
        if debug_enabled():
            try:
                print("[DBG]", *parts, file=self._err or sys.stderr)
            except (OSError, ValueError):
                pass


def expect_options(options: Dict[str, Any], keys: Iterable[str]) -> None:
    """Raise ConfigurationError when any of `keys` is absent from options."""
    missing = [k for k in keys if k not in options]
    if missing:
        raise ConfigurationError(
            "Expected parameter(s) " + ", ".join(f"'{k}'" for k in missing) + " not passed to function.",
            missing=missing,
        )


def find_config_file(working_directory: str) -> Optional[str]:
    for name in CONFIG_FILENAMES:
        path = os.path.join(working_directory, name)
        if os.path.isfile(path):
            return path
    return None


def read_config_file(path: str) -> Dict[str, Any]:
    fmt = detect_format(path)
    try:
        with open(path, "rb") as f:
            data = deserialize(f.read(), fmt=fmt, strict=True)
    except OSError as e:
        raise ConfigurationError(f"Could not read configuration file {path}: {e}") from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data


def _resolve_dir(base: str, value: Optional[str], default: str) -> str:
    value = value or default
    return value if os.path.isabs(value) else os.path.normpath(os.path.join(base, value))


def load_config(working_directory: Optional[str] = None,
                *,
                config_file: Optional[str] = None,
                network: Optional[str] = None,
                networks: Optional[Dict[str, Dict[str, Any]]] = None,
                logger=None) -> Dict[str, Any]:
    """
    Build the session options for a project directory.

    Values come from the config file (if any), then the explicit arguments.
    `networks` replaces the file's networks entirely; the console child uses
    it to receive the parent's networks.
    """
    from keel.keel_http import provider_from_network
    from keel.keel_provision import ArtifactResolver

    wd = os.path.abspath(working_directory or os.getcwd())
    if config_file:
        path = config_file if os.path.isabs(config_file) else os.path.join(wd, config_file)
    else:
        path = find_config_file(wd)
    raw: Dict[str, Any] = read_config_file(path) if path else {}

    build_directory = _resolve_dir(wd, raw.get("build_directory"), "build")
    options: Dict[str, Any] = {
        "working_directory": wd,
        "config_file": path,
        "build_directory": build_directory,
        "contracts_directory": _resolve_dir(wd, raw.get("contracts_directory"), "contracts"),
        "contracts_build_directory": _resolve_dir(
            wd, raw.get("contracts_build_directory"), os.path.join(build_directory, "contracts")),
        "migrations_directory": _resolve_dir(wd, raw.get("migrations_directory"), "migrations"),
        "networks": dict(networks if networks is not None else (raw.get("networks") or {})),
        "commands": dict(raw.get("commands") or {}),
        "no_aliases": bool(raw.get("no_aliases", False)),
        "program_name": raw.get("program_name") or PROGRAM_NAME,
        "prompt": (raw.get("console") or {}).get("prompt"),
        "logger": logger or ConsoleLogger(),
    }

    name = network or raw.get("network") or DEFAULT_NETWORK
    net_cfg = options["networks"].get(name)
    if net_cfg is None:
        if network is not None or options["networks"]:
            raise ConfigurationError(f"Unknown network \"{name}\". See your configuration file for available networks.")
        # No networks configured at all: a local development node
        net_cfg = {"host": "127.0.0.1", "port": 8545, "network_id": "*"}
        options["networks"][name] = net_cfg
    if not isinstance(net_cfg, dict):
        raise ConfigurationError(f"Network \"{name}\" must be a mapping")

    options["network"] = name
    options["network_id"] = net_cfg.get("network_id", "*")
    options["provider"] = provider_from_network(net_cfg)
    options["resolver"] = ArtifactResolver(options)
    return options


__all__ = [
    "CONFIG_FILENAMES",
    "ConsoleLogger",
    "DEFAULT_NETWORK",
    "PROGRAM_NAME",
    "REQUIRED_OPTIONS",
    "debug_enabled",
    "expect_options",
    "find_config_file",
    "load_config",
    "read_config_file",
]
