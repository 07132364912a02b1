from __future__ import annotations

import json
import os
from typing import Any, Optional
import collections.abc

import yaml
import tomllib


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        enc = encoding or 'utf-8'
        try:
            return data.decode(enc, errors='replace')
        except LookupError:
            return data.decode('utf-8', errors='replace')
    if isinstance(data, str):
        return data
    return str(data)


_SCALARS = (str, int, float, bool, type(None))


def to_builtin(obj: Any) -> Any:
    """
    Reduce a value to JSON/YAML-safe builtins.

    Mappings become dicts and sequences become lists. Values that have no
    plain-data form (live providers, callables, sockets) are dropped from
    mappings and sequences rather than stringified.
    """
    if isinstance(obj, _SCALARS):
        return obj
    if isinstance(obj, collections.abc.Mapping):
        out = {}
        for k, v in obj.items():
            if not isinstance(v, _SCALARS + (collections.abc.Mapping, list, tuple)):
                continue
            out[str(k)] = to_builtin(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [to_builtin(x) for x in obj if isinstance(x, _SCALARS + (collections.abc.Mapping, list, tuple))]
    return None


_EXTENSIONS = {'.json': 'json', '.yaml': 'yaml', '.yml': 'yaml', '.toml': 'toml'}


def detect_format(path: Optional[str] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json', 'yaml' or 'toml' from a file name's extension.
    Falls back to sniffing the data when given.
    """
    ext = os.path.splitext(path or "")[1].lower()
    if ext in _EXTENSIONS:
        return _EXTENSIONS[ext]

    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                fmt: Optional[str] = None,
                strict: bool = False) -> Any:
    """
    Convert file data (bytes/string) to native Python structures.
    Supported fmt: 'json', 'yaml', 'toml'. If fmt is None the data is sniffed,
    then treated as YAML (a superset of JSON).

    With strict=False decode failures return the raw text; with strict=True the
    decoder's exception propagates so callers can report the offending source.
    """
    text = _norm_text(data)
    f = fmt or detect_format(None, text) or 'yaml'
    try:
        if f == 'json':
            return json.loads(text)
        if f == 'yaml':
            return yaml.safe_load(text)
        if f == 'toml':
            return tomllib.loads(text)
    except (ValueError, yaml.YAMLError):
        # json.JSONDecodeError and tomllib.TOMLDecodeError are ValueErrors
        if strict:
            raise
        return text
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def serialize(value: Any,
              *,
              fmt: str,
              pretty: bool = True) -> str:
    """
    Convert a native value into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "deserialize",
    "serialize",
    "detect_format",
    "to_builtin",
]
