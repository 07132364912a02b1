import builtins
from typing import Any, Dict, Iterable, Optional
import collections.abc


class ExecutionContext:
    """The persistent namespace every console evaluation runs against.

    `namespace` is handed to exec/eval as globals, so whatever user
    statements define accumulates here for the whole session. Contract
    abstractions are merged in by `bind_contracts`, which only ever touches
    names that belong to contracts.
    """
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.namespace: Dict[str, Any] = {"__name__": "__console__", "__builtins__": builtins}
        # name -> abstraction bound by the most recent provisioning pass
        self._contracts: Dict[str, Any] = {}
        for k, v in (initial or {}).items():
            self.bind(k, v)

    def bind(self, name: str, value: Any):
        if not isinstance(name, str) or not name.isidentifier():
            raise TypeError(f"Binding name must be an identifier, not {name!r}")
        self.namespace[name] = value

    def bind_contracts(self, abstractions: Optional[Iterable[Any]]):
        """Merge a fresh set of abstractions into the namespace."""
        fresh: Dict[str, Any] = {}
        for abstraction in abstractions or []:
            fresh[abstraction.contract_name] = abstraction

        for name, previous in self._contracts.items():
            if name in fresh:
                continue
            # A contract that disappeared; drop it unless the user rebound the name
            if self.namespace.get(name) is previous:
                del self.namespace[name]

        for name, abstraction in fresh.items():
            self.namespace[name] = abstraction
        self._contracts = fresh

    @property
    def contract_names(self) -> collections.abc.KeysView:
        return self._contracts.keys()

    def __getitem__(self, key: str) -> Any:
        return self.namespace[key]

    def __setitem__(self, key: str, value: Any):
        self.bind(key, value)

    def __delitem__(self, key: str):
        del self.namespace[key]

    def __contains__(self, key: Any) -> bool:
        return key in self.namespace

    def get(self, key: str, default: Any = None) -> Any:
        return self.namespace.get(key, default)

    def pop(self, key: str, default: Any = None) -> Any:
        return self.namespace.pop(key, default)

    def keys(self) -> collections.abc.KeysView:
        """User-visible names (dunder entries excluded)."""
        return {k: None for k in self.namespace if not (k.startswith("__") and k.endswith("__"))}.keys()

    def __repr__(self) -> str:
        return f"<ExecutionContext bindings=[{', '.join(self.keys())}]>"


__all__ = ["ExecutionContext"]
