"""
Contract abstractions built from compiled artifacts.

An abstraction wraps one artifact document and, once provisioned, the
network settings (network id, provider, transaction defaults) it is used
with. Abstractions compare by content so two provisioning passes over the
same build directory produce equal, but distinct, objects.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from keel.keel_errors import KeelError

# Network record keys that become per-transaction defaults
_DEFAULT_KEYS = ("from", "gas", "gas_price", "gasPrice", "value")


def artifact_name(artifact: Dict[str, Any]) -> Optional[str]:
    name = artifact.get("contractName") or artifact.get("contract_name")
    return name if isinstance(name, str) and name else None


class ContractFunction:
    """A callable ABI entry. Calling it returns the call description."""

    def __init__(self, contract: 'ContractAbstraction', entry: Dict[str, Any]):
        self.contract = contract
        self.entry = entry
        self.name = entry.get("name", "")
        self.inputs = [i.get("name") or f"arg{n}" for n, i in enumerate(entry.get("inputs") or [])]
        self.constant = entry.get("stateMutability") in ("view", "pure") or bool(entry.get("constant"))

    def __call__(self, *args, **overrides):
        if len(args) != len(self.inputs):
            raise KeelError(
                f"{self.contract.contract_name}.{self.name} expects {len(self.inputs)} "
                f"argument(s), got {len(args)}"
            )
        return {
            "contract": self.contract.contract_name,
            "function": self.name,
            "args": dict(zip(self.inputs, args)),
            "call": self.constant,
            "options": {**self.contract.defaults, **overrides},
        }

    def __repr__(self):
        return f"<ContractFunction {self.contract.contract_name}.{self.name}({', '.join(self.inputs)})>"


class ContractAbstraction:
    def __init__(self, artifact: Dict[str, Any]):
        name = artifact_name(artifact)
        if name is None:
            raise KeelError("Artifact is missing a contract name")
        self.artifact = copy.deepcopy(artifact)
        self.contract_name = name
        self.abi: List[Dict[str, Any]] = list(self.artifact.get("abi") or [])
        self.bytecode: str = self.artifact.get("bytecode") or "0x"
        self.network_id: Optional[str] = None
        self.provider = None
        self.defaults: Dict[str, Any] = {}

    @property
    def functions(self) -> Dict[str, ContractFunction]:
        return {e["name"]: ContractFunction(self, e) for e in self.abi if e.get("type", "function") == "function" and e.get("name")}

    @property
    def events(self) -> List[str]:
        return [e["name"] for e in self.abi if e.get("type") == "event" and e.get("name")]

    @property
    def address(self) -> Optional[str]:
        networks = self.artifact.get("networks") or {}
        entry = networks.get(str(self.network_id)) if self.network_id is not None else None
        return entry.get("address") if isinstance(entry, dict) else None

    @property
    def deployed(self) -> bool:
        return self.address is not None

    def set_network(self, network_id) -> None:
        self.network_id = str(network_id) if network_id is not None else None

    def set_provider(self, provider) -> None:
        self.provider = provider

    def set_defaults(self, defaults: Dict[str, Any]) -> None:
        self.defaults = {k: v for k, v in defaults.items() if v is not None}

    def __getattr__(self, name: str):
        # Only reached when normal lookup fails: expose ABI functions as attributes
        if name.startswith("_") or name in ("artifact", "abi"):
            raise AttributeError(name)
        fns = self.functions
        if name in fns:
            return fns[name]
        raise AttributeError(f"{self.contract_name} has no function '{name}'")

    def __eq__(self, other):
        if not isinstance(other, ContractAbstraction):
            return NotImplemented
        return (
            self.artifact == other.artifact
            and self.network_id == other.network_id
            and self.defaults == other.defaults
        )

    __hash__ = object.__hash__

    def __repr__(self):
        net = f" network={self.network_id}" if self.network_id is not None else ""
        return f"<Contract {self.contract_name}{net}>"


def contract(artifact: Dict[str, Any]) -> ContractAbstraction:
    """Instantiate an abstraction from a parsed artifact document."""
    if not isinstance(artifact, dict):
        raise KeelError(f"Artifact must be a JSON object, not {type(artifact).__name__}")
    return ContractAbstraction(artifact)


def provision_abstraction(abstraction: ContractAbstraction, options: Dict[str, Any]) -> ContractAbstraction:
    """Bind the active network settings from the session options to an abstraction."""
    networks = options.get("networks") or {}
    network = networks.get(options.get("network")) or {}
    abstraction.set_provider(options.get("provider"))
    abstraction.set_network(options.get("network_id"))
    abstraction.set_defaults({k: network.get(k) for k in _DEFAULT_KEYS})
    return abstraction


__all__ = [
    "ContractAbstraction",
    "ContractFunction",
    "artifact_name",
    "contract",
    "provision_abstraction",
]
