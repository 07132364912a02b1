from __future__ import annotations
import os
from typing import Any, Callable, Dict, List, Optional

from keel.keel_contract import ContractAbstraction, artifact_name, contract, provision_abstraction
from keel.keel_errors import ArtifactParseError, KeelError
from keel.keel_serialize import deserialize

ARTIFACT_EXTENSION = ".json"


def read_artifact(path: str) -> Dict[str, Any]:
    """Read and decode one artifact file. Raises ArtifactParseError naming the file."""
    name = os.path.basename(path)
    try:
        with open(path, "rb") as f:
            body = f.read()
        return deserialize(body, fmt="json", strict=True)
    except (OSError, ValueError) as e:
        raise ArtifactParseError(name, str(e)) from e


def list_artifact_files(build_directory: Optional[str]) -> List[str]:
    """Artifact file names in the build directory, sorted.

    A missing or unreadable directory is the normal state before the first
    compile, so it yields an empty list instead of an error.
    """
    if not build_directory:
        return []
    try:
        names = os.listdir(build_directory)
    except OSError:
        return []
    return sorted(n for n in names if n.endswith(ARTIFACT_EXTENSION))


class Provisioner:
    """Loads every artifact of the build directory into fresh abstractions.

    `load` turns a decoded artifact into an abstraction and `bind` attaches
    the session's network settings; both default to the contract module and
    can be swapped out by callers.
    """

    def __init__(self,
                 options: Dict[str, Any],
                 context=None,
                 *,
                 load: Callable[[Dict[str, Any]], Any] = contract,
                 bind: Callable[[Any, Dict[str, Any]], Any] = provision_abstraction):
        self.options = options
        self.context = context
        self._load = load
        self._bind = bind

    @property
    def build_directory(self) -> Optional[str]:
        return self.options.get("contracts_build_directory")

    def provision(self) -> List[Any]:
        build_dir = self.build_directory
        documents = []
        for name in list_artifact_files(build_dir):
            documents.append((name, read_artifact(os.path.join(build_dir, name))))

        abstractions = []
        for name, doc in documents:
            try:
                abstraction = self._load(doc)
            except ArtifactParseError:
                raise
            except KeelError as e:
                # Decodes as JSON but is not an artifact
                raise ArtifactParseError(name, str(e)) from e
            self._bind(abstraction, self.options)
            abstractions.append(abstraction)

        if self.context is not None:
            self.context.bind_contracts(abstractions)
        return abstractions


class ArtifactResolver:
    """Resolves a single contract by name from the build directory."""

    def __init__(self, options: Dict[str, Any]):
        self.options = options

    def require(self, name: str) -> ContractAbstraction:
        build_dir = self.options.get("contracts_build_directory")
        direct = os.path.join(build_dir or "", name + ARTIFACT_EXTENSION)
        if build_dir and os.path.isfile(direct):
            return provision_abstraction(contract(read_artifact(direct)), self.options)
        # File names need not match contract names; fall back to a scan
        for file_name in list_artifact_files(build_dir):
            doc = read_artifact(os.path.join(build_dir, file_name))
            if isinstance(doc, dict) and artifact_name(doc) == name:
                return provision_abstraction(contract(doc), self.options)
        raise KeelError(f"Could not find artifacts for {name} from any sources")

    def __repr__(self):
        return f"<ArtifactResolver {self.options.get('contracts_build_directory')}>"


__all__ = [
    "ARTIFACT_EXTENSION",
    "ArtifactResolver",
    "Provisioner",
    "list_artifact_files",
    "read_artifact",
]
