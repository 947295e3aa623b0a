"""
Network resolution.

A deployment target is classified once, at entry, as one of two modes:

    BOOTSTRAP   the designated development network; everything is deployed
                from scratch and seeded with synthetic parameters
    REUSE       any other network; core addresses come from the fixed
                address table and only the wrapper is deployed

Resolution is a pure lookup. It never touches the host, so a reuse network
with missing configuration fails before the first deploy is issued.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from jsonschema import Draft202012Validator

from dssdeploy.components import CORE_COMPONENTS, Component
from dssdeploy.core import is_present, load_document, load_json
from dssdeploy.errors import MissingConfiguration
from dssdeploy.observability import DeployStage, get_logger

logger = get_logger("network", DeployStage.RESOLVER)

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "fixed_addrs.schema.json"

DEFAULT_BOOTSTRAP_NETWORK = "development"


class NetworkMode(Enum):
    """How a target network is provisioned."""
    BOOTSTRAP = "bootstrap"
    REUSE = "reuse"


@lru_cache(maxsize=1)
def _table_validator() -> Draft202012Validator:
    return Draft202012Validator(load_json(SCHEMA_PATH))


class TableFormatError(ValueError):
    """The address table document does not have the expected shape."""

    def __init__(self, source: str, errors: List[str]):
        self.source = source
        self.errors = errors
        super().__init__(f"Invalid fixed address table {source}: {'; '.join(errors)}")


class FixedAddressTable:
    """
    Read-only mapping of network -> (table key -> address).

    Loaded from a JSON or YAML file. Only the document shape is validated;
    whether a network carries every core address is checked by resolve().
    """

    def __init__(self, entries: Mapping[str, Mapping[str, Optional[str]]], source: str = "<memory>"):
        errors = [
            f"{error.json_path}: {error.message}"
            for error in _table_validator().iter_errors(entries)
        ]
        if errors:
            raise TableFormatError(source, errors)
        self._entries = {net: dict(addrs) for net, addrs in entries.items()}
        self.source = source

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FixedAddressTable":
        path = Path(path)
        data = load_document(path)
        return cls(data or {}, source=str(path))

    def __contains__(self, network: object) -> bool:
        return network in self._entries

    def get(self, network: str) -> Optional[Dict[str, Optional[str]]]:
        entry = self._entries.get(network)
        return dict(entry) if entry is not None else None

    @property
    def networks(self) -> List[str]:
        return sorted(self._entries)


@dataclass(frozen=True)
class NetworkResolution:
    """Outcome of classifying a target network."""
    mode: NetworkMode
    target: str
    core_addresses: Dict[Component, str] = field(default_factory=dict)
    wrapper_address: Optional[str] = None

    @property
    def is_bootstrap(self) -> bool:
        return self.mode is NetworkMode.BOOTSTRAP


def classify(target: str, bootstrap_network: str = DEFAULT_BOOTSTRAP_NETWORK) -> NetworkMode:
    """Bootstrap iff the target is the designated network; anything else reuses."""
    return NetworkMode.BOOTSTRAP if target == bootstrap_network else NetworkMode.REUSE


def resolve(
    target: str,
    table: Optional[FixedAddressTable] = None,
    bootstrap_network: str = DEFAULT_BOOTSTRAP_NETWORK,
) -> NetworkResolution:
    """
    Classify ``target`` and, for reuse networks, look up its core addresses.

    Raises:
        MissingConfiguration: the reuse target is absent from the table, or
            any of the seven core addresses is missing or empty.
    """
    mode = classify(target, bootstrap_network)
    if mode is NetworkMode.BOOTSTRAP:
        logger.info("Bootstrap network, deploying from scratch", target=target)
        return NetworkResolution(mode=mode, target=target)

    entry = table.get(target) if table is not None else None
    if entry is None:
        logger.error(
            "Network not in fixed address table",
            error_code="MISSING_NETWORK",
            target=target,
            known=table.networks if table is not None else [],
        )
        raise MissingConfiguration(target)

    missing = [c.table_key for c in CORE_COMPONENTS if not is_present(entry.get(c.table_key))]
    if missing:
        logger.error(
            "Fixed address table incomplete",
            error_code="MISSING_ADDRESS",
            target=target,
            missing=missing,
        )
        raise MissingConfiguration(target, missing)

    core = {c: str(entry[c.table_key]) for c in CORE_COMPONENTS}
    wrapper = entry.get(Component.CHAI.table_key)
    logger.info("Reusing fixed core addresses", target=target, wrapper_in_table=is_present(wrapper))
    return NetworkResolution(
        mode=mode,
        target=target,
        core_addresses=core,
        wrapper_address=str(wrapper) if is_present(wrapper) else None,
    )
