"""
Deployment context.

One DeploymentContext is created per run and passed explicitly to every step.
It owns the component descriptors and the write-once records the run
produces (authorization edges, registry entries, receipts). No step reads
ambient global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dssdeploy.components import Component, ComponentDescriptor, new_descriptor_set
from dssdeploy.config import DeployConfig
from dssdeploy.errors import DeploymentError
from dssdeploy.host import DeploymentHost, TxReceipt
from dssdeploy.network import NetworkResolution
from dssdeploy.observability import DeployStage, Tracer, get_logger

logger = get_logger("context", DeployStage.MIGRATION)


@dataclass(frozen=True)
class AuthorizationEdge:
    """Privileged-call right granted by the vault to a grantee."""
    grantor: str
    grantee: str
    grantee_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"grantor": self.grantor, "grantee": self.grantee, "grantee_name": self.grantee_name}


@dataclass(frozen=True)
class RegistryEntry:
    """One committed registry record."""
    symbol: str
    address: str
    tx_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {"symbol": self.symbol, "address": self.address, "tx_hash": self.tx_hash}


@dataclass
class DeploymentContext:
    """State threaded through one deployment run."""
    host: DeploymentHost
    registry_address: str
    resolution: NetworkResolution
    config: DeployConfig = field(default_factory=DeployConfig)
    tracer: Tracer = field(default_factory=Tracer)
    descriptors: Dict[Component, ComponentDescriptor] = field(default_factory=new_descriptor_set)
    authorizations: List[AuthorizationEdge] = field(default_factory=list)
    registry_entries: List[RegistryEntry] = field(default_factory=list)
    receipts: List[TxReceipt] = field(default_factory=list)

    def __post_init__(self) -> None:
        for component, address in self.resolution.core_addresses.items():
            self.descriptors[component].resolve(address)

    @property
    def target(self) -> str:
        return self.resolution.target

    def descriptor(self, component: Component) -> ComponentDescriptor:
        return self.descriptors[component]

    def address_of(self, component: Component) -> str:
        """Resolved address of a component; unresolved components are an error."""
        descriptor = self.descriptors[component]
        if not descriptor.is_resolved:
            raise DeploymentError(f"{component.symbol} has no resolved address yet")
        return descriptor.address  # type: ignore[return-value]

    def addresses(self) -> Dict[str, Optional[str]]:
        """Name -> address for every component, in registry order."""
        return {d.name: d.address for d in self.descriptors.values()}

    def deploy(self, component: Component, *args: Any) -> str:
        """Deploy a component's artifact and record the address on its descriptor."""
        logger.debug(
            "Deploying component",
            component=component.symbol,
            artifact=component.artifact,
            args=[_loggable(a) for a in args],
        )
        address = self.host.deploy(component.artifact, *args)
        self.descriptors[component].resolve(address, deployed=True)
        logger.info("Deployed component", component=component.symbol, address=address)
        return address

    def transact(self, component: Component, method: str, *args: Any) -> TxReceipt:
        """Send a transaction to a resolved component and keep the receipt."""
        return self.transact_at(self.address_of(component), method, *args)

    def transact_at(self, address: str, method: str, *args: Any) -> TxReceipt:
        logger.debug(
            "Sending transaction",
            address=address,
            method=method,
            args=[_loggable(a) for a in args],
        )
        receipt = self.host.transact(address, method, *args)
        self.receipts.append(receipt)
        return receipt


def _loggable(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.rstrip(b"\x00").decode("ascii", errors="replace")
    if isinstance(value, int):
        return str(value)
    return value
