"""
Registry commit.

Writes the eight resolved addresses into the registry contract, one
``register(bytes32 symbol, address)`` transaction per component, in registry
order. There is no batching and no deduplication: running the migration
twice appends a second set of eight entries.
"""

from __future__ import annotations

from typing import List, Tuple

from dssdeploy.components import REGISTRY_ORDER
from dssdeploy.context import DeploymentContext, RegistryEntry
from dssdeploy.core import from_bytes32, to_bytes32
from dssdeploy.errors import RegistrationFailure
from dssdeploy.host import DeploymentHost, TxReceipt
from dssdeploy.observability import DeployStage, get_logger

logger = get_logger("registry", DeployStage.REGISTRY)


class RegistryClient:
    """Thin client for the on-host registry contract."""

    def __init__(self, host: DeploymentHost, address: str):
        self._host = host
        self.address = address

    def register(self, symbol: str, address: str) -> TxReceipt:
        logger.debug("Registering", symbol=symbol, address=address, registry=self.address)
        return self._host.transact(self.address, "register", to_bytes32(symbol), address)

    def entries(self) -> List[Tuple[str, str]]:
        """All registered (symbol, address) pairs, oldest first."""
        return [(from_bytes32(name), addr) for name, addr in self._host.call(self.address, "entries")]

    def count(self) -> int:
        return int(self._host.call(self.address, "count"))


def commit_registry(ctx: DeploymentContext) -> List[RegistryEntry]:
    """
    Register every component address, sequentially.

    Each address is checked before its own register call; an unset address
    raises RegistrationFailure and leaves earlier entries committed.
    """
    client = RegistryClient(ctx.host, ctx.registry_address)
    committed: List[RegistryEntry] = []
    for component in REGISTRY_ORDER:
        descriptor = ctx.descriptor(component)
        if not descriptor.is_resolved:
            logger.error(
                "Refusing to register unresolved component",
                error_code="UNRESOLVED_ADDRESS",
                symbol=component.symbol,
                committed=len(committed),
            )
            raise RegistrationFailure(component.symbol)

        receipt = client.register(component.symbol, descriptor.address)
        ctx.receipts.append(receipt)
        entry = RegistryEntry(symbol=component.symbol, address=descriptor.address, tx_hash=receipt.tx_hash)
        ctx.registry_entries.append(entry)
        committed.append(entry)

    logger.info("Registry updated", registry=ctx.registry_address, entries=len(committed))
    return committed


def deploy_registry(host: DeploymentHost) -> RegistryClient:
    """Deploy a fresh registry contract, as the initial migration does."""
    address = host.deploy("Migrations")
    logger.info("Registry deployed", address=address)
    return RegistryClient(host, address)
