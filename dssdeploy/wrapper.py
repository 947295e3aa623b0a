"""
Derived wrapper (Chai) deployment.

Chai composes vat, pot, daiJoin and dai, so it runs after the core is
resolved on every network.

The reuse guard inherited from the migration scripts reads "target is mainnet
and kovan and kovan-fork". No single target satisfies that, so by default the
wrapper is always deployed, even where the address table lists one. Setting
``wrapper.reuse_fixed_address`` evaluates the guard as membership instead and
reuses the table's chaiAddress on the named networks.
"""

from __future__ import annotations

from typing import Optional, Sequence

from dssdeploy.components import Component
from dssdeploy.config import DeployConfig
from dssdeploy.context import DeploymentContext
from dssdeploy.network import NetworkResolution
from dssdeploy.observability import DeployStage, get_logger

logger = get_logger("wrapper", DeployStage.WRAPPER)

WRAPPER_DEPENDENCIES = (Component.VAT, Component.POT, Component.DAI_JOIN, Component.DAI)


def guard_holds(target: str, networks: Sequence[str]) -> bool:
    """The guard as written: the target equals every named network at once."""
    return len(networks) > 0 and all(target == network for network in networks)


def reusable_wrapper(resolution: NetworkResolution, config: DeployConfig) -> Optional[str]:
    """Table address to reuse instead of deploying, or None to deploy."""
    networks = list(config.wrapper.guard_networks.get())
    if config.wrapper.reuse_fixed_address.get():
        if resolution.target in networks and resolution.wrapper_address:
            return resolution.wrapper_address
        return None
    if guard_holds(resolution.target, networks):
        return resolution.wrapper_address
    return None


def deploy_wrapper(ctx: DeploymentContext) -> str:
    """Resolve the Chai address, deploying unless a reusable address applies."""
    reused = reusable_wrapper(ctx.resolution, ctx.config)
    if reused:
        ctx.descriptor(Component.CHAI).resolve(reused)
        logger.info("Reusing fixed wrapper address", target=ctx.target, address=reused)
        return reused

    args = tuple(ctx.address_of(c) for c in WRAPPER_DEPENDENCIES)
    return ctx.deploy(Component.CHAI, *args)
