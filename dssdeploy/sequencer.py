"""
Deployment sequencer.

Deploys every core component whose address is not yet known, in dependency
order, feeding resolved addresses into later constructors. On a reuse network
all seven addresses come from the table and nothing is deployed.

Each deploy is a single host operation. A rejection propagates as
DeploymentFailure and earlier deploys stay on the host.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from dssdeploy.components import CORE_COMPONENTS, Component, ComponentDescriptor
from dssdeploy.context import DeploymentContext
from dssdeploy.core import to_bytes32
from dssdeploy.observability import DeployStage, get_logger

logger = get_logger("sequencer", DeployStage.SEQUENCER)

# TestDai is constructed with a fixed zero initial parameter.
DAI_INITIAL_SUPPLY = 0


def constructor_args(ctx: DeploymentContext, component: Component) -> Tuple[Any, ...]:
    """Positional constructor arguments for a core component."""
    builders: Dict[Component, Callable[[], Tuple[Any, ...]]] = {
        Component.VAT: lambda: (),
        Component.WETH: lambda: (),
        Component.WETH_JOIN: lambda: (
            ctx.address_of(Component.VAT),
            to_bytes32(ctx.config.bootstrap.collateral.get()),
            ctx.address_of(Component.WETH),
        ),
        Component.DAI: lambda: (DAI_INITIAL_SUPPLY,),
        Component.DAI_JOIN: lambda: (
            ctx.address_of(Component.VAT),
            ctx.address_of(Component.DAI),
        ),
        Component.POT: lambda: (ctx.address_of(Component.VAT),),
        Component.END: lambda: (),
    }
    return builders[component]()


def pending_components(ctx: DeploymentContext) -> List[Component]:
    """Core components still without an address, in deployment order."""
    return [c for c in CORE_COMPONENTS if not ctx.descriptor(c).is_resolved]


def deploy_core(ctx: DeploymentContext) -> Dict[Component, ComponentDescriptor]:
    """Deploy the missing core components and return the full descriptor set."""
    pending = pending_components(ctx)
    if not pending:
        logger.info("All core components already resolved", target=ctx.target)

    for component in pending:
        ctx.deploy(component, *constructor_args(ctx, component))

    logger.info(
        "Core components resolved",
        deployed=[c.symbol for c in pending],
        reused=[c.symbol for c in CORE_COMPONENTS if c not in pending],
    )
    return {c: ctx.descriptor(c) for c in CORE_COMPONENTS}
