"""
Bootstrap-only steps.

On the bootstrap network the freshly deployed core is configured, wired into
the vault's permission graph, and pushed into a non-trivial economic state:

    configure   vat.init, vat.file(spot/line/Line), end.file("vat")
    authorize   vat.rely for vat, gemJoin, daiJoin, pot, end
    simulate    vat.fold by (rate - 1), pot.setChi

The three run in that order and each call is issued exactly once. The
simulation's fold is a privileged call, so every grant must have been
confirmed before it runs.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from dssdeploy.components import Component
from dssdeploy.config import DeployConfig
from dssdeploy.context import AuthorizationEdge, DeploymentContext
from dssdeploy.core import to_bytes32
from dssdeploy.fixedpoint import sub, to_rad, to_ray
from dssdeploy.observability import DeployStage, get_logger

configure_logger = get_logger("configure", DeployStage.CONFIGURE)
authorize_logger = get_logger("authorize", DeployStage.AUTHORIZE)
simulate_logger = get_logger("simulate", DeployStage.SIMULATE)

# Vat parameter keys. "line" (per ilk) and "Line" (global) are different keys.
SPOT = "spot"
ILK_LINE = "line"
GLOBAL_LINE = "Line"
END_VAT = "vat"

# Grantees of vat.rely, in grant order.
AUTHORIZED_COMPONENTS: Tuple[Component, ...] = (
    Component.VAT,
    Component.WETH_JOIN,
    Component.DAI_JOIN,
    Component.POT,
    Component.END,
)


# =============================================================================
# PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class BootstrapParameters:
    """Encoded economic parameters for the bootstrap network."""
    collateral: str
    spot: int        # RAY
    ilk_line: int    # RAD
    global_line: int  # RAD
    rate: int        # RAY
    unity_rate: int  # RAY
    chi: int         # RAY

    @classmethod
    def from_config(cls, config: DeployConfig) -> "BootstrapParameters":
        section = config.bootstrap
        ceiling = to_rad(section.debt_ceiling.get())
        return cls(
            collateral=section.collateral.get(),
            spot=to_ray(section.spot.get()),
            ilk_line=ceiling,
            global_line=ceiling,
            rate=to_ray(section.rate.get()),
            unity_rate=to_ray(section.unity_rate.get()),
            chi=to_ray(section.chi.get()),
        )

    @property
    def ilk(self) -> bytes:
        return to_bytes32(self.collateral)

    @property
    def rate_delta(self) -> int:
        """Accumulator increase applied by the seeding fold."""
        return sub(self.rate, self.unity_rate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collateral": self.collateral,
            "spot": str(self.spot),
            "line": str(self.ilk_line),
            "Line": str(self.global_line),
            "rate": str(self.rate),
            "rate_delta": str(self.rate_delta),
            "chi": str(self.chi),
        }


# =============================================================================
# CONFIGURATION
# =============================================================================

def apply_configuration(ctx: DeploymentContext, params: BootstrapParameters) -> None:
    """Initialise the collateral type and file the risk parameters."""
    ilk = params.ilk
    ctx.transact(Component.VAT, "init", ilk)
    ctx.transact(Component.VAT, "file", ilk, to_bytes32(SPOT), params.spot)
    ctx.transact(Component.VAT, "file", ilk, to_bytes32(ILK_LINE), params.ilk_line)
    ctx.transact(Component.VAT, "file", to_bytes32(GLOBAL_LINE), params.global_line)
    ctx.transact(Component.END, "file", to_bytes32(END_VAT), ctx.address_of(Component.VAT))
    configure_logger.info(
        "Vat and End configured",
        collateral=params.collateral,
        spot=str(params.spot),
        line=str(params.ilk_line),
        Line=str(params.global_line),
    )


# =============================================================================
# AUTHORIZATION
# =============================================================================

def grant_authorizations(ctx: DeploymentContext) -> List[AuthorizationEdge]:
    """Rely every dependent component on the vat. Stops at the first rejection."""
    vat = ctx.address_of(Component.VAT)
    edges: List[AuthorizationEdge] = []
    for component in AUTHORIZED_COMPONENTS:
        grantee = ctx.address_of(component)
        ctx.transact(Component.VAT, "rely", grantee)
        edge = AuthorizationEdge(grantor=vat, grantee=grantee, grantee_name=component.symbol)
        ctx.authorizations.append(edge)
        edges.append(edge)
        authorize_logger.debug("Granted vat authority", grantee=component.symbol, address=grantee)

    authorize_logger.info("Vat authorizations granted", grantees=[e.grantee_name for e in edges])
    return edges


# =============================================================================
# ECONOMIC SIMULATION
# =============================================================================

def simulate_accrual(ctx: DeploymentContext, params: BootstrapParameters) -> None:
    """Fold the stability rate up to its target and set the savings accumulator."""
    vat = ctx.address_of(Component.VAT)
    ctx.transact(Component.VAT, "fold", params.ilk, vat, params.rate_delta)
    ctx.transact(Component.POT, "setChi", params.chi)
    simulate_logger.info(
        "Synthetic accrual applied",
        collateral=params.collateral,
        rate_delta=str(params.rate_delta),
        chi=str(params.chi),
    )
