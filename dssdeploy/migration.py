"""
External-deployment migration.

Runs the whole flow against one host:

    resolve ──▶ deploy core ──▶ configure ──▶ authorize ──▶ simulate ──▶ wrapper ──▶ register
                                └──────────── bootstrap only ───────────┘

The sequence is strictly serial: every host operation is confirmed before
the next one is issued. Nothing is rolled back on failure; the exception
propagates unchanged and the host keeps whatever the confirmed operations
produced. Callers must not run two migrations against the same target at
once.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dssdeploy.bootstrap import (
    AUTHORIZED_COMPONENTS,
    BootstrapParameters,
    apply_configuration,
    grant_authorizations,
    simulate_accrual,
)
from dssdeploy.components import CORE_COMPONENTS, REGISTRY_ORDER, Component
from dssdeploy.config import DeployConfig
from dssdeploy.context import AuthorizationEdge, DeploymentContext, RegistryEntry
from dssdeploy.host import DeploymentHost
from dssdeploy.network import FixedAddressTable, NetworkMode, NetworkResolution, resolve
from dssdeploy.observability import (
    DeployStage,
    Tracer,
    generate_correlation_id,
    get_logger,
    set_correlation_id,
)
from dssdeploy.registry import commit_registry
from dssdeploy.sequencer import deploy_core
from dssdeploy.wrapper import deploy_wrapper, reusable_wrapper

logger = get_logger("migration", DeployStage.MIGRATION)


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class DeploymentResult:
    """Everything a completed run resolved and wrote."""
    target: str
    mode: NetworkMode
    correlation_id: str
    addresses: Dict[str, str]
    deployed: List[str] = field(default_factory=list)
    authorizations: List[AuthorizationEdge] = field(default_factory=list)
    registry_entries: List[RegistryEntry] = field(default_factory=list)
    parameters: Optional[BootstrapParameters] = None
    stage_timings_ms: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "mode": self.mode.value,
            "correlation_id": self.correlation_id,
            "addresses": dict(self.addresses),
            "deployed": list(self.deployed),
            "authorizations": [e.to_dict() for e in self.authorizations],
            "registry_entries": [e.to_dict() for e in self.registry_entries],
            "parameters": self.parameters.to_dict() if self.parameters else None,
            "stage_timings_ms": dict(self.stage_timings_ms),
        }


@dataclass
class DeploymentPlan:
    """What a run would do, computed without touching a host."""
    target: str
    mode: NetworkMode
    deploy: List[str]
    reuse: Dict[str, str]
    steps: List[str]
    registry_symbols: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "mode": self.mode.value,
            "deploy": list(self.deploy),
            "reuse": dict(self.reuse),
            "steps": list(self.steps),
            "registry_symbols": list(self.registry_symbols),
        }


# =============================================================================
# ORCHESTRATION
# =============================================================================

def _resolve(
    target: str,
    table: Optional[FixedAddressTable],
    config: DeployConfig,
) -> NetworkResolution:
    return resolve(target, table, bootstrap_network=config.network.bootstrap_network.get())


def plan_deployment(
    target: str,
    table: Optional[FixedAddressTable] = None,
    config: Optional[DeployConfig] = None,
) -> DeploymentPlan:
    """
    Preview a run: mode, components to deploy, steps and registry symbols.

    Raises MissingConfiguration exactly when run_external_deployment would.
    """
    config = config or DeployConfig()
    resolution = _resolve(target, table, config)

    deploy = [c.symbol for c in CORE_COMPONENTS if c not in resolution.core_addresses]
    if reusable_wrapper(resolution, config) is None:
        deploy.append(Component.CHAI.symbol)

    steps = ["deploy_core"]
    if resolution.is_bootstrap:
        steps += ["configure", "authorize", "simulate"]
    steps += ["deploy_wrapper", "register"]

    return DeploymentPlan(
        target=target,
        mode=resolution.mode,
        deploy=deploy,
        reuse={c.symbol: a for c, a in resolution.core_addresses.items()},
        steps=steps,
        registry_symbols=[c.symbol for c in REGISTRY_ORDER],
    )


def run_external_deployment(
    host: DeploymentHost,
    registry_address: str,
    target: Optional[str] = None,
    table: Optional[FixedAddressTable] = None,
    config: Optional[DeployConfig] = None,
    tracer: Optional[Tracer] = None,
) -> DeploymentResult:
    """
    Provision the stablecoin core on ``host`` and commit addresses to the registry.

    Args:
        host: Execution host to deploy onto.
        registry_address: Address of the already-deployed registry contract.
        target: Network identifier; defaults to ``host.network``.
        table: Fixed address table for reuse networks.
        config: Configuration; defaults to a fresh DeployConfig.
        tracer: Tracer collecting one span per stage.

    Returns:
        DeploymentResult with the eight resolved addresses in registry order.

    Raises:
        MissingConfiguration: reuse network absent or incomplete (no host calls made).
        DeploymentFailure: the host rejected an operation (earlier ones persist).
        RegistrationFailure: a component had no address at commit time.
    """
    config = config or DeployConfig()
    tracer = tracer or Tracer(enabled=config.observability.enable_tracing.get())
    target = target if target is not None else host.network
    started = time.monotonic()
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    tracer.start_trace()

    logger.info("Starting external deployment", target=target, registry=registry_address)

    with tracer.span("resolve", DeployStage.RESOLVER, target=target) as span:
        resolution = _resolve(target, table, config)
        span.set_attribute("mode", resolution.mode.value)

    ctx = DeploymentContext(
        host=host,
        registry_address=registry_address,
        resolution=resolution,
        config=config,
        tracer=tracer,
    )
    params: Optional[BootstrapParameters] = None

    try:
        with tracer.span("deploy_core", DeployStage.SEQUENCER):
            deploy_core(ctx)

        if resolution.is_bootstrap:
            params = BootstrapParameters.from_config(config)
            with tracer.span("configure", DeployStage.CONFIGURE):
                apply_configuration(ctx, params)
            with tracer.span("authorize", DeployStage.AUTHORIZE, grantees=len(AUTHORIZED_COMPONENTS)):
                grant_authorizations(ctx)
            with tracer.span("simulate", DeployStage.SIMULATE):
                simulate_accrual(ctx, params)

        with tracer.span("deploy_wrapper", DeployStage.WRAPPER):
            deploy_wrapper(ctx)

        with tracer.span("register", DeployStage.REGISTRY):
            commit_registry(ctx)
    except Exception as exc:
        logger.error(
            "External deployment halted",
            error_code=type(exc).__name__,
            target=target,
            resolved={k: v for k, v in ctx.addresses().items() if v},
            exc_info=True,
        )
        raise

    addresses = {name: addr for name, addr in ctx.addresses().items() if addr is not None}
    result = DeploymentResult(
        target=target,
        mode=resolution.mode,
        correlation_id=correlation_id,
        addresses=addresses,
        deployed=[d.name for d in ctx.descriptors.values() if d.deployed],
        authorizations=list(ctx.authorizations),
        registry_entries=list(ctx.registry_entries),
        parameters=params,
        stage_timings_ms={s.name: round(s.duration_ms, 2) for s in tracer.finished_spans},
    )
    logger.info(
        "External deployment complete",
        operation="run_external_deployment",
        duration_ms=round((time.monotonic() - started) * 1000, 2),
        target=target,
        addresses=addresses,
    )
    return result
