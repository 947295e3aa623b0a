"""
dssdeploy — External-Deployment Migration for the Stablecoin Core

Deploys and wires the multi-collateral stablecoin core (Vat, WETH9, GemJoin,
Dai, DaiJoin, Pot, End) plus the Chai savings wrapper, and records every
address in an on-host registry.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                      EXTERNAL-DEPLOYMENT MIGRATION                       │
    │                                                                          │
    │  ORCHESTRATION                                                           │
    │    migration.py   resolve → deploy → configure → authorize → simulate   │
    │                   → wrapper → register, plus plan preview               │
    │    context.py     Per-run state threaded through every step             │
    │                                                                          │
    │  STEPS                                                                   │
    │    network.py     Bootstrap vs reuse, fixed address table               │
    │    sequencer.py   Dependency-ordered core deployment                    │
    │    bootstrap.py   Risk parameters, vat grants, synthetic accrual        │
    │    wrapper.py     Chai deployment behind the reuse guard                │
    │    registry.py    Sequential, append-only registry commit               │
    │                                                                          │
    │  FOUNDATION                                                              │
    │    fixedpoint.py  RAY / RAD encodings                                   │
    │    host.py        Host protocol and in-memory host                      │
    │    components.py  Component catalogue and descriptors                   │
    │    config.py      YAML + environment configuration                      │
    │    observability.py  Structured logging and stage spans                 │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Modes
─────

    Bootstrap: the development network. Every component is deployed from
    scratch, the vat is configured for ETH-A, authority is granted to the
    adapters, pot and end, and the rate and savings accumulators are moved
    off their initial values.

    Reuse: every other network. Core addresses come from the fixed address
    table; only Chai is deployed.

Copyright © 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

__version__ = "0.1.0"


# Lazy imports to keep `python -m dssdeploy --version` light
def __getattr__(name):
    """Lazy import dssdeploy modules on first access."""

    if name in ("run_external_deployment", "plan_deployment", "DeploymentResult", "DeploymentPlan"):
        from dssdeploy import migration
        return getattr(migration, name)

    if name in ("NetworkMode", "NetworkResolution", "FixedAddressTable", "resolve"):
        from dssdeploy import network
        return getattr(network, name)

    if name in ("to_ray", "to_rad", "sub", "RAY", "RAD", "WAD"):
        from dssdeploy import fixedpoint
        return getattr(fixedpoint, name)

    if name in ("DeploymentHost", "InMemoryHost", "TxReceipt"):
        from dssdeploy import host
        return getattr(host, name)

    if name in ("Component", "ComponentDescriptor", "REGISTRY_ORDER", "CORE_COMPONENTS"):
        from dssdeploy import components
        return getattr(components, name)

    if name in ("DeploymentContext", "AuthorizationEdge", "RegistryEntry"):
        from dssdeploy import context
        return getattr(context, name)

    if name in ("RegistryClient", "commit_registry", "deploy_registry"):
        from dssdeploy import registry
        return getattr(registry, name)

    if name in ("DeploymentError", "MissingConfiguration", "DeploymentFailure",
                "RegistrationFailure", "AddressAlreadySet"):
        from dssdeploy import errors
        return getattr(errors, name)

    if name in ("DeployConfig", "ConfigManager", "get_config_manager"):
        from dssdeploy import config
        return getattr(config, name)

    raise AttributeError(f"module 'dssdeploy' has no attribute {name!r}")


__all__ = [
    "__version__",
    "run_external_deployment",
    "plan_deployment",
    "DeploymentResult",
    "DeploymentPlan",
    "NetworkMode",
    "NetworkResolution",
    "FixedAddressTable",
    "resolve",
    "to_ray",
    "to_rad",
    "sub",
    "RAY",
    "RAD",
    "WAD",
    "DeploymentHost",
    "InMemoryHost",
    "TxReceipt",
    "Component",
    "ComponentDescriptor",
    "REGISTRY_ORDER",
    "CORE_COMPONENTS",
    "DeploymentContext",
    "AuthorizationEdge",
    "RegistryEntry",
    "RegistryClient",
    "commit_registry",
    "deploy_registry",
    "DeploymentError",
    "MissingConfiguration",
    "DeploymentFailure",
    "RegistrationFailure",
    "AddressAlreadySet",
    "DeployConfig",
    "ConfigManager",
    "get_config_manager",
]
