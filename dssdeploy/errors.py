"""
Deployment Error Types

Every failure the deployment flow can surface derives from DeploymentError,
so callers can catch the whole family in one place. Nothing here retries or
compensates: a failed run leaves the host in whatever state the operations
confirmed before the failure produced.

    MissingConfiguration   reuse target or core address absent (before any deploy)
    DeploymentFailure      host rejected a deploy or transaction
    RegistrationFailure    registry commit attempted with an unset address
    AddressAlreadySet      a descriptor's address assigned a second time

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class DeploymentError(Exception):
    """Base exception for the deployment flow."""
    pass


class MissingConfiguration(DeploymentError):
    """A reuse network is absent from the address table or lacks core addresses."""

    def __init__(self, target: str, missing: Sequence[str] = ()):
        self.target = target
        self.missing = list(missing)
        if self.missing:
            message = f"Network {target!r} is missing core addresses: {', '.join(self.missing)}"
        else:
            message = f"Network {target!r} not found in fixed address table"
        super().__init__(message)


class DeploymentFailure(DeploymentError):
    """The host rejected a deploy, configuration, grant, or registration call."""

    def __init__(
        self,
        operation: str,
        subject: str,
        reason: str,
        args: Optional[Sequence[Any]] = None,
    ):
        self.operation = operation
        self.subject = subject
        self.reason = reason
        self.call_args = list(args or ())
        super().__init__(f"{operation} {subject} rejected: {reason}")


class RegistrationFailure(DeploymentError):
    """A registry entry was committed without a resolved address."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Cannot register {symbol}: address is unset")


class AddressAlreadySet(DeploymentError):
    """A component descriptor's address was assigned twice."""

    def __init__(self, name: str, current: str, attempted: str):
        self.name = name
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"{name} already resolved to {current}; refusing to set {attempted}"
        )
