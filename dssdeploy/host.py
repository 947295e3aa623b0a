"""
Deployment Host Interface

The execution environment the migration deploys onto. Real hosts (a node RPC,
a test chain, a fork) implement the DeploymentHost protocol; the in-memory
host below simulates just enough contract state to run the full flow without
a network and to assert on the result.

Architecture:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      DEPLOYMENT STEPS                                │
    │  sequencer  bootstrap  wrapper  registry                             │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ deploy / transact / call
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                      DEPLOYMENT HOST                                 │
    │  one blocking, individually atomic operation at a time               │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │
          ┌────────────────────────┴────────────────────────┐
          ▼                                                 ▼
    ┌───────────────┐                                 ┌───────────────┐
    │  Node / RPC   │                                 │  InMemoryHost │
    │  (external)   │                                 │  (tests, CLI) │
    └───────────────┘                                 └───────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple, Type

from dssdeploy.core import derive_address, from_bytes32, sha256_bytes
from dssdeploy.errors import DeploymentFailure
from dssdeploy.fixedpoint import RAY


# =============================================================================
# RECEIPTS
# =============================================================================

@dataclass(frozen=True)
class TxReceipt:
    """Confirmation of one host operation."""
    tx_hash: str
    block_number: int
    operation: str  # "deploy" or "transact"
    subject: str    # artifact name or method name
    contract_address: str
    sender: str


# =============================================================================
# HOST INTERFACE
# =============================================================================

class DeploymentHost(Protocol):
    """
    Protocol for execution hosts.

    Every method blocks until the operation is confirmed or rejected.
    Rejections surface as DeploymentFailure.
    """

    @property
    def network(self) -> str:
        """Identifier of the network this host is connected to."""
        ...

    @property
    def default_account(self) -> str:
        """Account that sends deployments and transactions."""
        ...

    def deploy(self, artifact: str, *args: Any) -> str:
        """
        Deploy a contract artifact with positional constructor arguments.

        Returns the new contract address.
        """
        ...

    def transact(self, address: str, method: str, *args: Any) -> TxReceipt:
        """
        Send a state-changing call to a deployed contract.
        """
        ...

    def call(self, address: str, method: str, *args: Any) -> Any:
        """
        Read-only call against a deployed contract.
        """
        ...


# =============================================================================
# SIMULATED CONTRACTS
# =============================================================================

class Revert(Exception):
    """Raised by a simulated contract to reject an operation."""
    pass


class SimulatedContract:
    """
    Base for in-memory contracts.

    Methods named in ``transactions`` may be sent with transact(); methods in
    ``views`` may be read with call(). Contracts must validate before they
    mutate so a revert leaves state untouched.
    """
    artifact = ""
    transactions: Tuple[str, ...] = ()
    views: Tuple[str, ...] = ()

    def __init__(self, address: str, deployer: str, *args: Any):
        self.address = address
        self.deployer = deployer
        self.constructor_args = list(args)
        self.authorized: Set[str] = {deployer}
        self.sender = deployer

    def _auth(self) -> None:
        if self.sender not in self.authorized:
            raise Revert(f"{self.artifact}/not-authorized")

    def wards(self, usr: str) -> int:
        return 1 if usr in self.authorized else 0


class VatContract(SimulatedContract):
    """Core ledger: per-ilk rate, spot, line, dust, plus the global Line."""
    artifact = "Vat"
    transactions = ("init", "file", "rely", "deny", "fold")
    views = ("ilks", "Line", "wards", "dai", "debt", "live")

    def __init__(self, address: str, deployer: str, *args: Any):
        super().__init__(address, deployer, *args)
        self._ilks: Dict[str, Dict[str, int]] = {}
        self._line_total = 0
        self._dai: Dict[str, int] = {}
        self._debt = 0
        self._live = 1
        self.fold_log: List[Dict[str, Any]] = []

    def init(self, ilk: bytes) -> None:
        self._auth()
        name = from_bytes32(ilk)
        if self._ilks.get(name, {}).get("rate", 0) != 0:
            raise Revert("Vat/ilk-already-init")
        self._ilks[name] = {"Art": 0, "rate": RAY, "spot": 0, "line": 0, "dust": 0}

    def file(self, *args: Any) -> None:
        self._auth()
        if self._live != 1:
            raise Revert("Vat/not-live")
        if len(args) == 2:
            what, data = from_bytes32(args[0]), int(args[1])
            if what != "Line":
                raise Revert("Vat/file-unrecognized-param")
            self._line_total = data
            return
        if len(args) == 3:
            ilk, what, data = from_bytes32(args[0]), from_bytes32(args[1]), int(args[2])
            if what not in ("spot", "line", "dust"):
                raise Revert("Vat/file-unrecognized-param")
            self._ilks.setdefault(ilk, {"Art": 0, "rate": 0, "spot": 0, "line": 0, "dust": 0})
            self._ilks[ilk][what] = data
            return
        raise Revert("Vat/file-bad-arity")

    def rely(self, usr: str) -> None:
        self._auth()
        self.authorized.add(usr)

    def deny(self, usr: str) -> None:
        self._auth()
        self.authorized.discard(usr)

    def fold(self, ilk: bytes, u: str, rate: int) -> None:
        self._auth()
        if self._live != 1:
            raise Revert("Vat/not-live")
        name = from_bytes32(ilk)
        if name not in self._ilks or self._ilks[name]["rate"] == 0:
            raise Revert("Vat/ilk-not-init")
        entry = self._ilks[name]
        entry["rate"] += int(rate)
        rad = entry["Art"] * int(rate)
        self._dai[u] = self._dai.get(u, 0) + rad
        self._debt += rad
        self.fold_log.append({
            "ilk": name,
            "u": u,
            "rate": int(rate),
            "wards": frozenset(self.authorized),
        })

    def ilks(self, ilk: bytes) -> Tuple[int, int, int, int, int]:
        e = self._ilks.get(from_bytes32(ilk), {"Art": 0, "rate": 0, "spot": 0, "line": 0, "dust": 0})
        return e["Art"], e["rate"], e["spot"], e["line"], e["dust"]

    def Line(self) -> int:  # noqa: N802 - contract getter name
        return self._line_total

    def dai(self, u: str) -> int:
        return self._dai.get(u, 0)

    def debt(self) -> int:
        return self._debt

    def live(self) -> int:
        return self._live


class PotContract(SimulatedContract):
    """Savings rate module; the test build exposes setChi."""
    artifact = "Pot"
    transactions = ("rely", "setChi")
    views = ("chi", "vat", "wards")

    def __init__(self, address: str, deployer: str, vat: str):
        super().__init__(address, deployer, vat)
        self._vat = vat
        self._chi = RAY

    def rely(self, usr: str) -> None:
        self._auth()
        self.authorized.add(usr)

    def setChi(self, chi: int) -> None:  # noqa: N802
        self._auth()
        self._chi = int(chi)

    def chi(self) -> int:
        return self._chi

    def vat(self) -> str:
        return self._vat


class EndContract(SimulatedContract):
    """Shutdown module, wired to the vat after deployment."""
    artifact = "End"
    transactions = ("rely", "file")
    views = ("vat", "wards")

    def __init__(self, address: str, deployer: str):
        super().__init__(address, deployer)
        self._vat = ""

    def rely(self, usr: str) -> None:
        self._auth()
        self.authorized.add(usr)

    def file(self, what: bytes, data: str) -> None:
        self._auth()
        if from_bytes32(what) != "vat":
            raise Revert("End/file-unrecognized-param")
        self._vat = data

    def vat(self) -> str:
        return self._vat


class GemJoinContract(SimulatedContract):
    artifact = "GemJoin"
    views = ("vat", "ilk", "gem")

    def __init__(self, address: str, deployer: str, vat: str, ilk: bytes, gem: str):
        super().__init__(address, deployer, vat, ilk, gem)

    def vat(self) -> str:
        return self.constructor_args[0]

    def ilk(self) -> bytes:
        return self.constructor_args[1]

    def gem(self) -> str:
        return self.constructor_args[2]


class DaiJoinContract(SimulatedContract):
    artifact = "DaiJoin"
    views = ("vat", "dai")

    def __init__(self, address: str, deployer: str, vat: str, dai: str):
        super().__init__(address, deployer, vat, dai)

    def vat(self) -> str:
        return self.constructor_args[0]

    def dai(self) -> str:
        return self.constructor_args[1]


class TestDaiContract(SimulatedContract):
    artifact = "TestDai"
    views = ("totalSupply",)

    def __init__(self, address: str, deployer: str, initial: int):
        super().__init__(address, deployer, initial)

    def totalSupply(self) -> int:  # noqa: N802
        return int(self.constructor_args[0])


class Weth9Contract(SimulatedContract):
    artifact = "WETH9"
    views = ("symbol",)

    def symbol(self) -> str:
        return "WETH"


class ChaiContract(SimulatedContract):
    """Savings wrapper composed from vat, pot, daiJoin and dai."""
    artifact = "Chai"
    views = ("vat", "pot", "daiJoin", "dai")

    def __init__(self, address: str, deployer: str, vat: str, pot: str, dai_join: str, dai: str):
        super().__init__(address, deployer, vat, pot, dai_join, dai)

    def vat(self) -> str:
        return self.constructor_args[0]

    def pot(self) -> str:
        return self.constructor_args[1]

    def daiJoin(self) -> str:  # noqa: N802
        return self.constructor_args[2]

    def dai(self) -> str:
        return self.constructor_args[3]


class MigrationsContract(SimulatedContract):
    """Append-only name -> address registry owned by the deployer."""
    artifact = "Migrations"
    transactions = ("register",)
    views = ("entries", "count", "owner")

    def __init__(self, address: str, deployer: str):
        super().__init__(address, deployer)
        self._entries: List[Tuple[bytes, str]] = []

    def register(self, name: bytes, addr: str) -> None:
        if self.sender != self.deployer:
            raise Revert("Migrations/restricted")
        self._entries.append((bytes(name), addr))

    def entries(self) -> List[Tuple[bytes, str]]:
        return list(self._entries)

    def count(self) -> int:
        return len(self._entries)

    def owner(self) -> str:
        return self.deployer


DEFAULT_ARTIFACTS: Dict[str, Type[SimulatedContract]] = {
    cls.artifact: cls
    for cls in (
        VatContract,
        PotContract,
        EndContract,
        GemJoinContract,
        DaiJoinContract,
        TestDaiContract,
        Weth9Contract,
        ChaiContract,
        MigrationsContract,
    )
}


# =============================================================================
# IN-MEMORY HOST
# =============================================================================

@dataclass
class HostOperation:
    """One operation recorded by the in-memory host, in issue order."""
    kind: str  # "deploy" or "transact"
    subject: str
    address: str
    args: List[Any] = field(default_factory=list)
    sender: str = ""


class InMemoryHost:
    """
    In-memory deployment host.

    Simulates contract deployment and state without a network. Every deploy
    and transaction is appended to ``operations`` so tests can assert on
    ordering. Failures can be injected per artifact or per method with
    ``fail_on``.
    """

    def __init__(
        self,
        network: str = "development",
        account: Optional[str] = None,
        artifacts: Optional[Dict[str, Type[SimulatedContract]]] = None,
    ):
        self._network = network
        self._account = account or "0x" + hashlib.sha256(b"deployer").hexdigest()[:40]
        self._artifacts = dict(artifacts or DEFAULT_ARTIFACTS)
        self._contracts: Dict[str, SimulatedContract] = {}
        self._nonce = 0
        self._block_number = 1
        self._failures: Dict[Tuple[str, str], str] = {}
        self.operations: List[HostOperation] = []

    @property
    def network(self) -> str:
        return self._network

    @property
    def default_account(self) -> str:
        return self._account

    def fail_on(self, kind: str, subject: str, reason: str = "injected failure") -> None:
        """Reject the next and all later operations matching (kind, subject)."""
        self._failures[(kind, subject)] = reason

    def clear_failures(self) -> None:
        self._failures.clear()

    def contract(self, address: str) -> SimulatedContract:
        """Direct access to a simulated contract, for assertions."""
        if address not in self._contracts:
            raise KeyError(f"No contract at {address}")
        return self._contracts[address]

    def has_code(self, address: str) -> bool:
        return address in self._contracts

    def deploy(self, artifact: str, *args: Any) -> str:
        self._check_injected("deploy", artifact, args)
        cls = self._artifacts.get(artifact)
        if cls is None:
            raise DeploymentFailure("deploy", artifact, "unknown artifact", args)

        address = derive_address(self._account, self._nonce)
        try:
            contract = cls(address, self._account, *args)
        except TypeError as exc:
            raise DeploymentFailure("deploy", artifact, f"bad constructor arguments: {exc}", args) from exc

        self._nonce += 1
        self._contracts[address] = contract
        self._record(HostOperation("deploy", artifact, address, list(args), self._account))
        return address

    def transact(self, address: str, method: str, *args: Any) -> TxReceipt:
        self._check_injected("transact", method, args)
        contract = self._contracts.get(address)
        if contract is None:
            raise DeploymentFailure("transact", method, f"no contract at {address}", args)
        if method not in contract.transactions:
            raise DeploymentFailure("transact", method, f"{contract.artifact} has no method {method}", args)

        contract.sender = self._account
        try:
            getattr(contract, method)(*args)
        except Revert as exc:
            raise DeploymentFailure("transact", f"{contract.artifact}.{method}", str(exc), args) from exc

        self._nonce += 1
        receipt = TxReceipt(
            tx_hash="0x" + sha256_bytes(f"{address}:{method}:{self._nonce}".encode("utf-8")),
            block_number=self._block_number,
            operation="transact",
            subject=method,
            contract_address=address,
            sender=self._account,
        )
        self._record(HostOperation("transact", method, address, list(args), self._account))
        return receipt

    def call(self, address: str, method: str, *args: Any) -> Any:
        contract = self._contracts.get(address)
        if contract is None or method not in contract.views:
            raise DeploymentFailure("call", method, f"no view {method} at {address}", args)
        return getattr(contract, method)(*args)

    def _check_injected(self, kind: str, subject: str, args: Tuple[Any, ...]) -> None:
        reason = self._failures.get((kind, subject))
        if reason is not None:
            raise DeploymentFailure(kind, subject, reason, args)

    def _record(self, op: HostOperation) -> None:
        self._block_number += 1
        self.operations.append(op)
