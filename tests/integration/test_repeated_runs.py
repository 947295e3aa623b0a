"""
Integration: repeated runs and failure propagation.

Exercises the whole migration against a single long-lived host, the way
re-running a migration against the same chain would.
"""

import pytest

from dssdeploy.components import REGISTRY_ORDER
from dssdeploy.config import DeployConfig
from dssdeploy.core import to_bytes32
from dssdeploy.errors import DeploymentFailure, MissingConfiguration
from dssdeploy.fixedpoint import to_ray
from dssdeploy.host import InMemoryHost
from dssdeploy.migration import run_external_deployment
from dssdeploy.network import FixedAddressTable
from dssdeploy.registry import deploy_registry


class TestRepeatedRuns:
    def test_second_bootstrap_run_appends(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        first = run_external_deployment(host, registry.address)
        second = run_external_deployment(host, registry.address)

        entries = registry.entries()
        assert len(entries) == 16
        assert [s for s, _ in entries] == [c.symbol for c in REGISTRY_ORDER] * 2
        assert entries[:8] == list(first.addresses.items())
        assert entries[8:] == list(second.addresses.items())
        assert set(first.addresses.values()).isdisjoint(second.addresses.values())

    def test_each_run_has_its_own_correlation_id(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        a = run_external_deployment(host, registry.address)
        b = run_external_deployment(host, registry.address)
        assert a.correlation_id != b.correlation_id

    def test_bootstrap_then_reuse_of_its_own_addresses(self):
        dev = InMemoryHost()
        dev_registry = deploy_registry(dev)
        bootstrap = run_external_deployment(dev, dev_registry.address)

        table = FixedAddressTable({
            "staging": {
                c.table_key: bootstrap.addresses[c.symbol] for c in REGISTRY_ORDER
            },
        })
        staging = InMemoryHost(network="staging")
        staging_registry = deploy_registry(staging)
        reuse = run_external_deployment(staging, staging_registry.address, table=table)

        for c in REGISTRY_ORDER:
            if c.is_core:
                assert reuse.addresses[c.symbol] == bootstrap.addresses[c.symbol]
        assert reuse.deployed == ["Chai"]


    @pytest.mark.slow
    def test_many_runs_keep_appending(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        for _ in range(25):
            run_external_deployment(host, registry.address)
        assert registry.count() == 25 * len(REGISTRY_ORDER)


class TestFailurePropagation:
    """A rejected operation halts the run and nothing is rolled back."""

    def test_deploy_rejection(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        host.fail_on("deploy", "Pot", "out of gas")

        with pytest.raises(DeploymentFailure) as exc:
            run_external_deployment(host, registry.address)
        assert exc.value.subject == "Pot"

        assert [op.subject for op in host.operations] == [
            "Migrations", "Vat", "WETH9", "GemJoin", "TestDai", "DaiJoin",
        ]
        assert registry.count() == 0

    def test_simulation_rejection_keeps_grants(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        host.fail_on("transact", "fold", "halted")

        with pytest.raises(DeploymentFailure):
            run_external_deployment(host, registry.address)

        subjects = [op.subject for op in host.operations if op.kind == "transact"]
        assert subjects == ["init", "file", "file", "file", "file"] + ["rely"] * 5
        assert registry.count() == 0

    def test_retry_after_failure_starts_over(self):
        host = InMemoryHost()
        registry = deploy_registry(host)
        host.fail_on("transact", "setChi")
        with pytest.raises(DeploymentFailure):
            run_external_deployment(host, registry.address)

        host.clear_failures()
        result = run_external_deployment(host, registry.address)
        assert registry.count() == 8
        deploys = [op.subject for op in host.operations if op.kind == "deploy"]
        assert deploys.count("Vat") == 2
        assert host.call(result.addresses["Pot"], "chi") == to_ray(1.2)

    def test_missing_configuration_touches_nothing(self):
        host = InMemoryHost(network="mainnet")
        registry = deploy_registry(host)
        with pytest.raises(MissingConfiguration):
            run_external_deployment(host, registry.address, table=FixedAddressTable({}))
        assert len(host.operations) == 1

    def test_config_from_environment_reaches_contracts(self, monkeypatch):
        monkeypatch.setenv("DSSDEPLOY_SPOT", "175")
        host = InMemoryHost()
        registry = deploy_registry(host)
        result = run_external_deployment(host, registry.address, config=DeployConfig())
        assert host.call(result.addresses["Vat"], "ilks", to_bytes32("ETH-A"))[2] == to_ray(175)
