"""
Reuse network flow tests.

On any network other than the bootstrap network the core comes from the
fixed address table and only the wrapper is deployed.
"""

import pytest

from dssdeploy.components import REGISTRY_ORDER
from dssdeploy.config import DeployConfig
from dssdeploy.errors import MissingConfiguration
from dssdeploy.host import InMemoryHost
from dssdeploy.migration import plan_deployment, run_external_deployment
from dssdeploy.network import FixedAddressTable, NetworkMode
from dssdeploy.registry import deploy_registry

from conftest import KOVAN_ADDRESSES


class TestReuseDeployment:
    def test_only_wrapper_deployed(self, host, registry, table):
        result = run_external_deployment(host, registry.address, target="kovan", table=table)
        assert result.mode is NetworkMode.REUSE
        assert result.deployed == ["Chai"]
        deploys = [op.subject for op in host.operations if op.kind == "deploy"]
        assert deploys == ["Migrations", "Chai"]

    def test_core_addresses_come_from_table(self, host, registry, table):
        result = run_external_deployment(host, registry.address, target="kovan", table=table)
        for component in REGISTRY_ORDER:
            if component.is_core:
                assert result.addresses[component.symbol] == KOVAN_ADDRESSES[component.table_key]

    def test_wrapper_built_from_table_addresses(self, host, registry, table):
        result = run_external_deployment(host, registry.address, target="kovan", table=table)
        chai = host.contract(result.addresses["Chai"])
        assert chai.constructor_args == [
            KOVAN_ADDRESSES["vatAddress"],
            KOVAN_ADDRESSES["potAddress"],
            KOVAN_ADDRESSES["daiJoinAddress"],
            KOVAN_ADDRESSES["daiAddress"],
        ]

    def test_table_wrapper_ignored_by_default(self, host, registry, table):
        # The reuse guard never holds, so even kovan gets a fresh wrapper.
        result = run_external_deployment(host, registry.address, target="kovan", table=table)
        assert result.addresses["Chai"] != KOVAN_ADDRESSES["chaiAddress"]

    def test_no_bootstrap_steps(self, host, registry, table):
        result = run_external_deployment(host, registry.address, target="kovan", table=table)
        assert result.authorizations == []
        assert result.parameters is None
        transacts = [op.subject for op in host.operations if op.kind == "transact"]
        assert transacts == ["register"] * 8

    def test_target_defaults_to_host_network(self, table):
        kovan = InMemoryHost(network="kovan")
        reg = deploy_registry(kovan)
        result = run_external_deployment(kovan, reg.address, table=table)
        assert result.target == "kovan"
        assert result.mode is NetworkMode.REUSE


class TestMissingConfiguration:
    """Missing configuration fails before any host operation."""

    def test_unknown_network(self, host, registry, table):
        before = len(host.operations)
        with pytest.raises(MissingConfiguration):
            run_external_deployment(host, registry.address, target="mainnet", table=table)
        assert len(host.operations) == before

    def test_incomplete_entry(self, host, registry):
        entry = dict(KOVAN_ADDRESSES, wethJoinAddress="")
        before = len(host.operations)
        with pytest.raises(MissingConfiguration) as exc:
            run_external_deployment(
                host, registry.address, target="kovan",
                table=FixedAddressTable({"kovan": entry}),
            )
        assert exc.value.missing == ["wethJoinAddress"]
        assert len(host.operations) == before

    def test_no_table(self, host, registry):
        with pytest.raises(MissingConfiguration):
            run_external_deployment(host, registry.address, target="kovan")
        assert [op.subject for op in host.operations] == ["Migrations"]


class TestWrapperReuseFlag:
    def _config(self):
        config = DeployConfig()
        config.wrapper.reuse_fixed_address.set(True)
        return config

    def test_guard_network_reuses_table_wrapper(self, host, registry, table):
        result = run_external_deployment(
            host, registry.address, target="kovan", table=table, config=self._config(),
        )
        assert result.addresses["Chai"] == KOVAN_ADDRESSES["chaiAddress"]
        assert result.deployed == []
        assert [op.kind for op in host.operations[1:]] == ["transact"] * 8

    def test_other_network_still_deploys(self, host, registry, table):
        result = run_external_deployment(
            host, registry.address, target="ropsten", table=table, config=self._config(),
        )
        assert result.deployed == ["Chai"]

    def test_guard_network_without_table_wrapper_deploys(self, host, registry):
        entry = {k: v for k, v in KOVAN_ADDRESSES.items() if k != "chaiAddress"}
        result = run_external_deployment(
            host, registry.address, target="kovan",
            table=FixedAddressTable({"kovan": entry}), config=self._config(),
        )
        assert result.deployed == ["Chai"]


class TestPlan:
    def test_bootstrap_plan(self):
        plan = plan_deployment("development")
        assert plan.mode is NetworkMode.BOOTSTRAP
        assert plan.deploy == [c.symbol for c in REGISTRY_ORDER]
        assert plan.steps == [
            "deploy_core", "configure", "authorize", "simulate", "deploy_wrapper", "register",
        ]

    def test_reuse_plan(self, table):
        plan = plan_deployment("kovan", table)
        assert plan.deploy == ["Chai"]
        assert plan.reuse["Vat"] == KOVAN_ADDRESSES["vatAddress"]
        assert plan.steps == ["deploy_core", "deploy_wrapper", "register"]
        assert len(plan.registry_symbols) == 8

    def test_reuse_plan_with_flag(self, table):
        config = DeployConfig()
        config.wrapper.reuse_fixed_address.set(True)
        assert plan_deployment("kovan", table, config).deploy == []

    def test_plan_raises_like_run(self, table):
        with pytest.raises(MissingConfiguration):
            plan_deployment("mainnet", table)

    def test_to_dict(self, table):
        data = plan_deployment("kovan", table).to_dict()
        assert data["mode"] == "reuse"
        assert data["deploy"] == ["Chai"]
