"""
Bootstrap network flow tests.

Runs the full migration on the development network against the in-memory
host and checks the resulting contract state and operation order.

Run with: pytest tests/test_bootstrap_flow.py -v
"""

from decimal import Decimal

import pytest

from dssdeploy import bootstrap
from dssdeploy.bootstrap import BootstrapParameters
from dssdeploy.components import REGISTRY_ORDER
from dssdeploy.config import DeployConfig
from dssdeploy.core import to_bytes32
from dssdeploy.fixedpoint import RAY, to_rad, to_ray
from dssdeploy.migration import run_external_deployment
from dssdeploy.network import NetworkMode


@pytest.fixture
def result(host, registry):
    return run_external_deployment(host, registry.address)


def _vat(host, result):
    return host.contract(result.addresses["Vat"])


class TestBootstrapDeployment:
    """Everything is deployed from scratch, in dependency order."""

    def test_mode(self, result):
        assert result.mode is NetworkMode.BOOTSTRAP
        assert result.target == "development"

    def test_all_components_deployed(self, result):
        assert list(result.addresses) == [c.symbol for c in REGISTRY_ORDER]
        assert result.deployed == [c.symbol for c in REGISTRY_ORDER]

    def test_deploy_order(self, host, result):
        deploys = [op.subject for op in host.operations if op.kind == "deploy"]
        assert deploys == [
            "Migrations", "Vat", "WETH9", "GemJoin", "TestDai",
            "DaiJoin", "Pot", "End", "Chai",
        ]

    def test_transaction_count(self, host, result):
        # 5 configuration + 5 grants + 2 simulation + 8 registrations
        assert len([op for op in host.operations if op.kind == "transact"]) == 20

    def test_constructor_wiring(self, host, result):
        a = result.addresses
        join = host.contract(a["WethJoin"])
        assert join.constructor_args == [a["Vat"], to_bytes32("ETH-A"), a["Weth"]]
        assert host.contract(a["Dai"]).constructor_args == [0]
        assert host.contract(a["DaiJoin"]).constructor_args == [a["Vat"], a["Dai"]]
        assert host.contract(a["Pot"]).constructor_args == [a["Vat"]]
        assert host.contract(a["Chai"]).constructor_args == [a["Vat"], a["Pot"], a["DaiJoin"], a["Dai"]]


class TestBootstrapConfiguration:
    def test_ilk_parameters(self, host, result):
        art, rate, spot, line, dust = host.call(result.addresses["Vat"], "ilks", to_bytes32("ETH-A"))
        assert spot == to_ray(150)
        assert line == to_rad(10000)
        assert rate == to_ray(1.25)
        assert art == 0 and dust == 0

    def test_global_line(self, host, result):
        assert host.call(result.addresses["Vat"], "Line") == 10 ** 49

    def test_end_wired_to_vat(self, host, result):
        assert host.call(result.addresses["End"], "vat") == result.addresses["Vat"]

    def test_chi(self, host, result):
        assert host.call(result.addresses["Pot"], "chi") == to_ray(1.2)
        assert host.call(result.addresses["Pot"], "chi") != RAY

    def test_parameters_reported(self, result):
        assert result.parameters.collateral == "ETH-A"
        assert result.parameters.rate_delta == 25 * 10 ** 25

    def test_configuration_before_grants_before_simulation(self, host, result):
        subjects = [op.subject for op in host.operations if op.kind == "transact"]
        assert subjects[:12] == [
            "init", "file", "file", "file", "file",
            "rely", "rely", "rely", "rely", "rely",
            "fold", "setChi",
        ]


class TestBootstrapAuthorizations:
    def test_edges(self, result):
        names = [e.grantee_name for e in result.authorizations]
        assert names == ["Vat", "WethJoin", "DaiJoin", "Pot", "End"]
        assert all(e.grantor == result.addresses["Vat"] for e in result.authorizations)

    def test_wards(self, host, result):
        vat = result.addresses["Vat"]
        for name in ("Vat", "WethJoin", "DaiJoin", "Pot", "End"):
            assert host.call(vat, "wards", result.addresses[name]) == 1
        assert host.call(vat, "wards", result.addresses["Chai"]) == 0

    def test_all_grants_confirmed_before_fold(self, host, result):
        vat = _vat(host, result)
        assert len(vat.fold_log) == 1
        fold = vat.fold_log[0]
        for name in ("Vat", "WethJoin", "DaiJoin", "Pot", "End"):
            assert result.addresses[name] in fold["wards"]
        assert fold["rate"] == to_ray(1.25) - RAY
        assert fold["u"] == result.addresses["Vat"]

    def test_grant_order_does_not_matter(self, host, registry, monkeypatch):
        monkeypatch.setattr(
            bootstrap,
            "AUTHORIZED_COMPONENTS",
            tuple(reversed(bootstrap.AUTHORIZED_COMPONENTS)),
        )
        result = run_external_deployment(host, registry.address)
        assert [e.grantee_name for e in result.authorizations] == [
            "End", "Pot", "DaiJoin", "WethJoin", "Vat",
        ]
        assert len(_vat(host, result).fold_log[0]["wards"]) == 6


class TestBootstrapParameters:
    def test_defaults(self):
        params = BootstrapParameters.from_config(DeployConfig())
        assert params.spot == 150 * RAY
        assert params.ilk_line == params.global_line == 10 ** 49
        assert params.rate == to_ray(Decimal("1.25"))
        assert params.unity_rate == RAY
        assert params.chi == to_ray(Decimal("1.2"))

    def test_overridden(self):
        config = DeployConfig()
        config.bootstrap.spot.set("200")
        config.bootstrap.collateral.set("WBTC-A")
        params = BootstrapParameters.from_config(config)
        assert params.spot == 200 * RAY
        assert params.ilk == to_bytes32("WBTC-A")

    def test_custom_collateral_flows_to_adapter(self, host, registry):
        config = DeployConfig()
        config.bootstrap.collateral.set("ETH-B")
        result = run_external_deployment(host, registry.address, config=config)
        join = host.contract(result.addresses["WethJoin"])
        assert join.ilk() == to_bytes32("ETH-B")
        assert host.call(result.addresses["Vat"], "ilks", to_bytes32("ETH-B"))[1] == to_ray(1.25)

    def test_to_dict_stringifies(self):
        data = BootstrapParameters.from_config(DeployConfig()).to_dict()
        assert data["Line"] == str(10 ** 49)
        assert data["rate_delta"] == str(25 * 10 ** 25)
