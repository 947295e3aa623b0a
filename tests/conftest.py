import os
import pathlib
import sys

import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import dssdeploy`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from dssdeploy.components import Component  # noqa: E402
from dssdeploy.config import DeployConfig  # noqa: E402
from dssdeploy.host import InMemoryHost  # noqa: E402
from dssdeploy.network import FixedAddressTable  # noqa: E402
from dssdeploy.registry import deploy_registry  # noqa: E402


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: slow correctness tests (skipped unless DSSDEPLOY_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    run_slow = _env_flag('DSSDEPLOY_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set DSSDEPLOY_RUN_SLOW=1 to enable'))


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch):
    """Keep DSSDEPLOY_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("DSSDEPLOY_"):
            monkeypatch.delenv(key, raising=False)


def _addr(n: int) -> str:
    return "0x" + f"{n:040x}"


KOVAN_ADDRESSES = {
    Component.VAT.table_key: _addr(0x11),
    Component.WETH.table_key: _addr(0x12),
    Component.WETH_JOIN.table_key: _addr(0x13),
    Component.DAI.table_key: _addr(0x14),
    Component.DAI_JOIN.table_key: _addr(0x15),
    Component.POT.table_key: _addr(0x16),
    Component.END.table_key: _addr(0x17),
    Component.CHAI.table_key: _addr(0x18),
}

ROPSTEN_ADDRESSES = {
    c.table_key: _addr(0x20 + i) for i, c in enumerate(Component)
}


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost(network="development")


@pytest.fixture
def registry(host):
    return deploy_registry(host)


@pytest.fixture
def config() -> DeployConfig:
    return DeployConfig()


@pytest.fixture
def table() -> FixedAddressTable:
    return FixedAddressTable({
        "kovan": dict(KOVAN_ADDRESSES),
        "ropsten": dict(ROPSTEN_ADDRESSES),
    })
