import pytest

from pvgss import pv_core
from pvgss.access_tree import trade_tree

# BN254 group order; pure field tests run over this prime without Charm.
BN254_ORDER = 21888242871839275222246405745257275088548364400416034343698204186575808495617


@pytest.fixture(scope="session")
def params():
    return pv_core.setup_params(pv_core.DEFAULT_CURVE)


@pytest.fixture(scope="session")
def trade():
    return trade_tree(10, 6)
