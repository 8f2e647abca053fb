"""Pytest configuration and fixtures."""

import pytest

from dexrouter.chain import Chain
from dexrouter.engine import Engine
from tests.helpers import (
    DEEP,
    TKA,
    TKB,
    WETH,
    deploy_uniswap_v2,
    deploy_uniswap_v3,
    make_engine,
)
from tests.helpers.factories import V2Deployment, V3Deployment, add_v2_pair, add_v3_pool


@pytest.fixture
def chain() -> Chain:
    return Chain()


@pytest.fixture
def engine(chain: Chain) -> Engine:
    """Unconfigured engine; OPERATOR holds the operator role."""
    return make_engine(chain)


@pytest.fixture
def v2(engine: Engine) -> V2Deployment:
    """Uniswap V2 with deep TKA/WETH and TKB/WETH pairs at 1:1."""
    deployment = deploy_uniswap_v2(engine)
    add_v2_pair(engine, deployment, TKA, WETH, DEEP, DEEP)
    add_v2_pair(engine, deployment, TKB, WETH, DEEP, DEEP)
    return deployment


@pytest.fixture
def v3(engine: Engine) -> V3Deployment:
    """Uniswap V3 with a deep full-range TKA/TKB pool at tick 0 in the 0.3% tier."""
    deployment = deploy_uniswap_v3(engine)
    add_v3_pool(engine, deployment, TKA, TKB, 3000, DEEP, DEEP)
    return deployment
