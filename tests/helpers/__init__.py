"""Test helpers module for shared test utilities.

- constants: Token and account addresses
- factories: Venue deployments wired into an Engine
"""

from tests.helpers.constants import ALICE, BOB, DEEP, LP, OPERATOR, TKA, TKB, TKC, TKD, TKE, WETH
from tests.helpers.factories import (
    AmbientDeployment,
    V2Deployment,
    V3Deployment,
    add_ambient_pool,
    add_v2_pair,
    add_v3_pool,
    add_weighted_pool,
    deploy_ambient,
    deploy_balancer,
    deploy_uniswap_v2,
    deploy_uniswap_v3,
    fund,
    make_engine,
)

__all__ = [
    # Constants
    "TKA",
    "TKB",
    "TKC",
    "TKD",
    "TKE",
    "WETH",
    "OPERATOR",
    "ALICE",
    "BOB",
    "LP",
    "DEEP",
    # Factories
    "make_engine",
    "fund",
    "V2Deployment",
    "V3Deployment",
    "AmbientDeployment",
    "deploy_uniswap_v2",
    "deploy_uniswap_v3",
    "deploy_balancer",
    "deploy_ambient",
    "add_v2_pair",
    "add_v3_pool",
    "add_weighted_pool",
    "add_ambient_pool",
]
