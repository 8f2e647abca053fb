"""Venue deployments on a fresh Chain, wired into an Engine.

Usage:
    engine = make_engine()
    v2 = deploy_uniswap_v2(engine)
    add_v2_pair(engine, v2, TKA, WETH, DEEP, DEEP)
"""

from __future__ import annotations

from dataclasses import dataclass

from dexrouter.amm.balancer.encoding import JoinPoolRequest, encode_init_join
from dexrouter.amm.uniswap_v3.constants import FEE_TICK_SPACING, MAX_TICK
from dexrouter.amm.uniswap_v3.encoding import MintParams
from dexrouter.amm.uniswap_v3.tick_math import get_sqrt_ratio_at_tick
from dexrouter.chain import (
    BalancerVault,
    BalancerWeightedPool,
    Chain,
    CrocImpact,
    CrocQuery,
    CrocSwapDex,
    CrocSwapRouter,
    NonfungiblePositionManager,
    PancakeSwapRouter,
    PancakeV3Factory,
    UniswapV2Factory,
    UniswapV2Router,
    UniswapV3Factory,
    UniswapV3SwapRouter,
)
from dexrouter.engine import Engine
from dexrouter.models.types import sort_tokens
from dexrouter.models.venue import VenueEndpoints, VenueId
from tests.helpers.constants import LP, OPERATOR


def make_engine(chain: Chain | None = None, **policy) -> Engine:
    """Engine on a fresh chain with OPERATOR as its only operator."""
    return Engine.create(chain or Chain(), [OPERATOR], **policy)


def fund(engine: Engine, holder: str, token: str, amount: int) -> None:
    engine.chain.mint(token, holder, amount)


def deadline(engine: Engine) -> int:
    return engine.chain.timestamp + 600


# =============================================================================
# Constant product
# =============================================================================


@dataclass
class V2Deployment:
    venue: VenueId
    factory: UniswapV2Factory
    router: UniswapV2Router


def deploy_uniswap_v2(
    engine: Engine, venue: VenueId = VenueId.UNISWAP_V2, fee_bps: int = 30
) -> V2Deployment:
    chain = engine.chain
    factory = chain.deploy(UniswapV2Factory(chain, fee_bps))
    router = chain.deploy(UniswapV2Router(chain, factory))
    engine.registry.set_venue_endpoints(
        venue, VenueEndpoints(router=router.address, factory=factory.address), sender=OPERATOR
    )
    return V2Deployment(venue, factory, router)


def add_v2_pair(
    engine: Engine,
    v2: V2Deployment,
    token_a: str,
    token_b: str,
    amount_a: int,
    amount_b: int,
    provider: str = LP,
) -> str:
    """Seed (or top up) a pair from `provider` and return the pair address."""
    chain = engine.chain
    fund(engine, provider, token_a, amount_a)
    fund(engine, provider, token_b, amount_b)
    chain.approve(token_a, provider, v2.router.address, amount_a)
    chain.approve(token_b, provider, v2.router.address, amount_b)
    v2.router.add_liquidity(
        token_a, token_b, amount_a, amount_b, 0, 0, provider, deadline(engine), sender=provider
    )
    return v2.factory.get_pair(token_a, token_b)


# =============================================================================
# Concentrated liquidity
# =============================================================================


@dataclass
class V3Deployment:
    venue: VenueId
    factory: UniswapV3Factory
    router: UniswapV3SwapRouter
    manager: NonfungiblePositionManager


def deploy_uniswap_v3(engine: Engine, venue: VenueId = VenueId.UNISWAP_V3) -> V3Deployment:
    chain = engine.chain
    if venue is VenueId.PANCAKESWAP_V3:
        factory = chain.deploy(PancakeV3Factory(chain))
        router = chain.deploy(PancakeSwapRouter(chain, factory))
    else:
        factory = chain.deploy(UniswapV3Factory(chain))
        router = chain.deploy(UniswapV3SwapRouter(chain, factory))
    manager = chain.deploy(NonfungiblePositionManager(chain, factory))
    engine.registry.set_venue_endpoints(
        venue,
        VenueEndpoints(
            router=router.address,
            factory=factory.address,
            position_manager=manager.address,
        ),
        sender=OPERATOR,
    )
    return V3Deployment(venue, factory, router, manager)


def full_range(fee: int) -> tuple[int, int]:
    spacing = FEE_TICK_SPACING[fee]
    upper = (MAX_TICK // spacing) * spacing
    return -upper, upper


def add_v3_pool(
    engine: Engine,
    v3: V3Deployment,
    token_a: str,
    token_b: str,
    fee: int,
    amount0: int,
    amount1: int,
    tick: int = 0,
    ticks: tuple[int, int] | None = None,
    provider: str = LP,
) -> str:
    """Create and initialize a pool at `tick` and mint a position from `provider`.

    Amounts are in token0/token1 order. The position is full range unless
    `ticks` is given.
    """
    chain = engine.chain
    token0, token1 = sort_tokens(token_a, token_b)
    address = v3.factory.get_pool(token0, token1, fee)
    if address == "0x" + "00" * 20:
        address = v3.factory.create_pool(token0, token1, fee)
        chain.contract(address).initialize(get_sqrt_ratio_at_tick(tick))

    tick_lower, tick_upper = ticks or full_range(fee)
    fund(engine, provider, token0, amount0)
    fund(engine, provider, token1, amount1)
    chain.approve(token0, provider, v3.manager.address, amount0)
    chain.approve(token1, provider, v3.manager.address, amount1)
    v3.manager.mint(
        MintParams(
            token0=token0,
            token1=token1,
            fee=fee,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            amount0_desired=amount0,
            amount1_desired=amount1,
            amount0_min=0,
            amount1_min=0,
            recipient=provider,
            deadline=deadline(engine),
        ),
        sender=provider,
    )
    return address


# =============================================================================
# Balancer
# =============================================================================


def deploy_balancer(engine: Engine) -> BalancerVault:
    chain = engine.chain
    vault = chain.deploy(BalancerVault(chain))
    engine.registry.set_venue_endpoints(
        VenueId.BALANCER, VenueEndpoints(router=vault.address), sender=OPERATOR
    )
    return vault


def add_weighted_pool(
    engine: Engine,
    vault: BalancerVault,
    balances: dict[str, int],
    weights: dict[str, int],
    swap_fee: int = 0,
    provider: str = LP,
    pin: bool = True,
) -> str:
    """Deploy, initialize and (by default) pin a weighted pool for every token pair.

    Args:
        balances: Initial balance per token
        weights: 1e18 fixed-point weight per token, summing to 1e18
        swap_fee: 1e18 fixed-point fee
    """
    chain = engine.chain
    tokens = sorted(balances)
    pool = chain.deploy(
        BalancerWeightedPool(chain, tokens, [weights[t] for t in tokens], swap_fee)
    )
    pool_id = vault.register_pool(pool)
    amounts = [balances[t] for t in tokens]
    for token, amount in zip(tokens, amounts, strict=True):
        fund(engine, provider, token, amount)
        chain.approve(token, provider, vault.address, amount)
    vault.join_pool(
        pool_id,
        provider,
        JoinPoolRequest(tuple(tokens), tuple(amounts), encode_init_join(amounts)),
        sender=provider,
    )
    if pin:
        for i, token_a in enumerate(tokens):
            for token_b in tokens[i + 1 :]:
                engine.registry.set_pinned_pool(
                    VenueId.BALANCER, token_a, token_b, pool_id, sender=OPERATOR
                )
    return pool_id


# =============================================================================
# Ambient
# =============================================================================


@dataclass
class AmbientDeployment:
    dex: CrocSwapDex
    router: CrocSwapRouter
    query: CrocQuery
    impact: CrocImpact


def deploy_ambient(engine: Engine) -> AmbientDeployment:
    chain = engine.chain
    dex = chain.deploy(CrocSwapDex(chain))
    router = chain.deploy(CrocSwapRouter(chain, dex))
    query = chain.deploy(CrocQuery(chain, dex))
    impact = chain.deploy(CrocImpact(chain, dex))
    engine.registry.set_venue_endpoints(
        VenueId.AMBIENT,
        VenueEndpoints(
            router=router.address,
            factory=dex.address,
            query=query.address,
            impact=impact.address,
        ),
        sender=OPERATOR,
    )
    return AmbientDeployment(dex, router, query, impact)


def add_ambient_pool(
    engine: Engine,
    ambient: AmbientDeployment,
    token_a: str,
    token_b: str,
    pool_idx: int,
    base_amount: int,
    quote_amount: int,
    fee_rate: int = 500,
    provider: str = LP,
) -> None:
    """Initialize a (base, quote, pool_idx) pool; amounts are in base/quote order."""
    chain = engine.chain
    base, quote = sort_tokens(token_a, token_b)
    fund(engine, provider, base, base_amount)
    fund(engine, provider, quote, quote_amount)
    chain.approve(base, provider, ambient.dex.address, base_amount)
    chain.approve(quote, provider, ambient.dex.address, quote_amount)
    ambient.dex.init_pool(
        base, quote, pool_idx, base_amount, quote_amount, fee_rate, sender=provider
    )
