"""Local execution host: ledger, transactions and venue contracts."""

from .ambient import CrocImpact, CrocQuery, CrocSwapDex, CrocSwapRouter
from .balancer import BalancerStablePool, BalancerVault, BalancerWeightedPool
from .errors import (
    ChainError,
    ContractNotFound,
    Expired,
    Forbidden,
    InsufficientAllowance,
    InsufficientBalance,
    PoolError,
)
from .ledger import Chain, Contract
from .uniswap_v2 import UniswapV2Factory, UniswapV2Pair, UniswapV2Router
from .uniswap_v3 import (
    NonfungiblePositionManager,
    PancakeSwapRouter,
    PancakeV3Factory,
    PancakeV3Pool,
    UniswapV3Factory,
    UniswapV3Pool,
    UniswapV3SwapRouter,
)

__all__ = [
    "Chain",
    "Contract",
    "ChainError",
    "ContractNotFound",
    "Expired",
    "Forbidden",
    "InsufficientAllowance",
    "InsufficientBalance",
    "PoolError",
    "UniswapV2Factory",
    "UniswapV2Pair",
    "UniswapV2Router",
    "UniswapV3Factory",
    "UniswapV3Pool",
    "PancakeV3Factory",
    "PancakeV3Pool",
    "UniswapV3SwapRouter",
    "PancakeSwapRouter",
    "NonfungiblePositionManager",
    "BalancerVault",
    "BalancerWeightedPool",
    "BalancerStablePool",
    "CrocSwapDex",
    "CrocSwapRouter",
    "CrocQuery",
    "CrocImpact",
]
