"""Engine-wide constants.

Centralizes the wrapped-native token, recursion and deadline bounds, and the
default pool-discovery candidate lists for each venue.
"""

from dexrouter.models.types import is_valid_address


def _validate_token_address(name: str, address: str) -> str:
    """Validate a well-known address at import time.

    Raises:
        ValueError: If the address is malformed
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Intermediary token for synthesized two-hop routes (mainnet WETH)
WRAPPED_NATIVE = _validate_token_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")

# Route expansion fails once the depth counter reaches this value
MAX_ROUTE_DEPTH = 20

# Seconds added to the host timestamp to build per-call deadlines
DEFAULT_DEADLINE_BUFFER = 300

# Concentrated-liquidity fee tiers in hundredths of a basis point
UNISWAP_V3_FEE_TIERS = (100, 500, 3000, 10000)
PANCAKESWAP_V3_FEE_TIERS = (100, 500, 2500, 10000)

# Ambient pool type indices
AMBIENT_POOL_INDICES = (420, 36000)

# Scale used when pricing one unit of a token for value-weighted splits
PRICE_UNIT = 10**18
