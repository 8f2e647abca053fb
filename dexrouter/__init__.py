"""Routing and liquidity engine for multi-venue DEX integrations."""

__version__ = "0.1.0"
