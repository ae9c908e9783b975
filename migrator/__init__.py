"""Liquidity migration transaction builder for the Balancer batch relayer."""

__version__ = "0.1.0"
