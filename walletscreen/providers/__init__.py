"""Transaction source implementations."""

from walletscreen.providers.etherscan import EtherscanSource
from walletscreen.providers.static_graph import StaticGraph, StaticGraphSource

__all__ = [
    "EtherscanSource",
    "StaticGraph",
    "StaticGraphSource",
]
