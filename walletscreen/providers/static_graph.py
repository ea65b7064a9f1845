"""Precomputed adjacency graph transaction source (demo mode)."""

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from types import MappingProxyType

from walletscreen.core.exceptions import ProviderError
from walletscreen.core.source import TransactionSource
from walletscreen.models.blockchain import Transaction

logger = logging.getLogger(__name__)


class StaticGraph:
    """
    Read-only transaction graph built once and shared by reference.

    Each edge ``[from, to]`` or ``[from, to, timestamp]`` becomes one
    transaction indexed under both endpoints.
    """

    def __init__(self, edges: Iterable[Sequence]) -> None:
        index: dict[str, list[Transaction]] = {}
        edge_count = 0
        for edge in edges:
            if len(edge) < 2:
                raise ValueError(f"Malformed edge: {edge!r}")
            timestamp = int(edge[2]) if len(edge) > 2 and edge[2] is not None else None
            tx = Transaction(
                from_address=str(edge[0]).lower(),
                to_address=str(edge[1]).lower(),
                timestamp=timestamp,
            )
            index.setdefault(tx.from_address, []).append(tx)
            if tx.to_address != tx.from_address:
                index.setdefault(tx.to_address, []).append(tx)
            edge_count += 1

        # Newest first; edges without a timestamp keep file order at the end
        self._index = MappingProxyType(
            {
                address: tuple(
                    sorted(txs, key=lambda t: (t.timestamp is None, -(t.timestamp or 0)))
                )
                for address, txs in index.items()
            }
        )
        self._edge_count = edge_count

    @classmethod
    def load(cls, path: str | Path) -> "StaticGraph":
        """Load a graph from a JSON file of the form ``{"edges": [...]}``."""
        path = Path(path)
        with path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
        graph = cls(raw.get("edges", []))
        logger.info(
            f"Loaded static graph from {path}: {graph.edge_count} edges, "
            f"{len(graph)} addresses"
        )
        return graph

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._index

    def transactions(self, address: str) -> tuple[Transaction, ...]:
        """All transactions touching ``address``, newest first."""
        return self._index.get(address.lower(), ())

    def neighbours(self, address: str) -> set[str]:
        """Addresses directly connected to ``address``."""
        address = address.lower()
        return {tx.counterparty_of(address) for tx in self.transactions(address)} - {address}


class StaticGraphSource(TransactionSource):
    """Transaction source answering from a :class:`StaticGraph`. Never hits the network."""

    def __init__(self, graph: StaticGraph) -> None:
        self._graph = graph

    @property
    def name(self) -> str:
        return "static-graph"

    async def normal_txs(self, address: str, limit: int) -> list[Transaction]:
        if limit < 0:
            raise ProviderError(self.name, f"Invalid limit: {limit}")
        return list(self._graph.transactions(address)[:limit])

    async def token_txs(self, address: str, limit: int) -> list[Transaction]:
        return []
