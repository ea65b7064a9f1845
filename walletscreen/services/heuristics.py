"""Behavioral heuristics over an address's own transactions."""

from dataclasses import dataclass, field

from walletscreen.constants import (
    BURST_MAX_SPAN_SECONDS,
    BURST_WINDOW_SIZE,
    MANY_COUNTERPARTIES_THRESHOLD,
)
from walletscreen.models.blockchain import Transaction
from walletscreen.services.counterparties import extract_counterparties


@dataclass(frozen=True)
class HeuristicReport:
    """Signals raised over the root address's transactions."""

    flags: list[str] = field(default_factory=list)
    burst: bool = False
    outgoing_count: int = 0
    incoming_count: int = 0
    uniq_counterparties: int = 0

    @property
    def triggered(self) -> bool:
        return bool(self.flags)


class HeuristicEvaluator:
    """
    Burst and counterparty-cardinality detection.

    Both signals run over normal transactions only; token transfers are not
    considered. Flags never lift a result above ``flagged``.
    """

    def __init__(
        self,
        burst_window: int = BURST_WINDOW_SIZE,
        burst_max_span: int = BURST_MAX_SPAN_SECONDS,
        counterparty_threshold: int = MANY_COUNTERPARTIES_THRESHOLD,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            burst_window: Number of consecutive outgoing transactions in a burst.
            burst_max_span: Maximum seconds between first and last of the window.
            counterparty_threshold: Unique counterparties that raise a flag.
        """
        self._burst_window = burst_window
        self._burst_max_span = burst_max_span
        self._counterparty_threshold = counterparty_threshold

    def evaluate(self, subject: str, normal_txs: list[Transaction]) -> HeuristicReport:
        """Compute all signals for ``subject``."""
        outgoing = [tx for tx in normal_txs if tx.is_outgoing_from(subject)]
        incoming = [tx for tx in normal_txs if tx.to_address == subject]
        uniq_counterparties = len(extract_counterparties(subject, normal_txs))

        burst = self.has_outgoing_burst(outgoing)

        flags: list[str] = []
        if burst:
            flags.append(
                f"Outgoing burst: >={self._burst_window} tx within "
                f"{self._burst_max_span // 60} minutes"
            )
        if uniq_counterparties >= self._counterparty_threshold:
            flags.append(
                f"Many counterparties in last txs: {uniq_counterparties} "
                f"(>={self._counterparty_threshold})"
            )

        return HeuristicReport(
            flags=flags,
            burst=burst,
            outgoing_count=len(outgoing),
            incoming_count=len(incoming),
            uniq_counterparties=uniq_counterparties,
        )

    def has_outgoing_burst(self, outgoing: list[Transaction]) -> bool:
        """Slide a window over ascending timestamps looking for a tight cluster."""
        if len(outgoing) < self._burst_window:
            return False

        times = sorted(tx.timestamp for tx in outgoing if tx.timestamp is not None)
        last = self._burst_window - 1
        for i in range(len(times) - last):
            if times[i + last] - times[i] <= self._burst_max_span:
                return True
        return False
