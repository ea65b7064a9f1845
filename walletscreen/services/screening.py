"""Screening service implementing bounded two-hop blacklist proximity."""

import asyncio
import logging
from dataclasses import dataclass, field

from walletscreen.constants import (
    LIVE_SCREENING_CHAIN,
    InconclusiveWhere,
    Reason,
    ScreeningStatus,
)
from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.exceptions import ProviderError, RateLimitedError
from walletscreen.core.source import TransactionSource
from walletscreen.models.blockchain import BlacklistEntry, Transaction
from walletscreen.models.screening import (
    DirectMatchDetails,
    HeuristicDetails,
    Hop1MatchDetails,
    Hop2MatchDetails,
    InconclusiveDetails,
    MatchPath,
    ScreeningLimits,
    ScreeningResult,
    UnsupportedChainDetails,
)
from walletscreen.services.budget import CallBudget
from walletscreen.services.counterparties import extract_counterparties
from walletscreen.services.heuristics import HeuristicEvaluator
from walletscreen.services.normalizer import normalize_address, normalize_chain

logger = logging.getLogger(__name__)


class _ScanAborted(Exception):
    """Internal signal that the scan hit a budget or rate-limit terminal."""

    def __init__(self, where: InconclusiveWhere, reason: str) -> None:
        self.where = where
        self.reason = reason
        super().__init__(reason)


@dataclass
class ScreeningState:
    """State maintained during a single screening invocation."""

    address: str
    chain: str
    budget: CallBudget
    hop1_checked: int = 0
    hop2_checked: int = 0
    raw_tx_count: int = 0
    hop1_addresses: list[str] = field(default_factory=list)


class ScreeningService:
    """
    Screens an address for proximity to the internal blacklist.

    Decision order, first terminal wins:

    1. direct blacklist match (no external calls)
    2. unsupported chain (clean, no external calls)
    3. root fetch of normal + token transactions (budget-gated)
    4. hop-1 counterparties batch-checked against the blacklist
    5. hop-2 counterparties, one hop-1 node at a time (budget-gated)
    6. heuristics over the root transactions

    Rate limiting or budget exhaustion at any fetch ends the scan as
    ``inconclusive``. The service holds no state between invocations.
    """

    def __init__(
        self,
        blacklist: BlacklistStore,
        source: TransactionSource,
        limits: ScreeningLimits | None = None,
        heuristics: HeuristicEvaluator | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the screening service.

        Args:
            blacklist: Blacklist store queried for direct and batch matches.
            source: Transaction history source (live provider or static graph).
            limits: Fan-out caps, call budget and inter-call delay.
            heuristics: Behavioral signal evaluator.
            timeout: Optional wall-clock limit for a whole screening, in seconds.
        """
        self._blacklist = blacklist
        self._source = source
        self._limits = limits or ScreeningLimits()
        self._heuristics = heuristics or HeuristicEvaluator()
        self._timeout = timeout

    @property
    def limits(self) -> ScreeningLimits:
        return self._limits

    async def screen(self, chain: str, address: str) -> ScreeningResult:
        """
        Screen an address.

        Args:
            chain: Blockchain identifier.
            address: Address to screen.

        Returns:
            The screening result.

        Raises:
            InvalidAddressError: If the address is malformed.
            ProviderError: If the root transaction fetch fails for a reason
                other than rate limiting.
        """
        state = ScreeningState(
            address=normalize_address(address),
            chain=normalize_chain(chain),
            budget=CallBudget(ceiling=self._limits.call_budget),
        )

        if self._timeout is None:
            return await self._run(state)

        try:
            return await asyncio.wait_for(self._run(state), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Screening of {state.address} timed out after {self._timeout}s"
            )
            return self._inconclusive(state, InconclusiveWhere.TIMEOUT, Reason.TIMED_OUT)

    async def _run(self, state: ScreeningState) -> ScreeningResult:
        """Walk the decision stages for one address."""
        entry = await self._blacklist.find_direct(state.chain, state.address)
        if entry is not None:
            logger.info(f"Direct blacklist match for {state.address} on {state.chain}")
            return ScreeningResult(
                status=ScreeningStatus.BLACKLISTED,
                reason=Reason.DIRECT_MATCH,
                direct_match=True,
                matched_blacklist_address=state.address,
                details=DirectMatchDetails(limits=self._limits, blacklist=entry),
            )

        if state.chain != LIVE_SCREENING_CHAIN:
            logger.info(f"Chain {state.chain} has no transaction source, skipping scan")
            return ScreeningResult(
                status=ScreeningStatus.CLEAN,
                reason=Reason.UNSUPPORTED_CHAIN,
                details=UnsupportedChainDetails(limits=self._limits, chain=state.chain),
            )

        try:
            normal_txs, token_txs = await self._fetch_pair(
                state, state.address, InconclusiveWhere.ROOT
            )
        except _ScanAborted as e:
            return self._inconclusive(state, e.where, e.reason)

        state.raw_tx_count = len(normal_txs)
        report = self._heuristics.evaluate(state.address, normal_txs)

        hop1 = extract_counterparties(state.address, normal_txs, token_txs)
        state.hop1_addresses = hop1[: self._limits.hop1_limit]
        state.hop1_checked = len(state.hop1_addresses)

        hop1_matches = await self._find_matches(state.chain, state.hop1_addresses)
        if hop1_matches:
            paths = [self._path(state.address, m.address, m, hop=1) for m in hop1_matches]
            logger.info(
                f"1-hop blacklist link for {state.address}: {hop1_matches[0].address}"
            )
            return ScreeningResult(
                status=ScreeningStatus.FLAGGED,
                reason=Reason.HOP1_MATCH,
                one_hop_match=True,
                matched_blacklist_address=hop1_matches[0].address,
                raw_tx_count=state.raw_tx_count,
                details=Hop1MatchDetails(paths=paths, **self._counters(state)),
            )

        try:
            hop2_result = await self._scan_hop2(state)
        except _ScanAborted as e:
            return self._inconclusive(state, e.where, e.reason)
        if hop2_result is not None:
            return hop2_result

        details = HeuristicDetails(
            flags=report.flags,
            txs_count=len(normal_txs),
            token_txs_count=len(token_txs),
            outgoing_count=report.outgoing_count,
            incoming_count=report.incoming_count,
            uniq_counterparties=report.uniq_counterparties,
            **self._counters(state),
        )
        if report.triggered:
            logger.info(f"Heuristics flagged {state.address}: {report.flags}")
            return ScreeningResult(
                status=ScreeningStatus.FLAGGED,
                reason=Reason.HEURISTICS,
                raw_tx_count=state.raw_tx_count,
                details=details,
            )
        return ScreeningResult(
            status=ScreeningStatus.CLEAN,
            reason=Reason.CLEAN,
            raw_tx_count=state.raw_tx_count,
            details=details,
        )

    async def _scan_hop2(self, state: ScreeningState) -> ScreeningResult | None:
        """Visit hop-1 nodes in order, returning on the first hop-2 hit."""
        for index, hop1_address in enumerate(state.hop1_addresses):
            if index:
                await self._pause()
            try:
                normal_txs, token_txs = await self._fetch_pair(
                    state, hop1_address, InconclusiveWhere.HOP1
                )
            except ProviderError as e:
                # Unreachable hop-1 node: skip it, keep scanning the rest
                logger.warning(f"Skipping hop-1 node {hop1_address}: {e.message}")
                continue

            hop2 = [
                a
                for a in extract_counterparties(hop1_address, normal_txs, token_txs)
                if a != state.address
            ][: self._limits.hop2_limit]
            state.hop2_checked += len(hop2)

            matches = await self._find_matches(state.chain, hop2)
            if matches:
                paths = [
                    self._path(state.address, hop1_address, m, hop=2) for m in matches
                ]
                logger.info(
                    f"2-hop blacklist link for {state.address} via {hop1_address}: "
                    f"{matches[0].address}"
                )
                return ScreeningResult(
                    status=ScreeningStatus.FLAGGED,
                    reason=Reason.HOP2_MATCH,
                    matched_blacklist_address=matches[0].address,
                    raw_tx_count=state.raw_tx_count,
                    details=Hop2MatchDetails(paths=paths, **self._counters(state)),
                )
        return None

    async def _fetch_pair(
        self,
        state: ScreeningState,
        address: str,
        where: InconclusiveWhere,
    ) -> tuple[list[Transaction], list[Transaction]]:
        """
        Fetch normal and token transactions concurrently under the budget.

        Raises:
            _ScanAborted: On budget exhaustion or provider rate limiting.
            ProviderError: For any other provider failure.
        """
        if not state.budget.can_afford():
            logger.warning(
                f"Call budget exhausted ({state.budget.calls_used}/"
                f"{state.budget.ceiling}) before fetching {address}"
            )
            raise _ScanAborted(InconclusiveWhere.BUDGET, Reason.BUDGET_EXCEEDED)
        state.budget.charge()

        limit = self._limits.tx_limit
        results = await asyncio.gather(
            self._source.normal_txs(address, limit),
            self._source.token_txs(address, limit),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, RateLimitedError):
                logger.warning(f"Rate limited while fetching {address} ({where.value})")
                raise _ScanAborted(where, Reason.RATE_LIMITED)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        normal_txs, token_txs = results
        return normal_txs, token_txs

    async def _find_matches(
        self, chain: str, addresses: list[str]
    ) -> list[BlacklistEntry]:
        if not addresses:
            return []
        return await self._blacklist.find_batch(chain, addresses)

    async def _pause(self) -> None:
        """Throttle between hop-1 fetches."""
        if self._limits.call_delay_ms:
            await asyncio.sleep(self._limits.call_delay_ms / 1000)

    def _inconclusive(
        self, state: ScreeningState, where: InconclusiveWhere, reason: str
    ) -> ScreeningResult:
        return ScreeningResult(
            status=ScreeningStatus.INCONCLUSIVE,
            reason=reason,
            raw_tx_count=state.raw_tx_count,
            details=InconclusiveDetails(where=where, **self._counters(state)),
        )

    def _counters(self, state: ScreeningState) -> dict:
        return {
            "hop1_checked": state.hop1_checked,
            "hop2_checked": state.hop2_checked,
            "calls_used": state.budget.calls_used,
            "limits": self._limits,
        }

    @staticmethod
    def _path(
        subject: str, via: str, entry: BlacklistEntry, hop: int
    ) -> MatchPath:
        return MatchPath(
            from_address=subject,
            via=via,
            hit=entry.address,
            hop=hop,
            category=entry.category,
            note=entry.note,
        )
