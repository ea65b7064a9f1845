"""Tests for the screening service."""

import httpx
import pytest

from walletscreen.constants import InconclusiveWhere, Reason, ScreeningStatus
from walletscreen.core.exceptions import (
    InvalidAddressError,
    ProviderError,
    RateLimitedError,
)
from walletscreen.models.screening import ScreeningLimits
from walletscreen.providers.etherscan import EtherscanSource
from walletscreen.providers.static_graph import StaticGraph, StaticGraphSource
from walletscreen.services.screening import ScreeningService
from walletscreen.stores.memory import MemoryBlacklistStore

from fakes import BrokenBlacklistStore, FakeSource, addr, tx

SUBJECT = addr(1)


def make_service(blacklist, source, limits, **kwargs) -> ScreeningService:
    return ScreeningService(blacklist=blacklist, source=source, limits=limits, **kwargs)


class TestDirectAndChainStages:
    """Tests for the stages that never touch the transaction source."""

    @pytest.mark.asyncio
    async def test_direct_match(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a blacklisted address is reported regardless of history."""
        await blacklist.add_entry("ethereum", SUBJECT, "scam", "known drainer")
        source = FakeSource(normal={SUBJECT: [tx(SUBJECT, addr(2))]})

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.BLACKLISTED
        assert result.direct_match is True
        assert result.one_hop_match is False
        assert result.matched_blacklist_address == SUBJECT
        assert result.reason == Reason.DIRECT_MATCH
        assert result.details.blacklist.category == "scam"
        assert result.details.calls_used == 0
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_direct_match_normalizes_input(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test mixed-case input matches the canonical blacklist entry."""
        address = "0x" + "AB" * 20
        await blacklist.add_entry("ethereum", address.lower(), "internal")

        result = await make_service(blacklist, FakeSource(), limits).screen(
            " Ethereum ", f"  {address} "
        )

        assert result.status == ScreeningStatus.BLACKLISTED
        assert result.matched_blacklist_address == address.lower()

    @pytest.mark.asyncio
    async def test_direct_match_on_other_chain(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test direct matching also works on chains without a live source."""
        await blacklist.add_entry("solana", SUBJECT, "internal")

        result = await make_service(blacklist, FakeSource(), limits).screen("solana", SUBJECT)

        assert result.status == ScreeningStatus.BLACKLISTED

    @pytest.mark.asyncio
    async def test_unsupported_chain(
        self, blacklist: MemoryBlacklistStore, source: FakeSource, limits: ScreeningLimits
    ) -> None:
        """Test chains without a live source are clean with a distinct reason."""
        result = await make_service(blacklist, source, limits).screen("solana", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert result.reason == "Heuristic screening not supported for this chain"
        assert result.details.kind == "unsupported_chain"
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_invalid_address_rejected(
        self, limits: ScreeningLimits
    ) -> None:
        """Test malformed addresses never reach the blacklist."""
        service = make_service(BrokenBlacklistStore(), FakeSource(), limits)

        with pytest.raises(InvalidAddressError):
            await service.screen("ethereum", "0x1234")

    @pytest.mark.asyncio
    async def test_blacklist_failure_propagates(
        self, limits: ScreeningLimits
    ) -> None:
        """Test an unreachable blacklist is never treated as no match."""
        service = make_service(BrokenBlacklistStore(), FakeSource(), limits)

        with pytest.raises(ConnectionError):
            await service.screen("ethereum", SUBJECT)


class TestHopMatching:
    """Tests for 1-hop and 2-hop blacklist proximity."""

    @pytest.mark.asyncio
    async def test_clean_address(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test an unlinked address with a short history is clean."""
        source = FakeSource(
            normal={
                SUBJECT: [
                    tx(SUBJECT, addr(2), 100),
                    tx(addr(3), SUBJECT, 200),
                    tx(SUBJECT, addr(4), 300),
                ]
            }
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert result.reason == "No issues detected"
        assert result.raw_tx_count == 3
        assert result.details.hop1_checked == 3
        assert result.details.flags == []

    @pytest.mark.asyncio
    async def test_hop1_match(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a blacklisted counterparty flags without any hop-2 fetch."""
        await blacklist.add_entry("ethereum", addr(3), "mixer", "tumbler")
        await blacklist.add_entry("ethereum", addr(4), "hack")
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(2)), tx(addr(3), SUBJECT)]},
            token={SUBJECT: [tx(addr(4), SUBJECT)]},
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.FLAGGED
        assert result.one_hop_match is True
        assert result.direct_match is False
        assert result.matched_blacklist_address == addr(3)
        assert result.reason == Reason.HOP1_MATCH
        assert [p.hit for p in result.details.paths] == [addr(3), addr(4)]
        assert all(p.hop == 1 and p.via == p.hit for p in result.details.paths)
        assert result.details.paths[0].category == "mixer"
        assert result.details.calls_used == 2
        assert source.fetched_addresses() == [SUBJECT]

    @pytest.mark.asyncio
    async def test_hop2_match(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a blacklisted address two hops away flags without one_hop_match."""
        await blacklist.add_entry("ethereum", addr(30), "sanctioned")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3))],
                addr(2): [tx(addr(2), addr(20))],
                addr(3): [tx(addr(30), addr(3)), tx(addr(3), SUBJECT)],
            }
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.FLAGGED
        assert result.one_hop_match is False
        assert result.matched_blacklist_address == addr(30)
        assert result.reason == Reason.HOP2_MATCH
        path = result.details.paths[0]
        assert (path.from_address, path.via, path.hit, path.hop) == (
            SUBJECT, addr(3), addr(30), 2
        )
        assert result.details.hop1_checked == 2
        # The subject itself is not a hop-2 candidate
        assert result.details.hop2_checked == 2
        assert source.fetched_addresses() == [SUBJECT, addr(2), addr(3)]

    @pytest.mark.asyncio
    async def test_hop1_match_wins_over_hop2(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test hop-2 is only consulted when hop-1 has no match."""
        await blacklist.add_entry("ethereum", addr(3), "scam")
        await blacklist.add_entry("ethereum", addr(20), "scam")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3))],
                addr(2): [tx(addr(2), addr(20))],
            }
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.one_hop_match is True
        assert result.matched_blacklist_address == addr(3)

    @pytest.mark.asyncio
    async def test_hop1_limit(
        self, blacklist: MemoryBlacklistStore
    ) -> None:
        """Test counterparties beyond the hop-1 cap are not checked."""
        await blacklist.add_entry("ethereum", addr(100 + 11), "scam")
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(100 + i)) for i in range(12)]}
        )
        limits = ScreeningLimits(hop1_limit=10, call_budget=100, call_delay_ms=0)

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert result.details.hop1_checked == 10
        assert source.fetched_addresses() == [SUBJECT] + [addr(100 + i) for i in range(10)]

    @pytest.mark.asyncio
    async def test_hop2_limit_per_node(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test hop-2 candidates are capped per hop-1 node."""
        await blacklist.add_entry("ethereum", addr(26), "scam")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2))],
                addr(2): [tx(addr(2), addr(20 + i)) for i in range(7)],
            }
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert result.details.hop2_checked == limits.hop2_limit

    @pytest.mark.asyncio
    async def test_hop2_provider_error_skips_node(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a failing hop-1 node is skipped and the scan continues."""
        await blacklist.add_entry("ethereum", addr(30), "scam")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3))],
                addr(3): [tx(addr(3), addr(30))],
            },
            failures={addr(2): ProviderError("fake", "boom")},
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.FLAGGED
        assert result.matched_blacklist_address == addr(30)
        assert result.details.calls_used == 6

    @pytest.mark.asyncio
    async def test_pause_only_between_hop1_nodes(
        self, blacklist: MemoryBlacklistStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the inter-call pause is not taken after the last hop-1 node."""
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3)), tx(SUBJECT, addr(4))]},
            failures={addr(3): ProviderError("fake", "boom")},
        )
        service = make_service(blacklist, source, ScreeningLimits(call_delay_ms=250))
        pauses: list[int] = []

        async def record_pause() -> None:
            pauses.append(len(source.calls))

        monkeypatch.setattr(service, "_pause", record_pause)

        result = await service.screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert source.fetched_addresses() == [SUBJECT, addr(2), addr(3), addr(4)]
        # One pause before the second and third hop-1 fetches, none after the last
        assert pauses == [4, 6]


class TestBudgetAndRateLimits:
    """Tests for early termination of the scan."""

    @pytest.mark.asyncio
    async def test_budget_too_small_for_root(
        self, blacklist: MemoryBlacklistStore, source: FakeSource
    ) -> None:
        """Test no external call is made when the root fetch does not fit."""
        limits = ScreeningLimits(call_budget=1, call_delay_ms=0)

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.reason == "call budget exceeded"
        assert result.details.where == InconclusiveWhere.BUDGET
        assert result.direct_match is False
        assert result.one_hop_match is False
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_budget_exhausted_mid_loop(
        self, blacklist: MemoryBlacklistStore
    ) -> None:
        """Test budget exhaustion inside the hop-2 loop ends the whole scan."""
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2 + i), 0) for i in range(10)],
            }
        )
        limits = ScreeningLimits(call_budget=4, call_delay_ms=0)

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        # The root history would otherwise trip the burst heuristic
        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.BUDGET
        assert result.details.calls_used == 4
        assert result.details.hop1_checked == 10
        assert source.fetched_addresses() == [SUBJECT, addr(2)]

    @pytest.mark.asyncio
    async def test_rate_limited_at_root(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test rate limiting during the root fetch is inconclusive."""
        source = FakeSource(failures={SUBJECT: RateLimitedError("fake", 1.0)})

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.ROOT

    @pytest.mark.asyncio
    async def test_rate_limited_at_hop1(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test rate limiting during the hop-2 loop is inconclusive, not partial."""
        await blacklist.add_entry("ethereum", addr(30), "scam")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3))],
                addr(3): [tx(addr(3), addr(30))],
            },
            failures={addr(2): RateLimitedError("fake")},
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.HOP1
        assert result.matched_blacklist_address is None
        assert source.fetched_addresses() == [SUBJECT, addr(2)]

    @pytest.mark.asyncio
    async def test_one_leg_rate_limited_at_root(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a throttled token fetch voids a successful normal fetch at the root."""
        await blacklist.add_entry("ethereum", addr(2), "scam")
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(2))]},
            failures={("token", SUBJECT): RateLimitedError("fake")},
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.ROOT
        assert result.one_hop_match is False
        assert result.details.calls_used == 2

    @pytest.mark.asyncio
    async def test_one_leg_rate_limited_at_hop1(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a throttled normal fetch for a hop-1 node ends the scan."""
        await blacklist.add_entry("ethereum", addr(30), "scam")
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(2)), tx(SUBJECT, addr(3))]},
            token={addr(2): [tx(addr(2), addr(30))]},
            failures={("normal", addr(2)): RateLimitedError("fake")},
        )

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.HOP1
        assert result.matched_blacklist_address is None
        assert source.fetched_addresses() == [SUBJECT, addr(2)]

    @pytest.mark.asyncio
    async def test_root_provider_error_propagates(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a generic root fetch failure is a hard failure."""
        source = FakeSource(failures={SUBJECT: ProviderError("fake", "upstream down")})

        with pytest.raises(ProviderError, match="upstream down"):
            await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

    @pytest.mark.asyncio
    async def test_timeout_is_inconclusive(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test the optional wall-clock limit yields inconclusive, not an exception."""
        source = FakeSource(delay=1.0)
        service = make_service(blacklist, source, limits, timeout=0.05)

        result = await service.screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.TIMEOUT


class TestHeuristicDecision:
    """Tests for the final heuristic-only decision."""

    @pytest.mark.asyncio
    async def test_burst_flags(
        self, blacklist: MemoryBlacklistStore
    ) -> None:
        """Test outgoing bursts flag an otherwise unlinked address."""
        source = FakeSource(
            normal={SUBJECT: [tx(SUBJECT, addr(2), i * 100) for i in range(10)]}
        )
        limits = ScreeningLimits(call_delay_ms=0)

        result = await make_service(blacklist, source, limits).screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.FLAGGED
        assert result.reason == Reason.HEURISTICS
        assert result.one_hop_match is False
        assert result.details.outgoing_count == 10
        assert len(result.details.flags) == 1

    @pytest.mark.asyncio
    async def test_idempotent(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test identical inputs give identical results."""
        await blacklist.add_entry("ethereum", addr(30), "scam")
        source = FakeSource(
            normal={
                SUBJECT: [tx(SUBJECT, addr(2), 5), tx(SUBJECT, addr(3), 6)],
                addr(3): [tx(addr(3), addr(30), 7)],
            }
        )
        service = make_service(blacklist, source, limits)

        first = await service.screen("ethereum", SUBJECT)
        second = await service.screen("ethereum", SUBJECT)

        assert first == second
        assert first.to_record() == second.to_record()


class TestStaticGraphScreening:
    """End-to-end screening over the offline graph."""

    @pytest.fixture
    def graph(self) -> StaticGraph:
        return StaticGraph(
            [
                [SUBJECT, addr(2), 100],
                [addr(2), addr(3), 90],
                [addr(4), addr(5), 80],
            ]
        )

    @pytest.mark.asyncio
    async def test_hop2_link(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits, graph: StaticGraph
    ) -> None:
        """Test a two-hop path is found through the graph."""
        await blacklist.add_entry("ethereum", addr(3), "sanctioned", "demo")
        service = make_service(blacklist, StaticGraphSource(graph), limits)

        result = await service.screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.FLAGGED
        assert result.reason == Reason.HOP2_MATCH
        assert result.matched_blacklist_address == addr(3)
        [path] = result.details.paths
        assert (path.from_address, path.via, path.hit, path.hop) == (SUBJECT, addr(2), addr(3), 2)
        assert path.note == "demo"
        assert result.details.calls_used == 4

    @pytest.mark.asyncio
    async def test_unknown_address_is_clean(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits, graph: StaticGraph
    ) -> None:
        """Test an address absent from the graph has no history."""
        await blacklist.add_entry("ethereum", addr(3), "sanctioned")
        service = make_service(blacklist, StaticGraphSource(graph), limits)

        result = await service.screen("ethereum", addr(99))

        assert result.status == ScreeningStatus.CLEAN
        assert result.raw_tx_count == 0
        assert result.details.calls_used == 2


def etherscan_source(handler) -> EtherscanSource:
    return EtherscanSource(
        api_key="test-key",
        requests_per_second=0,
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


def ok(rows: list) -> httpx.Response:
    return httpx.Response(200, json={"status": "1", "message": "OK", "result": rows})


class TestEtherscanScreening:
    """Screening over the live provider client with scripted HTTP answers."""

    @pytest.mark.asyncio
    async def test_http_date_retry_after_is_inconclusive(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test a 429 carrying an HTTP-date Retry-After still ends as inconclusive."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}
            )

        service = make_service(blacklist, etherscan_source(handler), limits)

        result = await service.screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.INCONCLUSIVE
        assert result.details.where == InconclusiveWhere.ROOT

    @pytest.mark.asyncio
    async def test_malformed_hop1_payload_skips_node(
        self, blacklist: MemoryBlacklistStore, limits: ScreeningLimits
    ) -> None:
        """Test an unexpected payload for one hop-1 node only skips that node."""
        def handler(request: httpx.Request) -> httpx.Response:
            address = request.url.params["address"]
            if address == SUBJECT:
                if request.url.params["action"] == "txlist":
                    return ok([{"from": SUBJECT, "to": addr(2), "timeStamp": "1"}])
                return ok([])
            return httpx.Response(200, json=["unexpected"])

        service = make_service(blacklist, etherscan_source(handler), limits)

        result = await service.screen("ethereum", SUBJECT)

        assert result.status == ScreeningStatus.CLEAN
        assert result.details.hop1_checked == 1
        assert result.details.hop2_checked == 0
        assert result.details.calls_used == 4
