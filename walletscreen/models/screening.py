"""Screening result domain models.

``details`` is a tagged variant: each decision path carries exactly the
fields relevant to it. :meth:`ScreeningResult.to_record` flattens the
variant into the stable schema persisted in ``screening_logs``.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from walletscreen.constants import InconclusiveWhere, ScreeningStatus
from walletscreen.models.blockchain import BlacklistEntry


class ScreeningLimits(BaseModel):
    """Per-invocation limits on fan-out and external calls."""

    model_config = ConfigDict(frozen=True)

    hop1_limit: int = Field(default=10, ge=0)
    hop2_limit: int = Field(default=5, ge=0)
    tx_limit: int = Field(default=200, ge=1)
    call_budget: int = Field(default=20, ge=0)
    call_delay_ms: int = Field(default=250, ge=0)


class MatchPath(BaseModel):
    """One path from the screened address to a blacklisted address."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_address: str = Field(alias="from")
    via: str
    hit: str
    hop: int = Field(ge=1, le=2)
    category: str
    note: str | None = None


class _BaseDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    hop1_checked: int = 0
    hop2_checked: int = 0
    calls_used: int = 0
    limits: ScreeningLimits


class DirectMatchDetails(_BaseDetails):
    kind: Literal["direct_match"] = "direct_match"
    blacklist: BlacklistEntry


class UnsupportedChainDetails(_BaseDetails):
    kind: Literal["unsupported_chain"] = "unsupported_chain"
    chain: str
    flags: list[str] = Field(default_factory=list)


class Hop1MatchDetails(_BaseDetails):
    kind: Literal["hop1_match"] = "hop1_match"
    paths: list[MatchPath]


class Hop2MatchDetails(_BaseDetails):
    kind: Literal["hop2_match"] = "hop2_match"
    paths: list[MatchPath]


class HeuristicDetails(_BaseDetails):
    """Decision reached on behavioral signals alone (possibly none)."""

    kind: Literal["heuristic"] = "heuristic"
    flags: list[str] = Field(default_factory=list)
    txs_count: int = 0
    token_txs_count: int = 0
    outgoing_count: int = 0
    incoming_count: int = 0
    uniq_counterparties: int = 0


class InconclusiveDetails(_BaseDetails):
    kind: Literal["inconclusive"] = "inconclusive"
    where: InconclusiveWhere


class ErrorDetails(_BaseDetails):
    kind: Literal["error"] = "error"
    error_code: str | None = None


ScreeningDetails = Annotated[
    Union[
        DirectMatchDetails,
        UnsupportedChainDetails,
        Hop1MatchDetails,
        Hop2MatchDetails,
        HeuristicDetails,
        InconclusiveDetails,
        ErrorDetails,
    ],
    Field(discriminator="kind"),
]


class ScreeningResult(BaseModel):
    """Immutable outcome of one screening invocation."""

    model_config = ConfigDict(frozen=True)

    status: ScreeningStatus
    reason: str
    direct_match: bool = False
    one_hop_match: bool = False
    matched_blacklist_address: str | None = None
    raw_tx_count: int = Field(default=0, ge=0)
    details: ScreeningDetails

    @model_validator(mode="after")
    def check_invariants(self) -> "ScreeningResult":
        """Enforce the relationships between status and match flags."""
        if (self.status == ScreeningStatus.BLACKLISTED) != self.direct_match:
            raise ValueError("status 'blacklisted' requires direct_match and vice versa")
        if self.one_hop_match and self.status != ScreeningStatus.FLAGGED:
            raise ValueError("one_hop_match requires status 'flagged'")
        inconclusive = self.status == ScreeningStatus.INCONCLUSIVE
        if inconclusive != isinstance(self.details, InconclusiveDetails):
            raise ValueError("status 'inconclusive' requires inconclusive details")
        if inconclusive and (self.direct_match or self.one_hop_match):
            raise ValueError("an inconclusive result cannot carry a match")
        return self

    @classmethod
    def error(
        cls,
        message: str,
        limits: ScreeningLimits,
        error_code: str | None = None,
    ) -> "ScreeningResult":
        """Build the record a caller persists when screening failed hard."""
        return cls(
            status=ScreeningStatus.ERROR,
            reason=message,
            details=ErrorDetails(limits=limits, error_code=error_code),
        )

    @property
    def is_match(self) -> bool:
        """Check if the result links the address to the blacklist."""
        return isinstance(
            self.details, (DirectMatchDetails, Hop1MatchDetails, Hop2MatchDetails)
        )

    def to_record(self) -> dict[str, Any]:
        """Flatten to the stable schema stored alongside the wallet."""
        details = self.details.model_dump(mode="json", by_alias=True)
        details.setdefault("paths", [])
        return {
            "status": self.status.value,
            "reason": self.reason,
            "direct_match": self.direct_match,
            "one_hop_match": self.one_hop_match,
            "matched_blacklist_address": self.matched_blacklist_address,
            "raw_tx_count": self.raw_tx_count,
            "details": details,
        }
