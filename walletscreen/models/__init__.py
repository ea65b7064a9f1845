"""Domain models package."""

from walletscreen.models.blockchain import BlacklistEntry, Transaction
from walletscreen.models.screening import (
    DirectMatchDetails,
    ErrorDetails,
    HeuristicDetails,
    Hop1MatchDetails,
    Hop2MatchDetails,
    InconclusiveDetails,
    MatchPath,
    ScreeningLimits,
    ScreeningResult,
    UnsupportedChainDetails,
)
from walletscreen.models.wallet import (
    BlacklistEntryCreate,
    HealthResponse,
    ScreeningLogRecord,
    ScreeningRequest,
    WalletDetail,
    WalletRecord,
)

__all__ = [
    "BlacklistEntry",
    "BlacklistEntryCreate",
    "DirectMatchDetails",
    "ErrorDetails",
    "HealthResponse",
    "HeuristicDetails",
    "Hop1MatchDetails",
    "Hop2MatchDetails",
    "InconclusiveDetails",
    "MatchPath",
    "ScreeningLimits",
    "ScreeningLogRecord",
    "ScreeningRequest",
    "ScreeningResult",
    "Transaction",
    "UnsupportedChainDetails",
    "WalletDetail",
    "WalletRecord",
]
