"""Application constants shared by the screening engine."""

import re
from enum import Enum


class ScreeningStatus(str, Enum):
    """Closed vocabulary of screening outcomes."""

    CLEAN = "clean"
    FLAGGED = "flagged"
    BLACKLISTED = "blacklisted"
    ERROR = "error"
    INCONCLUSIVE = "inconclusive"


class InconclusiveWhere(str, Enum):
    """Stage at which a scan was cut short."""

    ROOT = "root"
    HOP1 = "hop1"
    BUDGET = "budget"
    TIMEOUT = "timeout"


DEFAULT_CHAIN = "ethereum"

# Only chain with a live transaction history provider
LIVE_SCREENING_CHAIN = "ethereum"

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
ADDRESS_FORMAT_HINT = "must start with 0x and be exactly 42 characters"

DEFAULT_BLACKLIST_CATEGORY = "internal"

# A root or hop-1 fetch is a normal + token transaction pair
CALLS_PER_FETCH = 2

# Heuristic thresholds
BURST_WINDOW_SIZE = 10
BURST_MAX_SPAN_SECONDS = 30 * 60
MANY_COUNTERPARTIES_THRESHOLD = 25


class Reason:
    """Human-readable reasons attached to screening results."""

    DIRECT_MATCH = "Address is in internal blacklist"
    UNSUPPORTED_CHAIN = "Heuristic screening not supported for this chain"
    HOP1_MATCH = "1-hop link to internal blacklist"
    HOP2_MATCH = "2-hop link to internal blacklist"
    HEURISTICS = "Heuristics triggered"
    CLEAN = "No issues detected"
    BUDGET_EXCEEDED = "call budget exceeded"
    RATE_LIMITED = "provider rate limit reached"
    TIMED_OUT = "screening timed out"
