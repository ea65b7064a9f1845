"""Business logic services."""

from walletscreen.services.budget import CallBudget
from walletscreen.services.counterparties import extract_counterparties
from walletscreen.services.heuristics import HeuristicEvaluator, HeuristicReport
from walletscreen.services.normalizer import (
    is_valid_address,
    normalize_address,
    normalize_chain,
)
from walletscreen.services.screening import ScreeningService
from walletscreen.services.wallet_service import WalletService

__all__ = [
    "CallBudget",
    "HeuristicEvaluator",
    "HeuristicReport",
    "ScreeningService",
    "WalletService",
    "extract_counterparties",
    "is_valid_address",
    "normalize_address",
    "normalize_chain",
]
