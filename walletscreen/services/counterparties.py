"""Counterparty extraction from transaction batches."""

from collections.abc import Iterable

from walletscreen.models.blockchain import Transaction
from walletscreen.services.normalizer import is_valid_address


def extract_counterparties(
    subject: str, *transaction_lists: Iterable[Transaction]
) -> list[str]:
    """
    Collect the unique counterparties of ``subject``.

    The counterparty of a transaction is whichever side is not the subject.
    Self-transfers, empty sides (contract creations) and malformed addresses
    are dropped. Addresses keep the order in which they were first seen, so
    callers that truncate the result stay deterministic.

    Args:
        subject: Canonical address being screened.
        transaction_lists: One or more transaction batches.

    Returns:
        Lowercase counterparty addresses without duplicates.
    """
    seen: dict[str, None] = {}
    for transactions in transaction_lists:
        for tx in transactions:
            counterparty = (tx.counterparty_of(subject) or "").lower()
            if counterparty == subject or not is_valid_address(counterparty):
                continue
            seen.setdefault(counterparty, None)
    return list(seen)
