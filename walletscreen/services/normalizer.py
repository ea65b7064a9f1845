"""Address and chain canonicalization."""

from walletscreen.constants import ADDRESS_PATTERN, DEFAULT_CHAIN
from walletscreen.core.exceptions import InvalidAddressError


def is_valid_address(address: str | None) -> bool:
    """Check if ``address`` is a 0x-prefixed, 40 hex digit address."""
    return bool(address) and ADDRESS_PATTERN.match(address) is not None


def normalize_address(address: str) -> str:
    """
    Validate an address and return its canonical lowercase form.

    Args:
        address: Raw address, surrounding whitespace is ignored.

    Returns:
        Lowercase canonical address.

    Raises:
        InvalidAddressError: If the address does not match the expected format.
    """
    candidate = (address or "").strip()
    if not is_valid_address(candidate):
        raise InvalidAddressError(address)
    return candidate.lower()


def normalize_chain(chain: str | None) -> str:
    """Lowercase a chain identifier, falling back to the default chain."""
    return (chain or "").strip().lower() or DEFAULT_CHAIN
