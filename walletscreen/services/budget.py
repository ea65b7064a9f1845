"""External call budget tracking for a single screening invocation."""

import logging
from dataclasses import dataclass

from walletscreen.constants import CALLS_PER_FETCH

logger = logging.getLogger(__name__)


@dataclass
class CallBudget:
    """Counts provider calls against a ceiling.

    One instance per screening invocation; never shared across requests.
    """

    ceiling: int
    calls_used: int = 0

    def can_afford(self, calls: int = CALLS_PER_FETCH) -> bool:
        """Check if ``calls`` more calls fit under the ceiling."""
        return self.calls_used + calls <= self.ceiling

    def charge(self, calls: int = CALLS_PER_FETCH) -> None:
        """Record calls about to be made."""
        self.calls_used += calls
        logger.debug(f"Call budget: {self.calls_used}/{self.ceiling} used")

    @property
    def remaining(self) -> int:
        """Calls left before the ceiling is reached."""
        return max(0, self.ceiling - self.calls_used)
