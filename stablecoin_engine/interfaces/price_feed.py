"""Price feed protocol — external USD price source for one asset."""
from typing import Protocol

from ..models import PriceQuote


class PriceFeed(Protocol):
    """Abstract interface for an asset's USD price feed (8-decimal answers)."""

    def latest_round_data(self) -> PriceQuote: ...
