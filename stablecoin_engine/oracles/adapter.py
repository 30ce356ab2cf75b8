"""Converts between asset quantity and USD value using feed prices."""
from __future__ import annotations

from collections.abc import Mapping

from ..constants import ADDITIONAL_FEED_PRECISION, PRECISION
from ..errors import TokenNotAllowed
from ..interfaces.price_feed import PriceFeed


class OracleAdapter:
    """Value assets with their bound feed's latest price.

    Feed answers carry 8 decimals and are scaled by ``ADDITIONAL_FEED_PRECISION``
    into 18-decimal fixed point. Results truncate toward zero. The feed is
    trusted as-is: there is no staleness or sanity bound.
    """

    def __init__(self, feeds: Mapping[str, PriceFeed]) -> None:
        self._feeds = dict(feeds)

    def feed_of(self, asset: str) -> PriceFeed:
        try:
            return self._feeds[asset]
        except KeyError:
            raise TokenNotAllowed(asset) from None

    def _scaled_price(self, asset: str) -> int:
        return self.feed_of(asset).latest_round_data().price * ADDITIONAL_FEED_PRECISION

    def value_of(self, asset: str, quantity: int) -> int:
        """USD value (18 decimals) of ``quantity`` units of ``asset``."""
        return (self._scaled_price(asset) * quantity) // PRECISION

    def quantity_of(self, asset: str, usd_value: int) -> int:
        """Units of ``asset`` worth ``usd_value`` (18 decimals)."""
        return (usd_value * PRECISION) // self._scaled_price(asset)
