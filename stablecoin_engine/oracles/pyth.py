"""Pyth Network price oracle client."""
from __future__ import annotations

import logging
import ssl
from collections.abc import Mapping

import aiohttp
import certifi

from ..config import PythConfig
from ..constants import FEED_DECIMALS
from ..models import PriceQuote
from .aggregator import AggregatorFeed

logger = logging.getLogger(__name__)


def normalize_price(price_raw: int, expo: int) -> int:
    """Rescale a Pyth ``price * 10**expo`` to an 8-decimal integer answer."""
    shift = FEED_DECIMALS + expo
    if shift >= 0:
        return price_raw * 10**shift
    return price_raw // 10**-shift


class PythOracle:
    """Fetch latest quotes from Pyth Network's Hermes service."""

    def __init__(self, config: PythConfig, feeds: Mapping[str, str]) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(feeds)

    async def fetch_quotes(self, symbols: list[str] | None = None) -> dict[str, PriceQuote]:
        """Fetch current quotes from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.
        """
        quotes: dict[str, PriceQuote] = {}

        feeds = self.price_feeds
        if symbols is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in symbols}

        feed_ids = list(set(feeds.values()))
        if not feed_ids:
            return quotes

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return quotes

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    # Hermes may return ids without the 0x prefix
                    id_to_assets: dict[str, list[str]] = {}
                    for asset, feed_id in feeds.items():
                        id_to_assets.setdefault(feed_id.removeprefix("0x"), []).append(asset)

                    for item in parsed:
                        feed_id = str(item.get("id", "")).removeprefix("0x")
                        price_data = item.get("price", {})
                        quote = PriceQuote(
                            price=normalize_price(
                                int(price_data.get("price", 0)),
                                int(price_data.get("expo", 0)),
                            ),
                            updated_at=int(price_data.get("publish_time", 0)),
                        )
                        for asset in id_to_assets.get(feed_id, []):
                            quotes[asset] = quote

                    logger.info("Fetched prices from Pyth Network:")
                    for asset, quote in sorted(quotes.items()):
                        logger.info("  %s: $%.4f", asset, quote.price / 10**FEED_DECIMALS)

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        return quotes

    async def refresh(self, feeds: Mapping[str, AggregatorFeed]) -> int:
        """Fetch quotes for ``feeds``' symbols and push them; return the count."""
        quotes = await self.fetch_quotes(list(feeds))
        return push_quotes(quotes, feeds)


def push_quotes(
    quotes: Mapping[str, PriceQuote], feeds: Mapping[str, AggregatorFeed]
) -> int:
    """Write fetched quotes into the matching aggregator feeds; return the count."""
    updated = 0
    for symbol, quote in quotes.items():
        feed = feeds.get(symbol)
        if feed is None:
            continue
        feed.update_answer(quote.price, updated_at=quote.updated_at)
        updated += 1
    return updated
