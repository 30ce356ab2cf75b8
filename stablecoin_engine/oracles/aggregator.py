"""Push-style price feed holding the latest answer for one asset."""
from __future__ import annotations

import time

from ..constants import FEED_DECIMALS
from ..errors import PriceUnavailable
from ..models import PriceQuote


class AggregatorFeed:
    """Stores the most recent 8-decimal answer pushed to it."""

    def __init__(self, description: str, initial_answer: int | None = None) -> None:
        self.description = description
        self.decimals = FEED_DECIMALS
        self._latest: PriceQuote | None = None
        if initial_answer is not None:
            self.update_answer(initial_answer)

    def update_answer(self, answer: int, updated_at: int | None = None) -> PriceQuote:
        round_id = self._latest.round_id + 1 if self._latest else 1
        self._latest = PriceQuote(
            price=answer,
            round_id=round_id,
            updated_at=int(time.time()) if updated_at is None else updated_at,
            decimals=self.decimals,
        )
        return self._latest

    def latest_round_data(self) -> PriceQuote:
        if self._latest is None:
            raise PriceUnavailable(f"No answer has been reported for {self.description}")
        return self._latest
