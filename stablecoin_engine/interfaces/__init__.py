"""Protocol interfaces for the stablecoin engine's collaborators."""
from .journal import Journaled, Reversible
from .notifier import Notifier
from .price_feed import PriceFeed
from .token import FungibleToken, MintableToken

__all__ = ["FungibleToken", "Journaled", "MintableToken", "Notifier", "PriceFeed", "Reversible"]
