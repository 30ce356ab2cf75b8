"""Collateralized-debt engine for a USD-pegged synthetic token."""
from .engine import StablecoinEngine
from .errors import EngineError
from .ledger import Ledger
from .tokens import Erc20Token, StableCoin

__all__ = ["EngineError", "Erc20Token", "Ledger", "StableCoin", "StablecoinEngine"]
