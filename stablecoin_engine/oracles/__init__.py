"""Price oracle modules."""
from .adapter import OracleAdapter
from .aggregator import AggregatorFeed
from .pyth import PythOracle, push_quotes

__all__ = ["AggregatorFeed", "OracleAdapter", "PythOracle", "push_quotes"]
