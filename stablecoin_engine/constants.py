"""Fixed-point constants shared by the oracle adapter, health factor and engine."""

# Feeds quote with 8 decimals; everything else is 18-decimal fixed point.
ADDITIONAL_FEED_PRECISION = 10**10
PRECISION = 10**18
FEED_DECIMALS = 8

LIQUIDATION_THRESHOLD = 50  # percent of collateral value counted toward solvency
LIQUIDATION_BONUS = 10  # percent
LIQUIDATION_PRECISION = 100

MIN_HEALTH_FACTOR = 10**18
MAX_HEALTH_FACTOR = 2**256 - 1
