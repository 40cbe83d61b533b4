"""
Core constants and limits.

Defines the defaults shared by the paper-trading simulators and the
bounds used to reject nonsensical input.
"""

# Portfolio Defaults
DEFAULT_STARTING_BALANCE = 10000.0  # Fresh portfolio cash and starting balance
MIN_STARTING_BALANCE = 100.0  # Smallest balance a reset may choose
MAX_STARTING_BALANCE = 100000000.0  # Largest balance a reset may choose (100M)

# Quantity Precision
QUANTITY_EPSILON = 1e-6  # Quantities at or below this are treated as zero
FUNDS_TOLERANCE = 1e-9  # Cash overshoot absorbed when spending the whole balance

# Value History
DEFAULT_HISTORY_LENGTH = 5  # Recent total values kept for the dashboard trend

# Projection
DEFAULT_PERIODS_PER_YEAR = 12  # Monthly compounding
MAX_ANNUAL_RATE = 1.0  # +/-100% per year
MAX_PROJECTION_PERIODS = 1200  # 100 years of monthly periods

# Storage Keys
DEFAULT_PORTFOLIO_KEY = "portfolio"
DEFAULT_HISTORY_KEY = "portfolioHistory"
CRYPTO_PORTFOLIO_KEY = "cryptoPortfolio"

# Market Data
DEFAULT_QUOTE_TTL_SECONDS = 60  # Quote cache lifetime
DEFAULT_QUOTE_CACHE_SIZE = 256
COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
REQUEST_TIMEOUT_SECONDS = 10.0
