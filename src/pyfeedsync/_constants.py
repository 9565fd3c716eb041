"""Internal constants shared across the library."""

USER_AGENT = "pyfeedsync/1 (+aiohttp)"

MARKET_URL = "https://drive.google.com/uc?export=download&id=1Je1mwoLqxhULWpuNknkyz6X-gg9IloVt"
QUOTES_URL = "https://zenquotes.io/api/quotes"
DAILY_QUOTE_URL = "https://zenquotes.io/api/today"

#: Seconds before a single resource GET is abandoned.
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_CACHE_PATH: str | None = None

#: Suffix of the storage key holding a resource's fetch timestamp.
FETCHED_AT_SUFFIX = ":fetched_at"

# ------------------------------------------------------------------
# Resource keys
# ------------------------------------------------------------------

MARKET_KEY = "market"
QUOTES_KEY = "quotes"
DAILY_QUOTE_KEY = "daily_quote"
