import os

from dotenv import load_dotenv

load_dotenv()

# fallback to a local sqlite for development if not configured
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./local.db"

COUNTRIES_API_URL = os.getenv(
    "COUNTRIES_API_URL",
    "https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies",
)
EXCHANGE_RATE_API_URL = os.getenv("EXCHANGE_RATE_API_URL", "https://open.er-api.com/v6/latest/USD")

# seconds, applied to each upstream request separately
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "10"))

CACHE_DIR = os.getenv("CACHE_DIR", "cache")
SUMMARY_IMAGE_NAME = "summary.png"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3000"))
