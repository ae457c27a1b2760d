# src/config/settings.py

"""Central configuration for the pricewatch engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, ignoring blank values."""
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


class Settings:
    """Central configuration for the pricewatch engine."""

    # --- Extraction ---
    EXTRACTION_ATTEMPT_TIMEOUT: int = 35    # Wall-clock secs per attempt
    EXTRACTION_SERVICE_TIMEOUT_MS: int = 30000  # Provider-side page budget
    EXTRACTION_MAX_ATTEMPTS: int = 3        # Attempts incl. the first
    BACKOFF_BASE: float = 2.0               # Seconds; doubles per attempt
    DEFAULT_CURRENCY: str = "INR"

    # --- Comparison ---
    CANDIDATE_TIMEOUT: float = _env_float(
        "PRICEWATCH_CANDIDATE_TIMEOUT", 120.0
    )
    MAX_CONCURRENT_EXTRACTIONS: int = 5
    MAX_RESULTS_PER_PLATFORM: int = 2
    MATCH_OVERLAP_THRESHOLD: float = 0.35
    MIN_SEARCH_QUERY_LENGTH: int = 3

    # --- Discovery ---
    DISCOVERY_STRATEGY: str = os.getenv(
        "PRICEWATCH_DISCOVERY_STRATEGY", "search"
    )
    DISCOVERY_STRATEGIES: list[dict[str, str]] = [
        {
            "id": "search",
            "label": "Structured web search",
            "strategy": (
                "src.discovery.structured_search.StructuredSearchStrategy"
            ),
        },
        {
            "id": "planned",
            "label": "Planned search URLs",
            "strategy": (
                "src.discovery.planned_search.PlannedSearchStrategy"
            ),
        },
        {
            "id": "direct",
            "label": "Direct product URLs",
            "strategy": "src.discovery.direct_url.DirectUrlStrategy",
        },
    ]
    SITE_FILTER_LIMIT: int = 8              # site: operators per query
    SEARCH_RESULT_COUNT: int = 20
    SEARCH_COUNTRY: str = "in"
    SEARCH_LANGUAGE: str = "en"
    SEARCH_TIMEOUT: int = 20
    PLANNER_TIMEOUT: int = 60

    # --- External services ---
    FIRECRAWL_API_KEY: str = os.getenv("FIRECRAWL_API_KEY", "")
    FIRECRAWL_API_URL: str = os.getenv(
        "FIRECRAWL_API_URL", "https://api.firecrawl.dev/v1/scrape"
    )
    SERPER_API_KEY: str = os.getenv("SERPER_API_KEY", "")
    SERPER_API_URL: str = os.getenv(
        "SERPER_API_URL", "https://google.serper.dev/search"
    )
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_API_BASE: str = os.getenv(
        "GEMINI_API_BASE",
        "https://generativelanguage.googleapis.com/v1beta",
    )
    PLANNER_TEMPERATURE: float = 0.3
    DIRECT_URL_TEMPERATURE: float = 0.2
    VERDICT_TEMPERATURE: float = 0.4

    # --- Sweep / identity ---
    CRON_SECRET: str = os.getenv("CRON_SECRET", "")
    USER_ID: str = os.getenv("PRICEWATCH_USER_ID", "")

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    PRICE_DB_PATH: Path = DATA_DIR / "pricewatch.db"
    LOGS_DIR: Path = BASE_DIR / "logs"
    LOG_FILES_KEPT: int = 30                # Per command, newest first
