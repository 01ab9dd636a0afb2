import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Comparison API (vendor mappings, vendor list, stats)
    api_base_url: str = os.getenv("PRICE_API_BASE_URL", "http://127.0.0.1:8000")
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "10.0"))
    retry_attempts: int = int(os.getenv("RETRY_ATTEMPTS", "2"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    retry_max_delay: float = float(os.getenv("RETRY_MAX_DELAY", "3.0"))

    # Upstream platforms
    snappfood_url: str = os.getenv(
        "SNAPPFOOD_URL",
        "https://snappfood.ir/mobile/v2/restaurant/details/dynamic",
    )
    tapsifood_url: str = os.getenv("TAPSIFOOD_URL", "https://api.tapsi.food/v1/api/Vendor")
    snappfood_lat: float = float(os.getenv("SNAPPFOOD_LAT", "35.715"))
    snappfood_long: float = float(os.getenv("SNAPPFOOD_LONG", "51.404"))
    tapsifood_lat: float = float(os.getenv("TAPSIFOOD_LAT", "35.7559"))
    tapsifood_long: float = float(os.getenv("TAPSIFOOD_LONG", "51.4132"))

    # Caches (size, ttl in seconds)
    vendor_data_cache_size: int = int(os.getenv("VENDOR_DATA_CACHE_SIZE", "200"))
    vendor_data_cache_ttl: float = float(os.getenv("VENDOR_DATA_CACHE_TTL", "300"))
    vendor_list_cache_ttl: float = float(os.getenv("VENDOR_LIST_CACHE_TTL", "600"))
    stats_cache_ttl: float = float(os.getenv("STATS_CACHE_TTL", "30"))
    rating_cache_size: int = int(os.getenv("RATING_CACHE_SIZE", "500"))
    rating_cache_ttl: float = float(os.getenv("RATING_CACHE_TTL", "600"))
    search_cache_size: int = int(os.getenv("SEARCH_CACHE_SIZE", "200"))
    search_cache_ttl: float = float(os.getenv("SEARCH_CACHE_TTL", "120"))
    cache_cleanup_interval: float = float(os.getenv("CACHE_CLEANUP_INTERVAL", "120"))

    # Reconciliation
    vendor_chunk_size: int = int(os.getenv("VENDOR_CHUNK_SIZE", "25"))
    product_chunk_size: int = int(os.getenv("PRODUCT_CHUNK_SIZE", "10"))
    rating_threshold: float = float(os.getenv("RATING_THRESHOLD", "4.2"))
    # 0 disables the cap
    rating_extraction_cap: int = int(os.getenv("RATING_EXTRACTION_CAP", "100"))
    idle_delay: float = float(os.getenv("IDLE_DELAY", "0.0"))

    # Change watching
    vendor_debounce: float = float(os.getenv("VENDOR_DEBOUNCE", "0.5"))
    product_debounce: float = float(os.getenv("PRODUCT_DEBOUNCE", "0.3"))
    navigation_poll_interval: float = float(os.getenv("NAVIGATION_POLL_INTERVAL", "1.0"))
    navigation_settle_delay: float = float(os.getenv("NAVIGATION_SETTLE_DELAY", "0.8"))
    menu_init_delay: float = float(os.getenv("MENU_INIT_DELAY", "0.3"))
    listing_init_delay: float = float(os.getenv("LISTING_INIT_DELAY", "0.5"))

    # Search
    search_debounce: float = float(os.getenv("SEARCH_DEBOUNCE", "0.15"))
    max_search_results: int = int(os.getenv("MAX_SEARCH_RESULTS", "200"))
    max_visible_results: int = int(os.getenv("MAX_VISIBLE_RESULTS", "50"))
    visible_results_step: int = int(os.getenv("VISIBLE_RESULTS_STEP", "25"))
    high_savings_threshold: int = int(os.getenv("HIGH_SAVINGS_THRESHOLD", "5000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8100"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    warm_cache_on_startup: bool = os.getenv("WARM_CACHE_ON_STARTUP", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")

        if self.retry_attempts < 1:
            raise ValueError("RETRY_ATTEMPTS must be at least 1")

        if self.vendor_chunk_size < 1 or self.product_chunk_size < 1:
            raise ValueError("Chunk sizes must be at least 1")

        if not 0 <= self.rating_threshold <= 10:
            raise ValueError(f"RATING_THRESHOLD must be between 0 and 10, got {self.rating_threshold}")

        if self.max_visible_results > self.max_search_results:
            raise ValueError(
                f"MAX_VISIBLE_RESULTS ({self.max_visible_results}) cannot exceed "
                f"MAX_SEARCH_RESULTS ({self.max_search_results})"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Install a basic log format for the package loggers.

    Args:
        level: Log level name. Defaults to settings.log_level.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
