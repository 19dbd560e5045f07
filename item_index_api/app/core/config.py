"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from environment
variables, with defaults for every field.  Values are read when this
module is imported, so environment variables must be set before that.
Tests and embedding code can build their own ``Settings(...)`` and pass
it to ``create_app``.
"""

import os
from dataclasses import dataclass
from typing import List


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Item Index API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file in addition to the console.
    log_file: str = os.getenv("LOG_FILE", "")

    # Number of items in the collection; ids are 1..total_items.
    total_items: int = int(os.getenv("TOTAL_ITEMS", "1000000"))
    page_size: int = int(os.getenv("PAGE_SIZE", "20"))
    max_page_size: int = int(os.getenv("MAX_PAGE_SIZE", "1000"))

    # Tuning of the item index.  ``leaf_size`` trades positional lookup
    # cost against split/merge cost.  Searches whose estimated number of
    # matches is at most ``search_candidate_limit`` enumerate their
    # candidates; others test ids one by one.  Per-leaf match counts are
    # kept for up to ``search_cache_size`` terms.
    leaf_size: int = int(os.getenv("LEAF_SIZE", "1024"))
    search_candidate_limit: int = int(os.getenv("SEARCH_CANDIDATE_LIMIT", "20000"))
    search_cache_size: int = int(os.getenv("SEARCH_CACHE_SIZE", "16"))

    # Comma-separated list of origins allowed by CORS, ``*`` for any.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    # Directory holding the built frontend.  Relative paths are resolved
    # against the project root.  Nothing is served if it does not exist.
    static_dir: str = os.getenv("STATIC_DIR", "dist")

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "4000"))

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
