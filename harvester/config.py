"""Centralised settings for the table harvester.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Output dataset
    # ------------------------------------------------------------------
    dataset_path: Path = field(
        default_factory=lambda: Path(
            os.environ.get("HARVEST_DATASET_PATH", Path.cwd() / "dataset.jsonl")
        )
    )

    # ------------------------------------------------------------------
    # Fetch layer
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "HARVEST_USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        )
    )
    playwright_fallback: bool = field(
        default_factory=lambda: _env_bool("HARVEST_PLAYWRIGHT_FALLBACK", "true")
    )

    # ------------------------------------------------------------------
    # Crawl limits
    # ------------------------------------------------------------------
    max_pages: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_MAX_PAGES", "0"))
    )
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_MAX_CONCURRENCY", "1"))
    )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    error_body_preview: int = field(
        default_factory=lambda: int(os.environ.get("ERROR_BODY_PREVIEW", "500"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("HARVEST_LOG_LEVEL", "INFO").upper()
    )

    def ensure_dataset_dir(self) -> None:
        """Create the directory holding the dataset file if it does not exist."""
        self.dataset_path.parent.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from harvester.config import settings
settings = Settings()
