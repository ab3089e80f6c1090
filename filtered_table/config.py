"""Package settings with environment-backed defaults."""

import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

# Load environment variables from a .env file in the working directory
load_dotenv(find_dotenv(usecwd=True))


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class TableConfig:
    """Table view settings."""

    page_size: int = field(default_factory=lambda: _env_int("FILTERED_TABLE_PAGE_SIZE", 25))
    log_level: str = field(
        default_factory=lambda: os.getenv("FILTERED_TABLE_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {self.page_size}")
