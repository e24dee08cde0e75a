"""Configuration for the Raindrop.io MCP server."""
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_BASE_URL = "https://api.raindrop.io/rest/v1"


@dataclass
class Config:
    """Main configuration for the Raindrop.io MCP server."""
    access_token: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL

    # Gateway behavior
    timeout: float = 10.0  # Seconds per upstream call
    max_retries: int = 2  # Extra attempts for read calls
    retry_delay: float = 0.5  # Seconds between read retries

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        return cls(
            access_token=os.environ.get("RAINDROP_ACCESS_TOKEN") or None,
            base_url=os.environ.get("RAINDROP_API_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.environ.get("RAINDROP_TIMEOUT", "10.0")),
            max_retries=int(os.environ.get("RAINDROP_MAX_RETRIES", "2")),
            retry_delay=float(os.environ.get("RAINDROP_RETRY_DELAY", "0.5")),
            log_level=os.environ.get("RAINDROP_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def has_token(self) -> bool:
        """True if an access token was configured."""
        return bool(self.access_token)
