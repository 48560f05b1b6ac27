"""Configuration dataclass and error types for SitemapGrabber."""

import os
from dataclasses import dataclass
from urllib.parse import urlparse

API_KEY_ENV = "FIRECRAWL_API_KEY"
API_URL_ENV = "FIRECRAWL_API_URL"
DEFAULT_API_URL = "https://api.firecrawl.dev"

MAX_PASSES = 3  # 1 initial pass + 2 retry passes
BASE_DELAY = 1.5  # seconds, multiplied by the pass number


class GrabberError(Exception):
    """Base class for errors that end a SitemapGrabber run."""


class ConfigError(GrabberError):
    """Raised when required configuration is missing or invalid."""


class SitemapError(GrabberError):
    """Raised when the sitemap page yields nothing to crawl."""


@dataclass
class GrabberConfig:
    """Configuration for a sitemap crawl session."""

    sitemap_url: str
    base_url: str = ""  # "" = scheme and host of sitemap_url
    api_key: str = ""
    output_folder: str = "output"
    max_passes: int = MAX_PASSES
    base_delay: float = BASE_DELAY
    timeout: int = 60  # HTTP timeout for a single Firecrawl request
    api_url: str = DEFAULT_API_URL
    resume: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.base_url:
            self.base_url = default_base_url(self.sitemap_url)

    def validate(self) -> None:
        """Check the configuration before any work begins.

        Raises:
            ConfigError: If the API key is missing or a tunable is out of range.
        """
        if not self.api_key:
            raise ConfigError(
                f"{API_KEY_ENV} is not set. Export it or add it to a .env file."
            )
        if not self.sitemap_url:
            raise ConfigError("A sitemap URL is required.")
        if self.max_passes < 1:
            raise ConfigError(f"max_passes must be at least 1 (got {self.max_passes})")
        if self.base_delay < 0:
            raise ConfigError(f"delay cannot be negative (got {self.base_delay})")


def default_base_url(sitemap_url: str) -> str:
    """Return the scheme and host of *sitemap_url*, e.g. ``https://x.com``."""
    parsed = urlparse(sitemap_url or "")
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"


def api_key_from_env() -> str:
    """Read the Firecrawl API key from the environment ("" if unset)."""
    return os.environ.get(API_KEY_ENV, "").strip()


def api_url_from_env() -> str:
    return os.environ.get(API_URL_ENV, "").strip() or DEFAULT_API_URL
