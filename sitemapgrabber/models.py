"""Data types shared by the fetcher, the retry passes and the file saver."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

DEFAULT_TITLE = "No Title Found"


class WorkState(Enum):
    """Where a URL stands in the retry passes."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED_THIS_PASS = "failed-this-pass"
    PERMANENTLY_FAILED = "permanently-failed"


@dataclass(frozen=True)
class PageRecord:
    """One successfully scraped page, ready to be written to disk."""

    url: str
    title: str
    content: str


@dataclass(frozen=True)
class PassState:
    """A single sweep over the pending URLs.

    Attributes:
        number: 1-indexed pass number.
        delay: Seconds to wait after each attempted URL in this pass.
        urls: Work set entering the pass, in attempt order.
    """

    number: int
    delay: float
    urls: tuple[str, ...]


@dataclass(frozen=True)
class Fetched:
    """The page was scraped and has content."""

    record: PageRecord


@dataclass(frozen=True)
class FetchEmpty:
    """The API answered but flagged failure or returned no content."""

    url: str
    reason: str


@dataclass(frozen=True)
class FetchFailed:
    """The request itself raised (network, HTTP status, bad JSON)."""

    url: str
    message: str


FetchResult = Union[Fetched, FetchEmpty, FetchFailed]


@dataclass
class PassOutcome:
    """URLs that succeeded and failed during one pass."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def mark(self, url: str, state: WorkState) -> None:
        """File *url* under the state it reached in this pass."""
        if state is WorkState.SUCCEEDED:
            self.succeeded.append(url)
        elif state is WorkState.FAILED_THIS_PASS:
            self.failed.append(url)
        else:
            raise ValueError(f"A pass cannot leave {url} {state.value}")


@dataclass
class CrawlResult:
    """Final tally of a crawl, returned instead of kept in module state."""

    succeeded: list[str] = field(default_factory=list)
    permanently_failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    passes_run: int = 0

    @property
    def success_count(self) -> int:
        return len(self.succeeded)
