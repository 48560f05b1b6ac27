"""Core crawl engine - sitemap discovery, multi-pass retries, summary."""

import sys
import time
from typing import Callable, Iterable, Optional

from .config import BASE_DELAY, MAX_PASSES, GrabberConfig, SitemapError
from .fetcher import FirecrawlClient, fetch_page
from .file_saver import already_saved, save_page_record
from .link_extractor import count_links, extract_urls
from .models import (
    CrawlResult,
    FetchEmpty,
    FetchFailed,
    FetchResult,
    Fetched,
    PageRecord,
    PassOutcome,
    PassState,
    WorkState,
)

FetchFn = Callable[[str], FetchResult]
PersistFn = Callable[[PageRecord], object]
SleepFn = Callable[[float], None]


def _flush() -> None:
    """Flush stdout so output appears immediately in piped/buffered contexts."""
    sys.stdout.flush()


def pass_delay(base_delay: float, pass_number: int) -> float:
    """Seconds to wait after each URL in pass *pass_number* (1-indexed).

    The delay grows linearly with the pass number and is shared by every URL
    of that pass.
    """
    if pass_number < 1:
        raise ValueError(f"pass_number must be >= 1 (got {pass_number})")
    return base_delay * pass_number


def _attempt(url: str, fetch: FetchFn, persist: PersistFn) -> WorkState:
    """Fetch and save one URL; any error leaves it failed for this pass."""
    try:
        result = fetch(url)
        if isinstance(result, Fetched):
            persist(result.record)
            return WorkState.SUCCEEDED
        if isinstance(result, FetchEmpty):
            print(f"  [WARN] Scrape failed or returned no content ({result.reason}). "
                  f"Adding to retry list.")
        elif isinstance(result, FetchFailed):
            print(f"  [ERROR] {result.message}. Adding to retry list.")
        else:
            print(f"  [ERROR] Unexpected fetch result: {result!r}. Adding to retry list.")
    except Exception as e:
        print(f"  [ERROR] {e!r}. Adding to retry list.")
    return WorkState.FAILED_THIS_PASS


def run_pass(
    state: PassState,
    fetch: FetchFn,
    persist: PersistFn,
    sleep: SleepFn = time.sleep,
) -> PassOutcome:
    """Attempt every URL of one pass, in order.

    Successful pages are handed to *persist*. Empty replies and errors are
    collected for the next pass. The pass delay is slept after every URL,
    whatever its outcome.

    Args:
        state: Pass number, delay and work set.
        fetch: Returns a ``FetchResult`` for a URL.
        persist: Writes a ``PageRecord`` to disk.
        sleep: Delay function (``time.sleep`` outside tests).

    Returns:
        The URLs that succeeded and failed during this pass.
    """
    outcome = PassOutcome()
    total = len(state.urls)

    for index, url in enumerate(state.urls, start=1):
        print(f"\n[Pass {state.number} | {index}/{total}] Processing: {url}")
        _flush()

        outcome.mark(url, _attempt(url, fetch, persist))

        _flush()
        sleep(state.delay)

    return outcome


def run_passes(
    urls: Iterable[str],
    fetch: FetchFn,
    persist: PersistFn,
    max_passes: int = MAX_PASSES,
    base_delay: float = BASE_DELAY,
    sleep: SleepFn = time.sleep,
) -> CrawlResult:
    """Sweep the URLs up to *max_passes* times, retrying only the failures.

    Each pass works on the URLs that failed in the previous one. The loop
    stops once nothing is pending or the pass budget is spent; whatever is
    still pending then is permanently failed and never retried.

    Args:
        urls: Initial work set, attempted in this order.
        fetch: See ``run_pass``.
        persist: See ``run_pass``.
        max_passes: Pass budget.
        base_delay: Pass *p* waits ``base_delay * p`` seconds after each URL.
        sleep: Delay function.

    Returns:
        The accumulated ``CrawlResult``.
    """
    result = CrawlResult()
    pending = list(urls)
    pass_number = 1

    while pending and pass_number <= max_passes:
        state = PassState(
            number=pass_number,
            delay=pass_delay(base_delay, pass_number),
            urls=tuple(pending),
        )
        print(f"\n--- Pass {state.number}/{max_passes} | URLs to process: {len(state.urls)} "
              f"| Delay: {state.delay:g}s ---")
        _flush()

        outcome = run_pass(state, fetch, persist, sleep)
        result.succeeded.extend(outcome.succeeded)
        result.passes_run = pass_number

        pending = outcome.failed
        pass_number += 1

    result.permanently_failed = list(pending)
    return result


def format_summary(result: CrawlResult, output_folder: str) -> str:
    """Render the end-of-run report."""
    lines = [
        "",
        "=" * 70,
        "  Crawl Complete",
        f"  Pages saved:        {result.success_count}",
        f"  Permanently failed: {len(result.permanently_failed)}",
    ]
    if result.skipped:
        lines.append(f"  Skipped (resume):   {len(result.skipped)}")
    lines.append(f"  Passes run:         {result.passes_run}")
    lines.append(f"  Output folder:      {output_folder}")
    lines.append("=" * 70)

    if result.permanently_failed:
        lines.append("")
        lines.append("  The following URLs could not be scraped after all attempts:")
        for url in result.permanently_failed:
            lines.append(f"    - {url}")
    else:
        lines.append("  No failed pages after all retries.")
    return "\n".join(lines)


class Crawler:
    """Sitemap-driven crawler.

    Scrapes the sitemap page once, keeps the in-scope links it lists, then
    scrapes each of those pages through Firecrawl and saves it as CSV and PDF.
    Pages that fail are retried in later passes with a longer delay.
    """

    def __init__(
        self,
        config: GrabberConfig,
        client: Optional[FirecrawlClient] = None,
        sleep: SleepFn = time.sleep,
    ):
        self.config = config
        self.client = client or FirecrawlClient(
            config.api_key, api_url=config.api_url, timeout=config.timeout
        )
        self._sleep = sleep
        self.saved_count: int = 0  # running total, also read on Ctrl-C

    def crawl(self) -> CrawlResult:
        """Run discovery and the retry passes, then print the summary.

        Raises:
            SitemapError: If the sitemap gives no URLs to work on.
        """
        self._print_banner()
        try:
            urls = self.discover_urls()

            skipped: list[str] = []
            if self.config.resume:
                urls, skipped = self._split_saved(urls)

            result = run_passes(
                urls,
                self._fetch,
                self._persist,
                max_passes=self.config.max_passes,
                base_delay=self.config.base_delay,
                sleep=self._sleep,
            )
            result.skipped = skipped
        finally:
            self.client.close()

        print(format_summary(result, self.config.output_folder))
        _flush()
        return result

    def discover_urls(self) -> list[str]:
        """Scrape the sitemap page and return its unique in-scope URLs.

        Raises:
            SitemapError: If the page cannot be scraped, is empty, or lists no
                URL under the base URL.
        """
        print(f"[SITEMAP] Fetching and parsing sitemap from: {self.config.sitemap_url}")
        _flush()

        result = fetch_page(self.client, self.config.sitemap_url)
        if isinstance(result, FetchFailed):
            raise SitemapError(f"Could not scrape the sitemap page: {result.message}")
        if isinstance(result, FetchEmpty):
            raise SitemapError(f"Sitemap page returned no content: {result.reason}")

        text = result.record.content
        urls = extract_urls(text, self.config.base_url)
        if not urls:
            raise SitemapError(
                f"No URLs under {self.config.base_url} found in the sitemap."
            )

        print(f"[SITEMAP] Found {len(urls)} unique URLs to process "
              f"({count_links(text)} links on the page).")
        if self.config.verbose:
            for url in urls:
                print(f"    + {url}")
        _flush()
        return urls

    def _split_saved(self, urls: list[str]) -> tuple[list[str], list[str]]:
        todo: list[str] = []
        skipped: list[str] = []
        for url in urls:
            if already_saved(url, self.config.output_folder):
                skipped.append(url)
                if self.config.verbose:
                    print(f"  [SKIP] Already saved: {url}")
            else:
                todo.append(url)
        if skipped:
            print(f"[RESUME] Skipping {len(skipped)} already-saved page(s).")
        return todo, skipped

    def _fetch(self, url: str) -> FetchResult:
        return fetch_page(self.client, url)

    def _persist(self, record: PageRecord) -> None:
        paths = save_page_record(record, self.config.output_folder)
        print(f"  [SAVED] {paths.csv_path}")
        print(f"  [SAVED] {paths.pdf_path}")
        self.saved_count += 1

    def _print_banner(self) -> None:
        print("=" * 70)
        print("  SitemapGrabber - Starting crawl")
        print(f"  Sitemap:  {self.config.sitemap_url}")
        print(f"  Base URL: {self.config.base_url}")
        print(f"  Output:   {self.config.output_folder}")
        print(f"  Passes:   {self.config.max_passes} | Base delay: {self.config.base_delay:g}s "
              f"| Timeout: {self.config.timeout}s")
        if self.config.resume:
            print("  Resume mode: ON (skipping already-saved pages)")
        print("=" * 70)
        print()
        _flush()
