"""Link extraction from scraped sitemap markdown."""

import re
from typing import Optional, Pattern

# [label](https://host/path) -> captures the URL
MARKDOWN_LINK_PATTERN = re.compile(r"\[.*?\]\((https?://[^\s)]+)\)")


def extract_urls(
    text: Optional[str],
    base_url: str,
    pattern: Pattern[str] = MARKDOWN_LINK_PATTERN,
) -> list[str]:
    """Return the unique URLs in *text* that start with *base_url*.

    The prefix check is a plain case-sensitive ``startswith``: trailing
    slashes, query strings and fragments are kept exactly as written, so
    ``https://x.com/a`` and ``https://x.com/a/`` are two different URLs.

    Args:
        text: Raw page text (markdown from the scraping API).
        base_url: Only URLs starting with this prefix are kept.
        pattern: Compiled regex whose first group is the URL.

    Returns:
        Deduplicated URLs in first-seen order. Empty if *text* is empty.
    """
    if not text:
        return []

    seen: set[str] = set()
    urls: list[str] = []
    for match in pattern.finditer(text):
        url = match.group(1)
        if url.startswith(base_url) and url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


def count_links(text: Optional[str], pattern: Pattern[str] = MARKDOWN_LINK_PATTERN) -> int:
    """Count every link reference in *text*, duplicates and out-of-scope included."""
    if not text:
        return 0
    return sum(1 for _ in pattern.finditer(text))
