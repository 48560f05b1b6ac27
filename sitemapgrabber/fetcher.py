"""Firecrawl scrape client and conversion of its replies into fetch results."""

import requests

from .config import DEFAULT_API_URL
from .models import DEFAULT_TITLE, FetchEmpty, FetchFailed, FetchResult, Fetched, PageRecord


class FirecrawlClient:
    """Thin wrapper around the Firecrawl ``/v1/scrape`` endpoint.

    One ``requests.Session`` is reused for every call so the connection and
    the authorization header are shared across the whole crawl.
    """

    def __init__(self, api_key: str, api_url: str = DEFAULT_API_URL, timeout: int = 60):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def scrape(self, url: str, only_main_content: bool = True) -> dict:
        """Scrape a single URL and return the decoded JSON reply.

        Args:
            url: Page to scrape.
            only_main_content: Ask the API to drop navigation, headers and footers.

        Returns:
            The reply body, shaped ``{"success": bool, "data": {"markdown": str,
            "metadata": {"title": str, ...}}}``.

        Raises:
            requests.exceptions.RequestException: On network or HTTP errors.
            ValueError: If the reply is not JSON.
        """
        payload = {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": only_main_content,
        }
        response = self.session.post(
            f"{self.api_url}/v1/scrape",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self.session.close()


def to_page_record(url: str, reply: dict) -> FetchResult:
    """Classify a scrape reply as ``Fetched`` or ``FetchEmpty``.

    An explicit ``success: false`` and a reply without markdown are the same
    retryable outcome.
    """
    if not isinstance(reply, dict) or not reply.get("success"):
        error = reply.get("error") if isinstance(reply, dict) else None
        return FetchEmpty(url, error or "scrape reported failure")

    data = reply.get("data")
    if not isinstance(data, dict):
        return FetchEmpty(url, "no content returned")
    markdown = data.get("markdown")
    if not markdown or not isinstance(markdown, str):
        return FetchEmpty(url, "no content returned")

    metadata = data.get("metadata")
    title = metadata.get("title") if isinstance(metadata, dict) else None
    if not title or not isinstance(title, str):
        title = DEFAULT_TITLE
    return Fetched(PageRecord(url=url, title=title, content=markdown))


def fetch_page(client: FirecrawlClient, url: str) -> FetchResult:
    """Scrape *url* and return an explicit result instead of raising.

    Args:
        client: Configured Firecrawl client.
        url: Page to scrape.

    Returns:
        ``Fetched`` with the page record, ``FetchEmpty`` when the API had
        nothing usable, or ``FetchFailed`` carrying the error message.
    """
    try:
        reply = client.scrape(url, only_main_content=True)
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        return FetchFailed(url, f"HTTP {status}: {e}")
    except requests.exceptions.Timeout:
        return FetchFailed(url, "Timeout")
    except requests.exceptions.ConnectionError:
        return FetchFailed(url, "Connection error")
    except requests.exceptions.RequestException as e:
        return FetchFailed(url, str(e))
    except ValueError as e:
        return FetchFailed(url, f"Invalid JSON reply: {e}")
    except Exception as e:
        return FetchFailed(url, f"Unexpected error: {e!r}")

    try:
        return to_page_record(url, reply)
    except Exception as e:
        return FetchFailed(url, f"Unreadable reply: {e!r}")
