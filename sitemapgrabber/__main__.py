"""CLI entry point for SitemapGrabber.

Usage:
    python -m sitemapgrabber --sitemap-url URL [options]

The Firecrawl API key is read from FIRECRAWL_API_KEY (a .env file in the
working directory is loaded first).
"""

import argparse
import sys

from dotenv import load_dotenv

from .config import (
    BASE_DELAY,
    MAX_PASSES,
    GrabberConfig,
    GrabberError,
    api_key_from_env,
    api_url_from_env,
)
from .crawler import Crawler


def parse_args(argv: list[str] | None = None) -> GrabberConfig:
    """Parse command-line arguments into a GrabberConfig.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Populated GrabberConfig instance (not yet validated).
    """
    parser = argparse.ArgumentParser(
        prog="sitemapgrabber",
        description="SitemapGrabber - Scrape every page listed on a sitemap page "
                    "with Firecrawl and save each one as CSV and PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl everything the sitemap lists under its own host
  python -m sitemapgrabber --sitemap-url "https://example.com/sitemap"

  # Restrict to a section and retry harder
  python -m sitemapgrabber --sitemap-url "https://example.com/sitemap" --base-url "https://example.com/docs" --max-passes 5

  # Resume a previous crawl
  python -m sitemapgrabber --sitemap-url "https://example.com/sitemap" --resume
        """,
    )

    parser.add_argument(
        "--sitemap-url",
        required=True,
        help="Page that lists the site's links (e.g., https://example.com/sitemap)",
    )

    parser.add_argument(
        "--base-url",
        default="",
        help="Only URLs starting with this prefix are scraped "
             "(default: scheme and host of --sitemap-url)",
    )

    parser.add_argument(
        "--output-folder",
        default="output",
        help="Folder that receives the csv/ and pdf/ subfolders (default: output)",
    )

    parser.add_argument(
        "--max-passes",
        type=int,
        default=MAX_PASSES,
        help=f"Number of passes over failed URLs, first attempt included (default: {MAX_PASSES})",
    )

    parser.add_argument(
        "--delay",
        type=float,
        default=BASE_DELAY,
        help="Base seconds to wait after each request; pass N waits N times this "
             f"(default: {BASE_DELAY})",
    )

    parser.add_argument(
        "--timeout",
        type=int,
        default=60,
        help="Firecrawl request timeout in seconds (default: 60)",
    )

    parser.add_argument(
        "--api-url",
        default=None,
        help="Firecrawl API root (default: $FIRECRAWL_API_URL or https://api.firecrawl.dev)",
    )

    parser.add_argument(
        "--resume",
        action="store_true",
        default=False,
        help="Skip pages whose CSV and PDF already exist in the output folder",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="List every discovered and skipped URL",
    )

    args = parser.parse_args(argv)

    return GrabberConfig(
        sitemap_url=args.sitemap_url,
        base_url=args.base_url,
        api_key=api_key_from_env(),
        output_folder=args.output_folder,
        max_passes=args.max_passes,
        base_delay=args.delay,
        timeout=args.timeout,
        api_url=args.api_url or api_url_from_env(),
        resume=args.resume,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    load_dotenv(override=False)
    config = parse_args(argv)

    try:
        config.validate()
    except GrabberError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    crawler = Crawler(config)

    try:
        crawler.crawl()
    except GrabberError as e:
        print(f"\n[ERROR] {e} Exiting.")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n[INTERRUPTED] Crawl stopped by user.")
        print(f"  Pages saved so far: {crawler.saved_count}")
        print(f"  Output folder: {config.output_folder}")
        sys.exit(1)
    except Exception as e:
        print(f"\n[FATAL] A critical error occurred during the process: {e!r}")
        sys.exit(1)


if __name__ == "__main__":
    main()
