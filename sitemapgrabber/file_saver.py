"""URL-to-filename mapping and CSV/PDF page output."""

import csv
import os
import re
import uuid
from dataclasses import dataclass
from urllib.parse import urlparse

from fpdf import FPDF

from .models import PageRecord

CSV_SUBFOLDER = "csv"
PDF_SUBFOLDER = "pdf"
CSV_HEADER = ["url", "title", "content"]


@dataclass(frozen=True)
class SavedPage:
    """Paths of the two files written for one page."""

    csv_path: str
    pdf_path: str


def slugify(url: str) -> str:
    """Derive a filesystem-safe file stem from a URL's path.

    Only the path is used; scheme, host, query and fragment are ignored.

    Examples:
        "https://example.com/a/B/Page.html" -> "a-b-page"
        "https://example.com/"              -> "index"
        "https://example.com/docs//intro/"  -> "docs-intro"

    Args:
        url: Absolute URL of the page.

    Returns:
        The slug, ``"index"`` for the site root, or a random
        ``invalid-url-*`` / ``malformed-url-*`` identifier when the URL is
        missing or cannot be parsed.
    """
    if not url:
        print("  [WARN] slugify received an empty URL. Using a random name.")
        return f"invalid-url-{_random_id()}"

    try:
        parsed = urlparse(url)
    except ValueError:
        parsed = None
    if parsed is None or not parsed.scheme or not parsed.netloc:
        print(f"  [WARN] Could not parse URL for slugify: {url}. Using a random name.")
        return f"malformed-url-{_random_id()}"

    slug = parsed.path.lower()
    slug = re.sub(r"^/", "", slug)
    slug = slug.replace("/", "-")
    slug = re.sub(r"\.html$", "", slug)
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    slug = slug.strip("-")
    return slug or "index"


def _random_id() -> str:
    return uuid.uuid4().hex[:8]


def output_paths(url: str, output_folder: str) -> SavedPage:
    """Return where the CSV and PDF for *url* are written.

    A URL that cannot be slugified gets a fresh random name on every call,
    so its paths never match an earlier run.
    """
    slug = slugify(url)
    return SavedPage(
        csv_path=os.path.join(output_folder, CSV_SUBFOLDER, f"{slug}.csv"),
        pdf_path=os.path.join(output_folder, PDF_SUBFOLDER, f"{slug}.pdf"),
    )


def write_csv(record: PageRecord, filepath: str) -> None:
    """Write a header line and a single fully-quoted row for *record*.

    Embedded double quotes are doubled, so any standard CSV reader gets the
    original strings back.
    """
    with open(filepath, "w", encoding="utf-8", newline="") as f:
        csv.writer(f, lineterminator="\n").writerow(CSV_HEADER)
        csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\n").writerow(
            [record.url, record.title, record.content]
        )


def _latin1(text: str) -> str:
    # The built-in PDF fonts only cover latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def build_pdf(record: PageRecord) -> FPDF:
    """Lay out *record* as a PDF: centered title, linked source line, justified body."""
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_title(_latin1(record.title))
    pdf.add_page()

    pdf.set_font("helvetica", size=20)
    pdf.multi_cell(0, 10, _latin1(record.title), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(5)

    pdf.set_font("helvetica", style="U", size=10)
    pdf.set_text_color(0, 0, 255)
    pdf.cell(0, 6, _latin1(f"Source: {record.url}"), link=record.url,
             new_x="LMARGIN", new_y="NEXT")
    pdf.ln(10)

    pdf.set_font("helvetica", size=12)
    pdf.set_text_color(0, 0, 0)
    pdf.multi_cell(0, 6, _latin1(record.content), align="J", new_x="LMARGIN", new_y="NEXT")
    return pdf


def write_pdf(record: PageRecord, filepath: str) -> None:
    """Render *record* and write it to *filepath*.

    Returns only after the bytes are flushed and synced to disk.
    """
    data = bytes(build_pdf(record).output())
    with open(filepath, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def save_page_record(record: PageRecord, output_folder: str) -> SavedPage:
    """Write the CSV and PDF for one scraped page.

    Creates ``<output_folder>/csv`` and ``<output_folder>/pdf`` if needed.

    Args:
        record: The scraped page.
        output_folder: Common output root.

    Returns:
        The paths that were written.

    Raises:
        Exception: Whatever stopped either write. Files written for *record*
            during this call are removed first, so a failed page leaves no
            output behind.
    """
    os.makedirs(os.path.join(output_folder, CSV_SUBFOLDER), exist_ok=True)
    os.makedirs(os.path.join(output_folder, PDF_SUBFOLDER), exist_ok=True)

    paths = output_paths(record.url, output_folder)
    try:
        write_csv(record, paths.csv_path)
        write_pdf(record, paths.pdf_path)
    except Exception:
        _remove_quietly(paths.csv_path)
        _remove_quietly(paths.pdf_path)
        raise
    return paths


def _remove_quietly(filepath: str) -> None:
    try:
        os.remove(filepath)
    except FileNotFoundError:
        pass


def file_exists(filepath: str) -> bool:
    """Check if a file already exists (for resume support).

    Args:
        filepath: Full filesystem path to check.

    Returns:
        True if the file exists and has content.
    """
    return os.path.isfile(filepath) and os.path.getsize(filepath) > 0


def already_saved(url: str, output_folder: str) -> bool:
    """True when both output files for *url* exist from an earlier run."""
    paths = output_paths(url, output_folder)
    return file_exists(paths.csv_path) and file_exists(paths.pdf_path)
