"""Tests for filename slugs and CSV/PDF page output."""

from __future__ import annotations

import csv
import os

import pytest

from sitemapgrabber import file_saver
from sitemapgrabber.file_saver import (
    already_saved,
    build_pdf,
    output_paths,
    save_page_record,
    slugify,
    write_csv,
    write_pdf,
)
from sitemapgrabber.models import PageRecord


_RECORD = PageRecord(
    url="https://example.com/docs/Intro.html",
    title="Intro",
    content='He said "hi"\nSecond line, with a comma.',
)


# ---------------------------------------------------------------------------
# slugify
# ---------------------------------------------------------------------------

class TestSlugify:
    def test_path_is_lowercased_and_joined(self) -> None:
        assert slugify("https://example.com/a/B/Page.html") == "a-b-page"

    def test_root_is_index(self) -> None:
        assert slugify("https://example.com/") == "index"
        assert slugify("https://example.com") == "index"

    def test_query_and_fragment_ignored(self) -> None:
        assert slugify("https://example.com/blog/post?id=3#top") == "blog-post"

    def test_trailing_slash_and_double_slash(self) -> None:
        assert slugify("https://example.com/docs//intro/") == "docs-intro"

    def test_unsafe_characters_removed(self) -> None:
        assert slugify("https://example.com/caf%C3%A9/hello_world!") == "cafc3a9-helloworld"

    def test_html_suffix_only_stripped_at_end(self) -> None:
        assert slugify("https://example.com/a.html/b") == "ahtml-b"

    def test_empty_url_gets_random_name(self, capsys: pytest.CaptureFixture[str]) -> None:
        slug = slugify("")
        assert slug.startswith("invalid-url-")
        assert len(slug) > len("invalid-url-")
        assert "[WARN]" in capsys.readouterr().out

    def test_unparsable_url_gets_distinct_random_names(self) -> None:
        first = slugify("not a url")
        second = slugify("not a url")
        assert first.startswith("malformed-url-")
        assert first != second

    def test_bad_ipv6_host_is_malformed(self) -> None:
        assert slugify("http://[::1/page").startswith("malformed-url-")


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

class TestWriteCsv:
    def test_quotes_are_doubled(self, tmp_path) -> None:
        path = tmp_path / "page.csv"
        write_csv(_RECORD, str(path))
        raw = path.read_text(encoding="utf-8")

        assert raw.startswith("url,title,content\n")
        assert '"He said ""hi""' in raw
        assert raw.splitlines()[1].startswith('"https://example.com/docs/Intro.html","Intro",')

    def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "page.csv"
        write_csv(_RECORD, str(path))

        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))

        assert rows[0] == ["url", "title", "content"]
        assert rows[1] == [_RECORD.url, _RECORD.title, _RECORD.content]


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

class TestWritePdf:
    def test_writes_pdf_file(self, tmp_path) -> None:
        path = tmp_path / "page.pdf"
        write_pdf(_RECORD, str(path))

        data = path.read_bytes()
        assert data.startswith(b"%PDF")
        assert len(data) > 500

    def test_uncompressed_pdf_contains_all_text(self) -> None:
        pdf = build_pdf(_RECORD)
        pdf.set_compression(False)
        data = bytes(pdf.output())

        assert b"Intro" in data
        assert b"Source: https://example.com/docs/Intro.html" in data
        assert b"Second line" in data

    def test_non_latin_text_does_not_raise(self, tmp_path) -> None:
        record = PageRecord(url="https://example.com/x", title="Ünïcode ✓", content="日本語 ✓ text")
        path = tmp_path / "x.pdf"
        write_pdf(record, str(path))
        assert path.read_bytes().startswith(b"%PDF")

    def test_fsyncs_before_returning(self, tmp_path, monkeypatch) -> None:
        synced: list[int] = []
        real_fsync = os.fsync

        def spy(fd: int) -> None:
            synced.append(fd)
            real_fsync(fd)

        monkeypatch.setattr(file_saver.os, "fsync", spy)
        write_pdf(_RECORD, str(tmp_path / "page.pdf"))
        assert len(synced) == 1


# ---------------------------------------------------------------------------
# save_page_record / resume helpers
# ---------------------------------------------------------------------------

class TestSavePageRecord:
    def test_creates_folders_and_both_files(self, tmp_path) -> None:
        out = tmp_path / "output"
        saved = save_page_record(_RECORD, str(out))

        assert saved.csv_path == os.path.join(str(out), "csv", "docs-intro.csv")
        assert saved.pdf_path == os.path.join(str(out), "pdf", "docs-intro.pdf")
        assert os.path.isfile(saved.csv_path)
        assert os.path.isfile(saved.pdf_path)

    def test_existing_folders_are_fine(self, tmp_path) -> None:
        out = tmp_path / "output"
        (out / "csv").mkdir(parents=True)
        (out / "pdf").mkdir()
        save_page_record(_RECORD, str(out))
        save_page_record(_RECORD, str(out))
        assert len(os.listdir(out / "csv")) == 1

    def test_already_saved(self, tmp_path) -> None:
        out = str(tmp_path)
        assert already_saved(_RECORD.url, out) is False
        save_page_record(_RECORD, out)
        assert already_saved(_RECORD.url, out) is True

    def test_output_paths(self) -> None:
        paths = output_paths("https://example.com/", "out")
        assert paths.csv_path == os.path.join("out", "csv", "index.csv")
        assert paths.pdf_path == os.path.join("out", "pdf", "index.pdf")

    def test_failed_pdf_leaves_no_csv(self, tmp_path, monkeypatch) -> None:
        def broken_pdf(record: PageRecord, filepath: str) -> None:
            with open(filepath, "wb") as f:
                f.write(b"%PDF-trunc")
            raise OSError("disk full")

        monkeypatch.setattr(file_saver, "write_pdf", broken_pdf)
        out = tmp_path / "output"

        with pytest.raises(OSError):
            save_page_record(_RECORD, str(out))

        assert os.listdir(out / "csv") == []
        assert os.listdir(out / "pdf") == []

    def test_unencodable_content_leaves_no_csv(self, tmp_path) -> None:
        record = PageRecord(url="https://example.com/bad", title="Bad", content="bad \ud800 text")
        out = tmp_path / "output"

        with pytest.raises(UnicodeEncodeError):
            save_page_record(record, str(out))

        assert os.listdir(out / "csv") == []
        assert already_saved(record.url, str(out)) is False
