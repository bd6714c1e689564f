import json
import logging
from pathlib import Path
from urllib.parse import unquote

import pytest

from channelnav.config import Config, SiteConfig
from channelnav.models import Entry
from channelnav.site import SiteAssembler, run_build
from channelnav.validation import EntryValidationError


def _project(tmp_path: Path, entries: list[dict[str, object]], **overrides: object) -> Config:
    data_file = tmp_path / "data" / "channels.json"
    data_file.parent.mkdir(parents=True, exist_ok=True)
    data_file.write_text(json.dumps(entries, ensure_ascii=False), encoding="utf-8")
    static_dir = tmp_path / "static"
    static_dir.mkdir(exist_ok=True)
    (static_dir / "style.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    (static_dir / "nested").mkdir(exist_ok=True)
    (static_dir / "nested" / "ignored.txt").write_text("skip", encoding="utf-8")
    return Config(data_file=data_file, static_dir=static_dir, output_dir=tmp_path / "dist", **overrides)


def _snapshot(root: Path) -> dict[str, bytes]:
    return {path.relative_to(root).as_posix(): path.read_bytes() for path in sorted(root.rglob("*")) if path.is_file()}


def test_build_single_entry_scenario(tmp_path: Path) -> None:
    config = _project(tmp_path, [{"id": "a", "name": "Alpha", "category": "News", "link": "https://x"}])

    result = SiteAssembler(config).build()

    dist = config.output_dir
    assert "News" in (dist / "index.html").read_text(encoding="utf-8")
    assert "Alpha" in (dist / "category" / "News.html").read_text(encoding="utf-8")
    channel_html = (dist / "channel" / "a.html").read_text(encoding="utf-8")
    assert "Alpha" in channel_html
    assert "https://x" in channel_html

    assert json.loads((dist / "search-index.json").read_text(encoding="utf-8")) == [
        {
            "id": "a",
            "name": "Alpha",
            "description": "",
            "category": "News",
            "link": "https://x",
            "tags": [],
            "slug": "a",
        }
    ]
    assert (dist / "urls.txt").read_text(encoding="utf-8").splitlines() == [
        "/",
        "/category/News.html",
        "/channel/a.html",
    ]
    sitemap = (dist / "sitemap.xml").read_text(encoding="utf-8")
    assert sitemap.count("<url>") == 3
    assert "<loc>https://example.com/channel/a.html</loc>" in sitemap
    assert "Sitemap: https://example.com/sitemap.xml" in (dist / "robots.txt").read_text(encoding="utf-8")

    assert list(result.url_set) == ["/", "/category/News.html", "/channel/a.html"]
    assert result.page_count == 3
    assert [entry.slug for entry in result.entries] == ["a"]


def test_build_copies_static_files_flat(tmp_path: Path) -> None:
    config = _project(tmp_path, [])

    result = SiteAssembler(config).build()

    assert (config.output_dir / "style.css").read_text(encoding="utf-8") == "body { margin: 0; }\n"
    assert not (config.output_dir / "nested").exists()
    assert result.staging.total == 1


def test_build_empty_input_still_writes_index(tmp_path: Path) -> None:
    config = _project(tmp_path, [])

    result = SiteAssembler(config).build()

    assert (config.output_dir / "index.html").exists()
    assert list(result.url_set) == ["/"]
    assert json.loads((config.output_dir / "search-index.json").read_text(encoding="utf-8")) == []
    assert (config.output_dir / "sitemap.xml").read_text(encoding="utf-8").count("<url>") == 1


def test_build_groups_missing_category_under_default_label(tmp_path: Path) -> None:
    config = _project(tmp_path, [{"id": "a", "name": "Alpha", "link": "https://x"}])

    result = SiteAssembler(config).build()

    page = config.output_dir / "category" / "Uncategorized.html"
    assert page.exists()
    assert "Alpha" in page.read_text(encoding="utf-8")
    assert "/category/Uncategorized.html" in result.url_set
    index = json.loads((config.output_dir / "search-index.json").read_text(encoding="utf-8"))
    assert index[0]["category"] == ""


def test_build_url_set_matches_written_pages(tmp_path: Path) -> None:
    entries = [
        {"id": "a", "name": "Alpha", "category": "News", "link": "https://a"},
        {"id": "b", "name": "Beta", "category": "新闻", "link": "https://b"},
        {"id": "c", "name": "Gamma", "category": "News", "link": "https://c"},
    ]
    config = _project(tmp_path, entries, site=SiteConfig(base_url="https://channels.test/"))

    result = SiteAssembler(config).build()

    dist = config.output_dir
    assert list(result.url_set) == [
        "/",
        "/category/News.html",
        "/category/%E6%96%B0%E9%97%BB.html",
        "/channel/a.html",
        "/channel/b.html",
        "/channel/c.html",
    ]
    for path in result.url_set:
        target = dist / ("index.html" if path == "/" else unquote(path.lstrip("/")))
        assert target.exists(), path
    assert (dist / "category" / "新闻.html").exists()
    assert not (dist / "category" / "%E6%96%B0%E9%97%BB.html").exists()

    urls = (dist / "urls.txt").read_text(encoding="utf-8").splitlines()
    assert urls == [f"https://channels.test{path}" for path in result.url_set]
    sitemap = (dist / "sitemap.xml").read_text(encoding="utf-8")
    assert sitemap.count("<url>") == len(result.url_set)
    for path in result.url_set:
        assert f"<loc>https://channels.test{path}</loc>" in sitemap
    assert "Sitemap: https://channels.test/sitemap.xml" in (dist / "robots.txt").read_text(encoding="utf-8")


def test_build_writes_decoded_file_names_for_encoded_urls(tmp_path: Path) -> None:
    entries = [
        {"id": "a", "name": "Alpha", "category": "新闻", "link": "https://a"},
        {"id": "b c", "name": "Beta", "category": "Tech News", "link": "https://b"},
        {"id": "x/y", "name": "Slashed", "category": "A/B", "link": "https://c"},
    ]
    config = _project(tmp_path, entries)

    result = SiteAssembler(config).build()

    dist = config.output_dir
    assert "/category/Tech%20News.html" in result.url_set
    assert "/channel/b%20c.html" in result.url_set
    assert "/category/A_B.html" in result.url_set
    assert "/channel/x_y.html" in result.url_set
    for path in list(result.url_set)[1:]:
        assert (dist / unquote(path.lstrip("/"))).is_file(), path
    assert sorted(p.name for p in (dist / "category").iterdir()) == ["A_B.html", "Tech News.html", "新闻.html"]
    assert sorted(p.name for p in (dist / "channel").iterdir()) == ["a.html", "b c.html", "x_y.html"]

    home = (dist / "index.html").read_text(encoding="utf-8")
    assert 'href="./category/Tech%20News.html"' in home


def test_build_is_idempotent(tmp_path: Path) -> None:
    entries = [
        {"id": "a", "name": "Alpha", "category": "News", "link": "https://a", "tags": ["x"]},
        {"id": "b", "name": "Beta", "link": "https://b", "description": "Second"},
    ]
    config = _project(tmp_path, entries)

    SiteAssembler(config).build()
    first = _snapshot(config.output_dir)
    SiteAssembler(config).build()
    second = _snapshot(config.output_dir)

    assert first == second


def test_build_removes_stale_output(tmp_path: Path) -> None:
    config = _project(tmp_path, [])
    stale = config.output_dir / "channel" / "old.html"
    stale.parent.mkdir(parents=True)
    stale.write_text("old", encoding="utf-8")

    SiteAssembler(config).build()

    assert not stale.exists()


def test_build_does_not_modify_data_file(tmp_path: Path) -> None:
    config = _project(tmp_path, [{"id": "a", "name": "Alpha", "link": "https://x"}])
    before = config.data_file.read_bytes()

    SiteAssembler(config).build()

    assert config.data_file.read_bytes() == before


def test_build_accepts_injected_provider(tmp_path: Path) -> None:
    config = _project(tmp_path, [])
    entries = [Entry(id="z", name="Zed", link="https://z", category="Misc")]

    result = SiteAssembler(config, provider=lambda: entries).build()

    assert (config.output_dir / "channel" / "z.html").exists()
    assert entries[0].slug is None
    assert result.entries[0].slug == "z"


def test_build_rejects_duplicate_ids(tmp_path: Path) -> None:
    config = _project(
        tmp_path,
        [
            {"id": "a", "name": "Alpha", "link": "https://x"},
            {"id": "a", "name": "Alpha again", "link": "https://y"},
        ],
    )

    with pytest.raises(EntryValidationError):
        SiteAssembler(config).build()


def test_run_build_logs_failure_and_returns_none(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = _project(tmp_path, [])
    config.data_file.unlink()

    with caplog.at_level(logging.INFO):
        result = run_build(config)

    assert result is None
    failures = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(failures) == 1
    assert "Build failed" in failures[0].getMessage()
    assert failures[0].context["error"] == "DataSourceError"
    # Steps completed before the failure leave their output behind.
    assert (config.output_dir / "style.css").exists()


def test_run_build_logs_undecodable_data_file(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = _project(tmp_path, [])
    config.data_file.write_bytes(b'[{"id": "a", "name": "\xff", "link": "https://x"}]')

    with caplog.at_level(logging.INFO):
        result = run_build(config)

    assert result is None
    failures = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(failures) == 1
    assert failures[0].context["error"] == "DataSourceError"
    assert "UTF-8" in failures[0].context["detail"]


def test_run_build_logs_success_with_page_count(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    config = _project(tmp_path, [{"id": "a", "name": "Alpha", "category": "News", "link": "https://x"}])

    with caplog.at_level(logging.INFO):
        result = run_build(config)

    assert result is not None
    summary = [record for record in caplog.records if "Build complete" in record.getMessage()]
    assert summary and summary[0].context["pages"] == 3
