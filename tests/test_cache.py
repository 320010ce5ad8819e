"""Tests for the path-keyed content cache and the secondary load cache."""
from pathlib import Path

from templayer.core.cache import ContentCache, LoadCache


class TestContentCacheRead:
    def test_first_read_reports_changed_and_stores_entry(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()

        result = cache.read(target)

        assert result.changed is True
        assert result.content == "hello"
        assert target in cache

    def test_second_read_of_unchanged_file_is_a_hit(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()

        first = cache.read(target)
        second = cache.read(target)

        assert second.changed is False
        assert second.content == first.content
        assert second.fingerprint == first.fingerprint

    def test_modified_file_is_refreshed(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()
        cache.read(target)

        target.write_text("hello again")
        result = cache.read(target)

        assert result.changed is True
        assert result.content == "hello again"
        assert cache.get(target).content == "hello again"

    def test_same_size_rewrite_is_detected(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("aaaa")
        cache = ContentCache()
        cache.read(target)

        target.write_text("bbbb")

        assert cache.read(target).changed is True

    def test_no_cache_always_reads_and_stores_nothing(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()

        assert cache.read(target, no_cache=True).changed is True
        assert cache.read(target, no_cache=True).changed is True
        assert len(cache) == 0

    def test_bytes_mode_and_bom_stripping(self, tmp_path: Path):
        target = tmp_path / "data.json"
        target.write_bytes(b"\xef\xbb\xbf{}")
        cache = ContentCache()

        assert cache.read(target, encoding=None).content == b"\xef\xbb\xbf{}"
        cache.invalidate(target)
        assert cache.read(target).content == "{}"

    def test_text_read_after_bytes_read_returns_text(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()

        assert cache.read(target, encoding=None).content == b"hello"
        text = cache.read(target)

        assert text.content == "hello"
        assert cache.read(target).changed is False

    def test_bytes_read_after_text_read_returns_bytes(self, tmp_path: Path):
        target = tmp_path / "page.hbs"
        target.write_text("hello")
        cache = ContentCache()

        assert cache.read(target).content == "hello"
        raw = cache.read(target, encoding=None)

        assert raw.content == b"hello"
        assert cache.read(target, encoding=None).changed is False
        assert cache.get(target).encoding is None


class TestContentCacheStore:
    def test_store_replaces_content_and_keeps_fingerprint(self, tmp_path: Path):
        target = tmp_path / "intro.md"
        target.write_text("# Intro")
        cache = ContentCache()
        first = cache.read(target)

        cache.store(target, "<h1>Intro</h1>")
        second = cache.read(target)

        assert second.changed is False
        assert second.content == "<h1>Intro</h1>"
        assert cache.get(target).fingerprint == first.fingerprint


class TestLoadCache:
    def test_put_get_evict(self, tmp_path: Path):
        cache = LoadCache()
        path = tmp_path / "x.json"

        cache.put(path, {"a": 1})
        assert path in cache
        assert cache.get(path) == {"a": 1}
        assert cache.evict(path) is True
        assert cache.evict(path) is False
        assert path not in cache
