"""Tests for the require() loader and its caching contract."""
import json
import os
import sys
import pytest
from pathlib import Path
from unittest.mock import patch

import markdown

from templayer.core.cache import ContentCache, LoadCache
from templayer.core.history import TraceRecorder
from templayer.core.loaders import RequireKind, RequireLoader, classify
from templayer.exceptions import (
    LoaderError, UnresolvedModuleError, UnsupportedExtensionError, WrongUsageError,
)


@pytest.fixture
def requires_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "requires"
    folder.mkdir()
    (folder / "intro.md").write_text("# Intro\n")
    (folder / "site.json").write_text(json.dumps({"name": "Demo"}))
    (folder / "menu.toml").write_text('items = ["home", "about"]\n')
    (folder / "settings.py").write_text("TITLE = 'Demo'\n_hidden = 1\n\ndef greet(name):\n    return 'hi ' + name\n")
    return folder


@pytest.fixture
def loader(requires_dir: Path) -> RequireLoader:
    return RequireLoader(requires_dir, ContentCache(), LoadCache(), TraceRecorder())


class TestClassify:
    @pytest.mark.parametrize("identifier, kind", [
        ("json", RequireKind.MODULE),
        ("data/site.json", RequireKind.JSON),
        ("menu.toml", RequireKind.TOML),
        ("settings.py", RequireKind.PYTHON),
        ("intro.md", RequireKind.MARKDOWN),
    ])
    def test_known_kinds(self, identifier: str, kind: RequireKind):
        assert classify(identifier, ".hbs") is kind

    def test_unknown_suffix_is_unsupported(self):
        with pytest.raises(UnsupportedExtensionError):
            classify("notes.txt", ".hbs")

    def test_dotted_module_path_is_a_module(self):
        assert classify("os.path", ".hbs") is RequireKind.MODULE
        assert classify("json.decoder", ".hbs") is RequireKind.MODULE

    def test_empty_identifier_is_wrong_usage(self):
        with pytest.raises(WrongUsageError):
            classify("", ".hbs")


class TestTemplateFilesAreRejected:
    @pytest.mark.parametrize("no_cache", [False, True])
    def test_template_suffix_is_wrong_usage(self, loader: RequireLoader, no_cache: bool):
        with pytest.raises(WrongUsageError):
            loader("partials/nav.hbs", no_cache)

    def test_rejected_even_when_file_exists_and_cache_is_warm(self, loader: RequireLoader, requires_dir: Path):
        (requires_dir / "nav.hbs").write_text("<nav></nav>")
        loader.content_cache.read(requires_dir / "nav.hbs")

        with pytest.raises(WrongUsageError):
            loader("nav.hbs")


class TestModules:
    def test_importable_module(self, loader: RequireLoader):
        assert loader("json") is json
        assert loader.history.find("module is cached")

    def test_dotted_module(self, loader: RequireLoader):
        assert loader("os.path") is os.path

    def test_unresolved_module(self, loader: RequireLoader):
        with pytest.raises(UnresolvedModuleError):
            loader("templayer_surely_missing_module")
        assert loader.history.depth == 0


class TestDataFiles:
    def test_json_is_parsed_and_cached(self, loader: RequireLoader, requires_dir: Path):
        first = loader("site.json")
        second = loader("site.json")

        assert first == {"name": "Demo"}
        assert second is first
        assert requires_dir / "site.json" in loader.load_cache

    def test_changed_json_is_reloaded(self, loader: RequireLoader, requires_dir: Path):
        loader("site.json")
        (requires_dir / "site.json").write_text(json.dumps({"name": "Changed"}))

        assert loader("site.json") == {"name": "Changed"}

    def test_no_cache_never_retains_a_load_cache_entry(self, loader: RequireLoader, requires_dir: Path):
        loader("site.json")
        assert requires_dir / "site.json" in loader.load_cache

        value = loader("site.json", no_cache=True)

        assert value == {"name": "Demo"}
        assert requires_dir / "site.json" not in loader.load_cache

    def test_toml(self, loader: RequireLoader):
        assert loader("menu.toml") == {"items": ["home", "about"]}

    def test_python_config_exposes_public_names(self, loader: RequireLoader):
        namespace = loader("settings.py")

        assert namespace["TITLE"] == "Demo"
        assert namespace["greet"]("you") == "hi you"
        assert "_hidden" not in namespace

    def test_python_config_is_loaded_as_an_unregistered_module(self, loader: RequireLoader, requires_dir: Path):
        (requires_dir / "where.py").write_text("SOURCE = __file__\nNAME = __name__\n")

        namespace = loader("where.py")

        assert namespace["SOURCE"] == str(requires_dir / "where.py")
        assert namespace["NAME"] not in sys.modules

    def test_invalid_json_is_a_loader_error(self, loader: RequireLoader, requires_dir: Path):
        (requires_dir / "broken.json").write_text("{nope")
        with pytest.raises(LoaderError):
            loader("broken.json")

    def test_missing_file(self, loader: RequireLoader):
        with pytest.raises(LoaderError):
            loader("absent.json")
        assert loader.history.depth == 0


class TestMarkdown:
    def test_second_require_reuses_rendered_html(self, loader: RequireLoader):
        with patch("templayer.core.loaders.require.markdown.markdown", wraps=markdown.markdown) as to_html:
            first = loader("intro.md")
            second = loader("intro.md")

        assert to_html.call_count == 1
        assert first == second
        assert "<h1>Intro</h1>" in second
        assert loader.history.find("get early rendered html content")

    def test_changed_markdown_is_rendered_again(self, loader: RequireLoader, requires_dir: Path):
        loader("intro.md")
        (requires_dir / "intro.md").write_text("# Changed\n")

        assert "<h1>Changed</h1>" in loader("intro.md")

    def test_no_cache_always_transforms(self, loader: RequireLoader):
        with patch("templayer.core.loaders.require.markdown.markdown", wraps=markdown.markdown) as to_html:
            loader("intro.md")
            loader("intro.md", no_cache=True)
            loader("intro.md", no_cache=True)

        assert to_html.call_count == 3


class TestTrace:
    def test_requiring_file_nests_and_closes(self, loader: RequireLoader, requires_dir: Path):
        loader("site.json")

        opening, status = loader.history.entries
        assert opening.label == "> requiring file"
        assert opening.value == str(requires_dir / "site.json")
        assert status.label == "file changed"
        assert status.depth == opening.depth + 1
        assert loader.history.depth == 0
