import pytest
from pathlib import Path

from templayer.core.environment import RenderEnvironment


@pytest.fixture
def environment() -> RenderEnvironment:
    return RenderEnvironment()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Creates a small template tree: pages, layouts, partials, widgets, requires."""
    for folder in ("pages", "layouts", "partials", "widgets", "requires"):
        (tmp_path / folder).mkdir()
    (tmp_path / "layouts" / "main.hbs").write_text(
        "<html><title>{{block \"title\"}}</title><main>{{{body}}}</main></html>"
    )
    (tmp_path / "partials" / "nav.hbs").write_text("<nav>{{view_name}}</nav>")
    (tmp_path / "widgets" / "card.hbs").write_text("<div class=\"card\">{{label}}</div>")
    (tmp_path / "requires" / "intro.md").write_text("# Intro\n\nSome *text*.\n")
    (tmp_path / "requires" / "site.json").write_text('{"name": "Demo"}')
    return tmp_path


@pytest.fixture
def site_options(site: Path) -> dict:
    return {"root": site}
