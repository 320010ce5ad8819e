"""End-to-end tests for the templayer command line."""
from pathlib import Path
from click.testing import CliRunner

from templayer.cli.interface import main_cli


def _make_site(root: Path) -> None:
    (root / "pages").mkdir()
    (root / "layouts").mkdir()
    (root / "layouts" / "main.hbs").write_text("<title>{{block \"title\"}}</title><main>{{{body}}}</main>")
    (root / "pages" / "index.hbs").write_text('{{block "title" "Home"}}{{setLayout "main"}}<p>{{greeting}}</p>')


class TestRenderCommand:
    def test_renders_pages_into_out_dir(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            root = Path(td)
            _make_site(root)

            result = runner.invoke(
                main_cli,
                ["pages", "-o", "dist", "--var", "greeting=hi"],
                catch_exceptions=False,
            )

            assert result.exit_code == 0
            html = (root / "dist" / "index.html").read_text()
            assert "<title>Home</title>" in html
            assert "<main><p>hi</p></main>" in html

    def test_whole_root_skips_layouts(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            root = Path(td)
            _make_site(root)

            result = runner.invoke(main_cli, ["-o", "out", "--extname", ".htm"], catch_exceptions=False)

            assert result.exit_code == 0
            assert (root / "out" / "pages" / "index.htm").is_file()
            assert not (root / "out" / "layouts").exists()

    def test_show_history(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            _make_site(Path(td))

            result = runner.invoke(main_cli, ["pages", "--show-history"], catch_exceptions=False)

            assert result.exit_code == 0
            assert "Render history:" in result.output
            assert "> render layout" in result.output

    def test_render_error_exits_with_report(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            root = Path(td)
            _make_site(root)
            (root / "pages" / "broken.hbs").write_text('{{require "notes.txt"}}')

            result = runner.invoke(main_cli, ["pages", "-o", "dist"], catch_exceptions=False)

            assert result.exit_code == 1
            assert "broken.hbs" in result.output
            assert "rendered paths:" in result.output

    def test_prevent_crash_keeps_rendering(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            root = Path(td)
            _make_site(root)
            (root / "pages" / "a_broken.hbs").write_text('{{require "notes.txt"}}')

            result = runner.invoke(main_cli, ["pages", "-o", "dist", "--prevent-crash"], catch_exceptions=False)

            assert result.exit_code == 1
            assert (root / "dist" / "index.html").is_file()
            assert "a_broken.hbs" in result.output

    def test_config_file_profile(self):
        runner = CliRunner()
        with runner.isolated_filesystem() as td:
            root = Path(td)
            _make_site(root)
            (root / "templayer.toml").write_text(
                'out_dir = "public"\n'
                '[locals]\n'
                'greeting = "from config"\n'
                '[profiles.prod]\n'
                'extname = ".xhtml"\n'
            )

            result = runner.invoke(main_cli, ["pages", "--config-profile", "prod"], catch_exceptions=False)

            assert result.exit_code == 0
            assert "<p>from config</p>" in (root / "public" / "index.xhtml").read_text()

    def test_version(self):
        result = CliRunner().invoke(main_cli, ["--version"])
        assert result.exit_code == 0
        assert "templayer" in result.output
