# templayer/cli/interface.py
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import click
from click_option_group import optgroup
from rich.console import Console as RichConsole
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
import structlog
import logging as stdlib_logging

from templayer import __version__ as app_version
from templayer.config.loader import load_options
from templayer.config.settings import DEFAULT_EXTNAME, DEFAULT_TEMPLATE_EXT
from templayer.core.environment import RenderEnvironment
from templayer.core.output import write_output_file
from templayer.core.pipeline import TemplayerPipeline, discover_sources
from templayer.exceptions import TemplateError, TemplayerError
from templayer.logging_setup import configure_logging

log = structlog.get_logger(__name__)

# cli-only keys that never reach the render options
CLI_ONLY_KEYS = ("exclude", "out_dir")


def _parse_vars(pairs: Tuple[str, ...]) -> Dict[str, str]:
    parsed = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--var")
        key, value = pair.split("=", 1)
        parsed[key.strip()] = value
    return parsed


def build_options(ctx: click.Context, cli_params: Dict[str, Any]) -> Dict[str, Any]:
    """Layers CLI flags over options loaded from the project config file."""
    options = load_options(cli_params.get("config_file"), cli_params.get("config_profile"))

    for key in ("root", "layouts", "partials", "widgets", "requires", "extname", "template_ext", "out_dir"):
        if ctx.get_parameter_source(key) == click.core.ParameterSource.COMMANDLINE or key not in options:
            value = cli_params.get(key)
            if value is not None:
                options[key] = value

    for flag in ("show_history",):
        if ctx.get_parameter_source(flag) == click.core.ParameterSource.COMMANDLINE:
            options[flag] = cli_params[flag]

    if cli_params.get("compile_debug"):
        engine = dict(options.get("engine") or {})
        engine["compile_debug"] = True
        options["engine"] = engine

    if cli_params.get("user_vars"):
        merged = dict(options.get("locals") or {})
        merged.update(_parse_vars(cli_params["user_vars"]))
        options["locals"] = merged

    exclude = list(options.get("exclude") or [])
    exclude.extend(cli_params.get("exclude_patterns") or ())
    options["exclude"] = exclude
    return options


def _run_render_flow(sources: List[Path], options: Dict[str, Any], prevent_crash: bool) -> int:
    out_dir = Path(options.pop("out_dir", None) or "dist")
    exclude = options.pop("exclude", [])

    environment = RenderEnvironment()
    pipeline = TemplayerPipeline(options, environment)
    plugin_options = pipeline.configuration.options

    inputs = sources or [plugin_options.root]
    files = discover_sources(
        inputs,
        plugin_options.template_ext,
        skip_dirs=[plugin_options.layouts, plugin_options.partials, plugin_options.widgets],
        exclude_patterns=exclude,
    )
    if not files:
        click.echo("Info: No templates found to render.", err=True)
        return 0

    app_log_level = stdlib_logging.getLogger("templayer").getEffectiveLevel()
    progress_disabled = app_log_level > stdlib_logging.INFO or not sys.stderr.isatty()
    stderr_console = RichConsole(file=sys.stderr)

    written = 0
    with Progress(
        SpinnerColumn(), TextColumn("[bold blue]{task.description}"), BarColumn(),
        transient=True, disable=progress_disabled, console=stderr_console
    ) as progress:
        render_task = progress.add_task("rendering templates...", total=len(files))
        on_error = pipeline.prevent_crash if prevent_crash else None
        for rendered in pipeline.process(files, on_error=on_error):
            write_output_file(out_dir, rendered)
            written += 1
            progress.update(render_task, advance=1, description=f"rendered {rendered.path.name}")

    for source_file, error in pipeline.errors:
        _echo_render_error(error)

    click.echo(f"Info: {written} file(s) written to {out_dir}", err=True)
    return 1 if pipeline.errors else 0


def _echo_render_error(error: TemplayerError) -> None:
    if isinstance(error, TemplateError) and error.report:
        click.secho(error.report, fg="red", err=True)
    else:
        click.secho(f"Error: {error}", fg="red", err=True)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("sources", nargs=-1, type=click.Path(exists=True, path_type=Path))
@optgroup.group("Template Locations", help="Where layouts, partials, widgets and required files live.")
@optgroup.option("--root", "root", type=click.Path(file_okay=False, path_type=Path), default=None, help="Base directory for the folders below. Default: current directory.")
@optgroup.option("--layouts", "layouts", default="layouts", show_default=True, help="Layouts folder, relative to --root.")
@optgroup.option("--partials", "partials", default="partials", show_default=True, help="Partials folder used by include(), relative to --root.")
@optgroup.option("--widgets", "widgets", default="widgets", show_default=True, help="Widgets folder, relative to --root.")
@optgroup.option("--requires", "requires", default="requires", show_default=True, help="Folder used by require(), relative to --root.")
@optgroup.option("--template-ext", "template_ext", default=DEFAULT_TEMPLATE_EXT, show_default=True, help="Suffix of template files.")
@optgroup.option("-x", "--exclude", "exclude_patterns", multiple=True, help="Gitignore-style patterns of templates not to render.")
@optgroup.group("Output Options", help="Where and how rendered files are written.")
@optgroup.option("-o", "--out-dir", "out_dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Output directory. Default: ./dist")
@optgroup.option("--extname", "extname", default=DEFAULT_EXTNAME, show_default=True, help="Suffix of rendered files.")
@optgroup.option("--var", "user_vars", multiple=True, metavar="KEY=VALUE", help="Extra locals available to every template.")
@optgroup.group("Diagnostics", help="Render history and error reporting.")
@optgroup.option("--show-history/--no-show-history", "show_history", default=False, help="Print the render history of every file.")
@optgroup.option("--compile-debug", "compile_debug", is_flag=True, default=False, help="Always render in diagnostic mode.")
@optgroup.option("--prevent-crash", "prevent_crash", is_flag=True, default=False, help="Keep rendering other files after an error.")
@optgroup.group("Application Behavior", help="Configuration files, profiles and logging.")
@optgroup.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="Explicit config file (default: templayer.toml, .templayer.toml or pyproject.toml).")
@optgroup.option("--config-profile", "config_profile", default=None, help="Load a profile from the config file.")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="templayer", prog_name="templayer", help="Show version and exit.")
@click.pass_context
def main_cli(ctx: click.Context, sources: Tuple[Path, ...], **cli_params: Any):
    """templayer: render Handlebars templates through layouts, blocks,
    partials and widgets into static files."""

    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs_cli", False))

    log.debug("cli_command_invoked", sources=[str(s) for s in sources], params=cli_params)

    try:
        options = build_options(ctx, cli_params)
        exit_code = _run_render_flow(list(sources), options, cli_params.get("prevent_crash", False))
    except TemplayerError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        _echo_render_error(e)
        sys.exit(1)
    except click.ClickException as e:
        log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
        e.show(); sys.exit(e.exit_code)
    sys.exit(exit_code)
