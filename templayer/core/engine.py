# templayer/core/engine.py
"""
Layout composition engine.

A render pass renders the incoming file, then keeps rendering the layout it
requested (with the previous markup available as `body`) until a template
finishes without requesting one. On failure the failing link is rendered once
more in diagnostic mode to get a richer error report, then the error is raised.
"""
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
import structlog

from templayer.config.registry import Configuration
from templayer.core.blocks import clear_all_blocks
from templayer.core.context import RenderContext, RenderState, create_render_context
from templayer.core.crash import format_crash_report, re_render_log
from templayer.core.environment import RenderEnvironment
from templayer.core.history import Indent
from templayer.core.source_file import SourceFile, check_supported
from templayer.exceptions import RenderChainError, TemplateError, TemplateRuntimeError, TemplayerError

log = structlog.get_logger(__name__)


class LayoutEngine:
    def __init__(self, configuration: Configuration, environment: RenderEnvironment):
        self.configuration = configuration
        self.environment = environment
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}").bind(config=configuration.key)

    def new_context(self) -> RenderContext:
        return create_render_context(self.configuration, self.environment)

    def render(self, source_file: SourceFile, context: Optional[RenderContext] = None) -> SourceFile:
        """Renders `source_file` through its layout chain and rewrites it in place.

        A fresh RenderContext is allocated unless one is passed in; passing one
        lets callers inspect blocks and history after the pass.
        """
        check_supported(source_file)
        context = context or self.new_context()
        self._start(source_file, context)

        link = source_file.path
        markup = ""
        while context.state is RenderState.RENDERING:
            try:
                markup = self.environment.compiler.render_file(link, context.data, context.helpers, context.engine)
            except TemplateError as error:
                raise self._fail(error, link, source_file, context)

            layout = context.data.pop("layout", None)
            if layout is None:
                context.state = RenderState.FINALIZING
                continue

            layout = Path(layout)
            if layout in context.chain:
                context.state = RenderState.FAILED
                raise self._chain_error(
                    f"Layout cycle: '{layout}' is already part of the render chain", layout, source_file, context)
            context.data["body"] = markup
            context.history.visit("> render layout", layout, Indent.OPEN)
            context.chain.append(layout)
            link = layout

        for _ in context.chain[1:]:
            context.history.push("< layout rendered", indent=Indent.CLOSE)
        return self._finalize(markup, source_file, context)

    def _start(self, source_file: SourceFile, context: RenderContext) -> None:
        clear_all_blocks(context.blocks)
        history = context.history
        history.reset()
        history.push("Render history:")
        history.push("Start")
        history.visit("render view", source_file.path)
        context.chain[:] = [source_file.path]
        context.data.pop("layout", None)
        context.data.pop("body", None)
        context.data["view_name"] = source_file.stem
        context.data["view_path"] = str(source_file.path)
        context.state = RenderState.RENDERING
        self.log.info("render_pass_started", path=str(source_file.path))

    def _fail(self, error: TemplateError, link: Path, source_file: SourceFile, context: RenderContext) -> TemplateError:
        context.state = RenderState.FAILED
        is_top_level = link == source_file.path

        if not context.engine.compile_debug:
            if is_top_level:
                clear_all_blocks(context.blocks)
            error = self._diagnostic_render(error, link, context)
            if is_top_level:
                clear_all_blocks(context.blocks)
        context.data.pop("layout", None)

        if not is_top_level:
            chained = self._chain_error(str(error), link, source_file, context, details=error.details)
            chained.__cause__ = error
            return chained

        error.source_path = source_file.path
        self._report(error, context)
        return error

    def _diagnostic_render(self, error: TemplateError, link: Path, context: RenderContext) -> TemplateError:
        # one extra render in compile_debug mode, only to obtain a detailed report
        re_render_log(link, context.history)
        normal_engine = context.engine
        context.engine = replace(normal_engine, compile_debug=True)
        try:
            self.environment.compiler.render_file(link, context.data, context.helpers, context.engine)
        except TemplateError as detailed:
            return detailed
        finally:
            context.engine = normal_engine
        self.log.warning("diagnostic_rerender_did_not_fail", path=str(link), original_error=str(error))
        return error

    def _chain_error(self, message: str, failed_path: Path, source_file: SourceFile, context: RenderContext,
                     details: Optional[str] = None) -> RenderChainError:
        error = RenderChainError(message, source_path=source_file.path, failed_path=failed_path, details=details)
        self._report(error, context)
        return error

    def _report(self, error: TemplateError, context: RenderContext) -> None:
        error.rendered_paths = context.history.snapshot()
        error.report = format_crash_report(error, context.history)
        self.log.error("render_failed", path=str(error.source_path), failed_path=str(error.path),
                       error_type=type(error).__name__, message=str(error))

    def _finalize(self, markup: str, source_file: SourceFile, context: RenderContext) -> SourceFile:
        options = self.configuration.options
        if options.after_render is not None:
            post_markup = self._run_after_render(markup, source_file, context)
            if isinstance(post_markup, str):
                markup = post_markup

        context.history.push("Done!")
        if options.show_history:
            click.echo(context.history.print(color=True), err=True)

        source_file.contents = markup.encode("utf-8")
        source_file.extname = options.extname
        context.state = RenderState.DONE
        self.log.info("render_pass_finished", path=str(source_file.path), layouts=len(context.chain) - 1)
        return source_file

    def _run_after_render(self, markup: str, source_file: SourceFile, context: RenderContext):
        try:
            return self.configuration.options.after_render(markup, source_file, context.history.snapshot())
        except TemplayerError:
            context.state = RenderState.FAILED
            raise
        except Exception as e:
            context.state = RenderState.FAILED
            error = TemplateRuntimeError(f"after_render hook failed: {type(e).__name__}: {e}", path=source_file.path)
            self._report(error, context)
            raise error from e
