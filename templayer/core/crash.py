"""
Crash reporting for failed render passes.
"""
from pathlib import Path

from templayer.core.history import TraceRecorder
from templayer.exceptions import RenderChainError, TemplateError

SEPARATOR = "-" * 60


def re_render_log(path: Path, history: TraceRecorder) -> None:
    history.push("! render failed, re-render for diagnostics", path)


def format_crash_report(error: TemplateError, history: TraceRecorder) -> str:
    """Builds the human-readable report printed before an error reaches the host pipeline."""
    lines = [SEPARATOR, f"{type(error).__name__}: {error}"]
    if error.source_path is not None:
        lines.append(f"file: {error.source_path}")
    if isinstance(error, RenderChainError):
        lines.append(f"failed layout: {error.failed_path}")
    elif error.path is not None and error.path != error.source_path:
        lines.append(f"failed template: {error.path}")

    paths = history.snapshot()
    if paths:
        lines.append("rendered paths:")
        lines.extend(f"  {index}. {path}" for index, path in enumerate(paths, start=1))

    if error.details:
        lines += ["", "details:", error.details]

    if history.entries:
        lines += ["", history.print()]
    lines.append(SEPARATOR)
    return "\n".join(lines)
