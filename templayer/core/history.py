"""
Trace recorder for render passes.

Every resolution step (views, layouts, includes, requires, cache hits) is
appended as a TraceEntry with the indent depth at the time of the step. The
same recorder feeds the printed render history and the crash report.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import click


class Indent(Enum):
    # opening directives apply after the entry is appended, closing ones before.
    OPEN = ">"
    OPEN_TWO = ">>"
    CLOSE = "<"
    CLOSE_TWO = "<<"

    @property
    def delta(self) -> int:
        step = len(self.value)
        return step if self.value.startswith(">") else -step

    @property
    def opens(self) -> bool:
        return self.delta > 0

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["Indent"]:
        if not s:
            return None
        return cls(s)


@dataclass(frozen=True)
class TraceEntry:
    label: str
    value: Optional[str] = None
    depth: int = 0
    marker: Optional[Indent] = None


IndentArg = Union[Indent, str, None]


class TraceRecorder:
    INDENT_UNIT = "  "

    def __init__(self):
        self.entries: List[TraceEntry] = []
        self.paths: List[Path] = []
        self.depth = 0

    def reset(self) -> None:
        # clears in place so holders of this recorder keep a valid reference.
        self.entries.clear()
        self.paths.clear()
        self.depth = 0

    def _shift(self, directive: Indent) -> None:
        self.depth = max(0, self.depth + directive.delta)

    def indent(self, directive: IndentArg) -> None:
        directive = Indent.from_string(directive) if isinstance(directive, str) else directive
        if directive is not None:
            self._shift(directive)

    def push(self, label: str, value: Any = None, indent: IndentArg = None) -> TraceEntry:
        directive = Indent.from_string(indent) if isinstance(indent, str) else indent
        if directive is not None and not directive.opens:
            self._shift(directive)
        entry = TraceEntry(
            label=label,
            value=None if value is None or value is False else str(value),
            depth=self.depth,
            marker=directive,
        )
        self.entries.append(entry)
        if directive is not None and directive.opens:
            self._shift(directive)
        return entry

    def visit(self, label: str, path: Path, indent: IndentArg = None) -> TraceEntry:
        """Pushes an entry for a rendered file and records the file in `paths`."""
        self.paths.append(Path(path))
        return self.push(label, path, indent)

    def snapshot(self) -> Tuple[Path, ...]:
        return tuple(self.paths)

    def find(self, label: str) -> List[TraceEntry]:
        return [entry for entry in self.entries if entry.label == label]

    def print(self, color: bool = False) -> str:
        lines = []
        for entry in self.entries:
            label = entry.label
            if color:
                label = click.style(label, fg="green" if entry.label.startswith(">") else None)
            line = f"{self.INDENT_UNIT * entry.depth}{label}"
            if entry.value is not None:
                value = click.style(entry.value, fg="cyan") if color else entry.value
                line = f"{line} {value}"
            lines.append(line)
        return "\n".join(lines)
