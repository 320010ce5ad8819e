"""
In-memory file objects flowing through the render pipeline.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from templayer.exceptions import UnsupportedFileKindError
from templayer.util import rewrite_extname


@dataclass
class SourceFile:
    path: Path
    base: Optional[Path] = None
    # bytes when buffered; None or a stream-like object is rejected by check_supported
    contents: Any = None

    def __post_init__(self):
        self.path = Path(self.path)
        self.base = Path(self.base) if self.base is not None else self.path.parent

    @classmethod
    def from_path(cls, path: Union[str, Path], base: Optional[Union[str, Path]] = None) -> "SourceFile":
        path = Path(path).resolve()
        contents = None if path.is_dir() else path.read_bytes()
        return cls(path=path, base=Path(base).resolve() if base is not None else None, contents=contents)

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def extname(self) -> str:
        return self.path.suffix

    @extname.setter
    def extname(self, value: str) -> None:
        self.path = rewrite_extname(self.path, value)

    @property
    def relative(self) -> Path:
        try:
            return self.path.relative_to(self.base)
        except ValueError:
            return Path(self.path.name)


def check_supported(source_file: SourceFile) -> None:
    """Raises UnsupportedFileKindError for files the engine cannot render."""
    if source_file.contents is None:
        raise UnsupportedFileKindError(f"{source_file.path} is null (no contents to render)")
    if not isinstance(source_file.contents, bytes):
        raise UnsupportedFileKindError(f"{source_file.path}: streams are not supported, buffer the contents first")
    if not source_file.contents.strip():
        raise UnsupportedFileKindError(f"{source_file.path} is empty")
