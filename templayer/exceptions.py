from pathlib import Path
from typing import Optional, Sequence


class TemplayerError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(TemplayerError):
    # errors related to configuration.
    pass

class UnsupportedFileKindError(TemplayerError):
    # input file cannot be rendered (null contents, streams, directories).
    pass

class OutputError(TemplayerError):
    # errors during output operations.
    pass

class LoaderError(TemplayerError):
    # errors raised by template resource loaders (require/include/widget).
    pass

class UnresolvedModuleError(LoaderError):
    pass

class WrongUsageError(LoaderError):
    pass

class UnsupportedExtensionError(LoaderError):
    pass


class TemplateError(TemplayerError):
    """Raised when a template fails to compile or render."""

    def __init__(self, message: str, path: Optional[Path] = None, details: Optional[str] = None):
        super().__init__(message)
        self.path = path
        # filled in by the compiler when running in diagnostic mode
        self.details = details
        # filled in by the engine once the crash report is formatted
        self.report: Optional[str] = None
        self.source_path: Optional[Path] = path
        self.rendered_paths: Sequence[Path] = ()

class TemplateCompileError(TemplateError):
    pass

class TemplateRuntimeError(TemplateError):
    pass

class RenderChainError(TemplateError):
    """A layout ancestor failed while rendering `source_path`."""

    def __init__(self, message: str, source_path: Path, failed_path: Path, details: Optional[str] = None):
        super().__init__(message, path=failed_path, details=details)
        self.source_path = source_path
        self.failed_path = failed_path
