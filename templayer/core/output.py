from pathlib import Path
from typing import Iterable, List
import structlog

from templayer.core.source_file import SourceFile
from templayer.exceptions import OutputError

log = structlog.get_logger(__name__)

def write_output_file(out_dir: Path, source_file: SourceFile) -> Path:
    # writes one rendered file under out_dir, keeping its path relative to its base.
    target = Path(out_dir) / source_file.relative
    log.info("writing_output_to_file", path=str(target))
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(source_file.contents)
    except (OSError, TypeError) as e:
        raise OutputError(f"failed to write to file '{target}': {e}") from e
    return target

def write_output_files(out_dir: Path, files: Iterable[SourceFile]) -> List[Path]:
    return [write_output_file(out_dir, source_file) for source_file in files]
