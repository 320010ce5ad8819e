"""
Path-keyed content cache shared by every resource-loading facility.

Freshness is decided by a sha256 fingerprint of the file bytes, so an entry
is only served when the file on disk still hashes to the stored value. Entries
are frozen and replaced whole; they are never mutated in place.
"""
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union
import hashlib
import structlog

from templayer.util import strip_utf8_bom

log = structlog.get_logger(__name__)

Content = Union[str, bytes]


@dataclass(frozen=True)
class CacheEntry:
    path: Path
    content: Content
    fingerprint: str
    # None for byte reads; a read in another mode refreshes the entry
    encoding: Optional[str] = "utf-8"


@dataclass(frozen=True)
class CacheRead:
    """Result of ContentCache.read: the content and whether it differs from the last read."""
    content: Content
    changed: bool
    fingerprint: str


def fingerprint_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ContentCache:
    def __init__(self):
        self._entries: Dict[Path, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._entries

    def get(self, path: Path) -> Optional[CacheEntry]:
        return self._entries.get(Path(path))

    def read(self, path: Path, no_cache: bool = False, encoding: Optional[str] = "utf-8") -> CacheRead:
        """Reads `path` and reports whether it changed since the last cached read.

        With `no_cache` the file is always read and reported as changed, and
        nothing is stored. `encoding=None` returns raw bytes; an entry cached in the
        other mode is not served and is replaced by this read.
        """
        path = Path(path)
        raw = path.read_bytes()
        fingerprint = fingerprint_bytes(raw)

        if no_cache:
            log.debug("content_cache_bypassed", path=str(path))
            return CacheRead(content=self._decode(raw, encoding), changed=True, fingerprint=fingerprint)

        entry = self._entries.get(path)
        if entry is not None and entry.fingerprint == fingerprint and entry.encoding == encoding:
            log.debug("content_cache_hit", path=str(path))
            return CacheRead(content=entry.content, changed=False, fingerprint=fingerprint)

        content = self._decode(raw, encoding)
        self._entries[path] = CacheEntry(path=path, content=content, fingerprint=fingerprint, encoding=encoding)
        log.debug("content_cache_refreshed", path=str(path), had_entry=entry is not None)
        return CacheRead(content=content, changed=True, fingerprint=fingerprint)

    def store(self, path: Path, content: Content) -> None:
        """Replaces the cached content for `path`, keeping its fingerprint.

        Used by loaders that cache a transformed form of the file (markdown
        rendered to html) so later hits skip the transform.
        """
        path = Path(path)
        entry = self._entries.get(path)
        if entry is None:
            raise KeyError(f"no cache entry for {path}")
        self._entries[path] = replace(entry, content=content)

    def invalidate(self, path: Path) -> None:
        self._entries.pop(Path(path), None)

    @staticmethod
    def _decode(raw: bytes, encoding: Optional[str]) -> Content:
        if encoding is None:
            return raw
        return strip_utf8_bom(raw).decode(encoding)


class LoadCache:
    # secondary cache of values produced from file content (parsed data, executed modules).
    def __init__(self):
        self._values: Dict[Path, Any] = {}

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._values

    def get(self, path: Path) -> Any:
        return self._values.get(Path(path))

    def put(self, path: Path, value: Any) -> None:
        self._values[Path(path)] = value

    def evict(self, path: Path) -> bool:
        return self._values.pop(Path(path), None) is not None
