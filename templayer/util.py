from pathlib import Path
import structlog

log = structlog.get_logger(__name__)
utf8_bom = b"\xef\xbb\xbf"

def strip_utf8_bom(data: bytes) -> bytes:
    # removes the utf-8 byte order mark from byte data if present.
    if data.startswith(utf8_bom):
        return data[len(utf8_bom):]
    return data

def normalize_extname(extname: str) -> str:
    # ".html", "html" and "HTML" all become ".html"; empty stays empty.
    extname = (extname or "").strip()
    if not extname:
        return ""
    return extname if extname.startswith(".") else f".{extname}"

def rewrite_extname(path: Path, extname: str) -> Path:
    # swaps the final suffix of `path` for `extname`, or appends it when there is none.
    extname = normalize_extname(extname)
    if path.suffix:
        return path.with_suffix(extname)
    return path.with_name(path.name + extname)

def with_template_ext(name: str, template_ext: str) -> str:
    # appends the template extension unless the name already carries it.
    return name if name.endswith(template_ext) else f"{name}{template_ext}"

def as_flag(value) -> bool:
    # template arguments may arrive as literals or strings ("true", "1").
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)
