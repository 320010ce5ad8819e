# templayer/config/loader.py
"""
Handles loading and merging of render options from TOML files.
"""
import toml
from pathlib import Path
from typing import Dict, Any, Optional
import structlog

from templayer.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".templayer.toml", "templayer.toml", "pyproject.toml"]

# keys accepted in config files, mapped to raw option keys.
CONFIG_KEY_TO_OPTION_MAP: Dict[str, str] = {
    "root": "root",
    "layouts": "layouts",
    "partials": "partials",
    "widgets": "widgets",
    "requires": "requires",
    "extname": "extname",
    "template_ext": "template_ext",
    "show_history": "show_history",
    "locals": "locals",
    "vars": "locals",
    "engine": "engine",
    "exclude": "exclude",
    "out_dir": "out_dir",
}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file(): return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Could not read config file {file_path}: {e}") from e
    return data.get("tool", {}).get("templayer", {}) if file_path.name == "pyproject.toml" else data

def find_project_config(search_dir: Optional[Path] = None) -> Optional[Path]:
    search_dir = search_dir or Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = search_dir / filename
        if candidate.is_file():
            if filename == "pyproject.toml" and not _load_toml_file_data(candidate):
                continue
            return candidate
    return None

def load_options(config_file: Optional[Path] = None, profile: Optional[str] = None) -> Dict[str, Any]:
    """Returns raw options from a config file, with the named profile layered on top.

    Relative `root` values are resolved against the config file's directory.
    """
    source = config_file or find_project_config()
    if source is None:
        log.debug("no_configuration_files_loaded")
        if profile:
            raise ConfigError(f"Profile '{profile}' requested but no config file was found")
        return {}

    data = _load_toml_file_data(source)
    log.info("loading_project_local_config", path=str(source))
    profiles = data.pop("profiles", {})

    options: Dict[str, Any] = {}
    for toml_key, option_key in CONFIG_KEY_TO_OPTION_MAP.items():
        if toml_key in data:
            options[option_key] = data[toml_key]

    if profile:
        profile_values = profiles.get(profile) if isinstance(profiles, dict) else None
        if not profile_values:
            raise ConfigError(f"Profile '{profile}' not found in {source}")
        log.info("applying_profile_settings", profile=profile)
        for toml_key, option_key in CONFIG_KEY_TO_OPTION_MAP.items():
            if toml_key not in profile_values:
                continue
            value = profile_values[toml_key]
            if option_key in ("locals", "engine") and isinstance(value, dict):
                merged = dict(options.get(option_key) or {})
                merged.update(value)
                value = merged
            options[option_key] = value

    root = Path(options.get("root", "."))
    options["root"] = root if root.is_absolute() else (source.parent / root).resolve()
    return options
