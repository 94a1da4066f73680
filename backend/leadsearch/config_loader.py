# backend/leadsearch/config_loader.py
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from collections.abc import Mapping
from typing import Any, Optional

log = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR = REPO_ROOT / "config"
CONFIG_PATH = Path(os.getenv("LEADSEARCH_CONFIG", CONFIG_DIR / "appconfig.json"))

_DEFAULT_LOCALE = "en_US"
_GLOBAL_SEARCH_LIMIT_KEY = "global_search_limit"
_GLOBAL_SEARCH_LIMIT_DEFAULT = 5
_TABLE_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")


def _read_json_file(path: Path) -> dict:
    """Read JSON from disk, returning an empty mapping on failure."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        log.debug("No config file at %s; using defaults", path)
        return {}
    except Exception:
        log.warning("Could not read %s; falling back to defaults", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        log.warning("%s does not hold a JSON object; falling back to defaults", path)
        return {}
    return data


def load_app_config(path: Optional[Path] = None) -> dict:
    """Return the raw JSON configuration for the application."""
    return _read_json_file(Path(path) if path else CONFIG_PATH)


def _coerce_positive_number(value: Any, fallback: int) -> int:
    """Convert unknown input into a positive integer."""
    try:
        numeric = float(value)
    except Exception:
        return int(fallback)
    if numeric <= 0:
        return int(fallback)
    return int(numeric)


def get_locale(cfg: Optional[Mapping[str, Any]] = None) -> str:
    """Return the active locale, e.g. ``en_US``."""
    if cfg is None:
        cfg = load_app_config()
    raw = cfg.get("locale") if isinstance(cfg, Mapping) else None
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return _DEFAULT_LOCALE


def get_table_prefix(cfg: Optional[Mapping[str, Any]] = None) -> str:
    """Return the table name prefix; anything but ``[A-Za-z0-9_]`` is rejected."""
    if cfg is None:
        cfg = load_app_config()
    raw = cfg.get("table_prefix") if isinstance(cfg, Mapping) else None
    if raw is None:
        return ""
    prefix = str(raw).strip()
    if not _TABLE_PREFIX_PATTERN.match(prefix):
        log.warning("Ignoring invalid table_prefix %r in %s", prefix, CONFIG_PATH)
        return ""
    return prefix


def get_search_command_translations(cfg: Optional[Mapping[str, Any]] = None) -> dict[str, dict[str, str]]:
    """Return ``{locale: {translation_key: label}}`` for search command labels."""
    if cfg is None:
        cfg = load_app_config()
    raw = cfg.get("search_command_translations") if isinstance(cfg, Mapping) else None
    catalogs: dict[str, dict[str, str]] = {}
    if not isinstance(raw, Mapping):
        return catalogs
    for locale, entries in raw.items():
        if not isinstance(entries, Mapping):
            log.warning("Translations for locale %r are not an object; skipping", locale)
            continue
        catalogs[str(locale)] = {
            str(key): str(label) for key, label in entries.items() if isinstance(label, str) and label.strip()
        }
    return catalogs


def get_global_search_limit(cfg: Optional[Mapping[str, Any]] = None) -> int:
    """Number of leads the global search summary returns."""
    if cfg is None:
        cfg = load_app_config()
    candidate = cfg.get(_GLOBAL_SEARCH_LIMIT_KEY) if isinstance(cfg, Mapping) else None
    return _coerce_positive_number(candidate, _GLOBAL_SEARCH_LIMIT_DEFAULT)


def initialize_app_config(app: Any, cfg: Optional[Mapping[str, Any]] = None) -> dict:
    """Populate a Flask app instance with values derived from appconfig.json."""
    if cfg is None:
        cfg = load_app_config()
    if isinstance(cfg, Mapping):
        app.config.update(cfg)
    app.config["LOCALE"] = get_locale(cfg)
    app.config["TABLE_PREFIX"] = get_table_prefix(cfg)
    app.config["GLOBAL_SEARCH_LIMIT"] = get_global_search_limit(cfg)
    return dict(cfg or {})
