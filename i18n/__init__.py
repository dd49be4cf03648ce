"""Translation catalogs for user-facing wound analysis text.

Usage: from i18n import t; t("key", name=value)
"""

import json
import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Optional

logger = logging.getLogger("woundscan.i18n")

LANGUAGES = OrderedDict([
    ("en", {"name": "English", "native_name": "English"}),
    ("es", {"name": "Spanish", "native_name": "Español"}),
])

_translations: dict = {}
_fallback: dict = {}
_current_lang: str = "en"
_initialized = False
_lock = threading.Lock()


def _get_i18n_dir() -> Path:
    """Get the directory containing translation JSON files."""
    import sys
    if getattr(sys, "frozen", False):
        return Path(sys._MEIPASS) / "i18n"
    return Path(__file__).parent


def _load_json(lang_code: str) -> dict:
    """Load a translation JSON file."""
    path = _get_i18n_dir() / f"{lang_code}.json"
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not load translations %s: %s", path, e)
        return {}


def init(lang: Optional[str] = None):
    """Load catalogs for `lang` (default: WOUNDSCAN_LANG, then English)."""
    global _translations, _fallback, _current_lang, _initialized
    from core import constants

    code = lang or constants.DEFAULT_LANGUAGE
    if code not in LANGUAGES:
        logger.warning("Unsupported language %r, using English", code)
        code = "en"

    with _lock:
        _current_lang = code
        _fallback = _load_json("en")
        _translations = _load_json(code) if code != "en" else _fallback
        _initialized = True


def t(key: str, **kwargs) -> str:
    """Translate a key with optional format arguments.

    Falls back: current language -> English -> raw key.
    """
    if not _initialized:
        init()
    text = _translations.get(key) or _fallback.get(key) or key
    if kwargs:
        try:
            return text.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return text
    return text


def get_current_language() -> str:
    """Get the current language code."""
    return _current_lang
