from __future__ import annotations
import os
import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"

DATA_DIR = Path(os.environ.get("LORRYBOOK_DATA_DIR") or (ROOT_DIR / "data"))
EXPORTS_DIR = Path(os.environ.get("LORRYBOOK_EXPORTS_DIR") or (ROOT_DIR / "exports"))
SETTINGS_JSON = DATA_DIR / "settings.json"


def load_settings(path: os.PathLike | str | None = None) -> Dict[str, Any]:
    """Lit data/settings.json ; renvoie {} si absent ou illisible."""
    p = Path(path) if path else SETTINGS_JSON
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Unreadable settings file %s (%s), using defaults", p, e)
        return {}
    return data if isinstance(data, dict) else {}


def company_info(settings: Dict[str, Any] | None = None) -> Dict[str, str]:
    s = settings if settings is not None else load_settings()
    company = s.get("company", {}) if isinstance(s.get("company"), dict) else {}
    return {
        "name": company.get("name", "Transport Company"),
        "address": company.get("address", ""),
        "gstin": company.get("gstin", ""),
        "phone": company.get("phone", ""),
        "email": company.get("email", ""),
    }
