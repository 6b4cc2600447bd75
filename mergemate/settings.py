# mergemate/settings.py
"""
Persistent engine defaults.

Settings live in a JSON file in the platform's user config directory
(MERGEMATE_SETTINGS overrides the path). A missing or unreadable file
yields defaults; unknown keys are ignored.
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from appdirs import user_config_dir

from mergemate.formatting import DATE_FORMATS, NUMBER_FORMATS
from mergemate.models import RenderOptions


logger = logging.getLogger(__name__)

APP_NAME = "MergeMate"
APP_AUTHOR = "MergeMate"

SETTINGS_ENV = "MERGEMATE_SETTINGS"
LOG_LEVEL_ENV = "MERGEMATE_LOG_LEVEL"

# Settings schema version for future compatibility
SCHEMA_VERSION = 1


def default_settings_path() -> Path:
    override = os.environ.get(SETTINGS_ENV)
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME, APP_AUTHOR)) / "settings.json"


@dataclass
class Settings:
    date_format: str = "MM/DD/YYYY"
    number_format: str = "default"
    default_value: str = ""
    identity_key: str = "id"
    log_level: str = "WARNING"
    schema_version: int = SCHEMA_VERSION

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            default_value=self.default_value,
            date_format=self.date_format,
            number_format=self.number_format,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})

        # Normalise values a hand-edited file may have broken
        if settings.date_format not in DATE_FORMATS:
            logger.warning("Unknown date_format %r, using MM/DD/YYYY", settings.date_format)
            settings.date_format = "MM/DD/YYYY"
        if settings.number_format not in NUMBER_FORMATS:
            logger.warning("Unknown number_format %r, using default", settings.number_format)
            settings.number_format = "default"
        settings.default_value = str(settings.default_value or "")
        settings.identity_key = str(settings.identity_key or "id")
        settings.log_level = str(settings.log_level or "WARNING").upper()
        settings.schema_version = SCHEMA_VERSION
        return settings


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from disk, applying environment overrides."""
    p = Path(path) if path else default_settings_path()

    settings = Settings()
    if p.exists():
        try:
            with open(p, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                settings = Settings.from_dict(data)
            else:
                logger.warning("Ignoring settings file %s: not a JSON object", p)
        except (OSError, ValueError, TypeError) as e:
            # Fallback to defaults if file is corrupted
            logger.warning("Could not read settings file %s: %s", p, e)

    level = os.environ.get(LOG_LEVEL_ENV)
    if level:
        settings.log_level = level.upper()

    return settings


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """
    Atomically save settings as JSON.

    Writes to a temporary file in the same directory, then moves it over
    the destination so a crash mid-write never leaves a truncated file.
    """
    p = Path(path) if path else default_settings_path()
    parent = p.parent
    parent.mkdir(parents=True, exist_ok=True)

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(parent),
            prefix=p.name + ".",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(p))
    except Exception:
        if tmp_path and tmp_path.exists():
            tmp_path.unlink()
        raise

    logger.debug("Saved settings to %s", p)
    return p
