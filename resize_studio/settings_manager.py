from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from PySide6.QtGui import QColor

from .logger import get_logger

_logger = get_logger("settings")

API_URL_ENV = "RESIZE_STUDIO_API_URL"


def default_settings_path() -> str:
    return str(Path.home() / ".resize_studio" / "settings.json")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "api_url": "http://localhost:5000/api",
        "debounce_ms": 500,
        "background_color": "#FFFFFF",
        "adopt_source_dimensions": False,
        "export_dir": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path), exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def set(self, key: str, value: Any) -> None:
        if key == "export_dir" and isinstance(value, str) and value:
            p = Path(value).expanduser().resolve()
            # A file path selects its containing folder.
            value = str(p.parent if p.is_file() else p)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def api_url(self) -> str:
        env = (os.getenv(API_URL_ENV) or "").strip()
        url = env or str(self.get("api_url") or self.DEFAULTS["api_url"])
        return url.rstrip("/")

    @property
    def debounce_ms(self) -> int:
        try:
            value = int(self.get("debounce_ms"))
        except (TypeError, ValueError):
            _logger.warning("debounce_ms invalid: %r", self.get("debounce_ms"))
            return int(self.DEFAULTS["debounce_ms"])
        return max(0, value)

    @property
    def adopt_source_dimensions(self) -> bool:
        return bool(self.get("adopt_source_dimensions", False))

    @property
    def export_dir(self) -> str | None:
        val = self.get("export_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None

    def determine_background_color(self) -> str:
        """Return the saved default fill color as #RRGGBB, falling back to white."""
        hexcol = self.get("background_color")
        if isinstance(hexcol, str):
            color = QColor(hexcol)
            if color.isValid():
                return color.name().upper()
            _logger.warning("saved background_color invalid: %s", hexcol)
        return str(self.DEFAULTS["background_color"])
