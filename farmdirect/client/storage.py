"""JSON-file key/value store standing in for browser local storage."""
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "authToken"
USER_KEY = "user"
DARK_MODE_KEY = "darkMode"
LANGUAGE_KEY = "language"


class LocalStorage:
    """Persistent preferences and session data, written through on every change."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, Any] = {}
        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable local storage file", extra={"path": path, "error": str(e)})
                self._data = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def _flush(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
