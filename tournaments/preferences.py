"""Small key-value file that remembers who the local user is."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

USER_ID_KEY = "debate-user-id"
USER_NAME_KEY = "debate-user-name"
USER_ROLE_KEY = "debate-user-role"
TOURNAMENT_ID_KEY = "debate-tournament-id"
TOURNAMENT_NAME_KEY = "debate-tournament-name"


class LocalPreferences:
    """JSON-file backed string preferences."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._values: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        """Forget everything, as on logout."""
        self._values = {}
        self._save()
