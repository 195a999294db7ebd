"""Client session state.

The Streamlit session is the primary store. A JSON file under the user's home
directory is read only when the primary store is empty (e.g. after a page
reload), and both are cleared on sign-out.
"""

from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SESSION_KEY = "meetact_session"
DEFAULT_CACHE_PATH = Path.home() / ".meetact" / "session.json"


@dataclass
class SessionState:
    access_token: str | None = None
    user_id: str | None = None
    email: str | None = None
    cache_path: Path = field(default=DEFAULT_CACHE_PATH, repr=False, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def _fields(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("cache_path")
        return data

    @classmethod
    def load(
        cls,
        primary: MutableMapping[str, Any],
        cache_path: Path = DEFAULT_CACHE_PATH,
    ) -> SessionState:
        data = primary.get(SESSION_KEY)
        if not data:
            data = _read_cache(cache_path)
            if data:
                primary[SESSION_KEY] = data
        if not isinstance(data, dict):
            return cls(cache_path=cache_path)
        return cls(
            access_token=data.get("access_token"),
            user_id=data.get("user_id"),
            email=data.get("email"),
            cache_path=cache_path,
        )

    def save(self, primary: MutableMapping[str, Any]) -> None:
        primary[SESSION_KEY] = self._fields()
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(self._fields()), encoding="utf-8")
        except OSError:
            logger.warning("Could not write session cache %s", self.cache_path, exc_info=True)

    def clear(self, primary: MutableMapping[str, Any]) -> None:
        primary.pop(SESSION_KEY, None)
        self.access_token = self.user_id = self.email = None
        self.cache_path.unlink(missing_ok=True)


def _read_cache(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable session cache %s", path)
        return None
    return data if isinstance(data, dict) and data.get("access_token") else None
