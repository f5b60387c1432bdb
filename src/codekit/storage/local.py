"""JSON-file key/value store for client-local state."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from ..api.errors import StorageError

logger = logging.getLogger(__name__)

FAVORITES_KEY = "codekit_favorites"
ADMIN_SESSION_KEY = "admin_authenticated"
ADMIN_TOKEN_KEY = "codekit_admin_token"
THEME_KEY = "codekit_theme"

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStorage:
    """One JSON document per key under a directory.

    Every operation absorbs filesystem and decoding failures: reads return
    the default, writes return False. The caller degrades to session-only
    behaviour.
    """

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def _path(self, key: str) -> Path:
        return self.root / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._path(key).read_text(encoding="utf-8")
            if not raw:
                return default
            return json.loads(raw)
        except FileNotFoundError:
            return default
        except (OSError, ValueError) as e:
            logger.debug(f"Storage read failed for {key}: {e}")
            return default

    def _write(self, key: str, value: Any) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path = self._path(key)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(value), encoding="utf-8")
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write {key}: {e}") from e

    def set(self, key: str, value: Any) -> bool:
        try:
            self._write(key, value)
            return True
        except StorageError as e:
            logger.debug(str(e))
            return False

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Storage remove failed for {key}: {e}")

    def clear(self) -> None:
        try:
            for path in self.root.glob("*.json"):
                path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Storage clear failed: {e}")

    def has(self, key: str) -> bool:
        try:
            return self._path(key).exists()
        except OSError:
            return False

    def get_admin_session(self) -> bool:
        return bool(self.get(ADMIN_SESSION_KEY, False))

    def set_admin_session(self, authenticated: bool) -> bool:
        return self.set(ADMIN_SESSION_KEY, authenticated)

    def get_theme(self) -> str | None:
        theme = self.get(THEME_KEY)
        return theme if isinstance(theme, str) else None

    def set_theme(self, theme: str) -> bool:
        return self.set(THEME_KEY, theme)

    def get_admin_token(self) -> str | None:
        token = self.get(ADMIN_TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_admin_token(self, token: str) -> bool:
        return self.set(ADMIN_TOKEN_KEY, token)
