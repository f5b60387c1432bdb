"""Detection and one-shot recovery of failed page-variant imports."""

import importlib
import logging
import re
import sys
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

RELOAD_COOLDOWN_SECONDS = 5.0

CHUNK_ERROR_PATTERNS = (
    "failed to fetch dynamically imported module",
    "loading chunk",
    "chunkloaderror",
    "failed to load",
    "importing a module script failed",
    "no module named",
    "cannot import name",
    "missing default export",
    "invalid module",
)

_CHUNK_NAME = re.compile(r"(?:chunk|module|file|named)\s+'?([^\s']+)'?", re.IGNORECASE)


@dataclass
class ChunkErrorInfo:
    is_chunk_error: bool
    chunk_name: Optional[str] = None
    should_reload: bool = False


def classify_error(error: BaseException | None) -> ChunkErrorInfo:
    """Decide whether `error` means a page variant could not be loaded."""
    if error is None:
        return ChunkErrorInfo(is_chunk_error=False)

    message = str(error)
    is_chunk = isinstance(error, ImportError) or any(
        pattern in message.lower() for pattern in CHUNK_ERROR_PATTERNS
    )
    if not is_chunk:
        return ChunkErrorInfo(is_chunk_error=False)

    chunk_name = getattr(error, "name", None)
    if not chunk_name:
        match = _CHUNK_NAME.search(message)
        chunk_name = match.group(1) if match else None

    return ChunkErrorInfo(is_chunk_error=True, chunk_name=chunk_name, should_reload=True)


def is_chunk_load_error(error: BaseException | None) -> bool:
    return classify_error(error).is_chunk_error


class ReloadGuard:
    """Allows at most one reload per cooldown window."""

    def __init__(
        self,
        cooldown: float = RELOAD_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown = cooldown
        self._clock = clock
        self._last_attempt: float | None = None

    @property
    def in_cooldown(self) -> bool:
        if self._last_attempt is None:
            return False
        if self._clock() - self._last_attempt > self.cooldown:
            self._last_attempt = None
            return False
        return True

    def try_acquire(self) -> bool:
        """Mark a reload attempt; False if one happened within the cooldown."""
        if self.in_cooldown:
            return False
        self._last_attempt = self._clock()
        return True


def reload_module(module_name: str) -> None:
    """Drop cached import state so the next import reads the module afresh."""
    importlib.invalidate_caches()
    for name in [m for m in sys.modules if m == module_name or m.startswith(module_name + ".")]:
        del sys.modules[name]
    logger.warning(f"Reloading page module {module_name}")
