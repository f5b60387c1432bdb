"""Viewport-width driven device state."""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

MOBILE_BREAKPOINT = 768


class DeviceState(Enum):
    UNRESOLVED = "unresolved"
    DESKTOP = "desktop"
    MOBILE = "mobile"


class Viewport:
    """Tracks whether the current viewport is mobile-sized.

    Starts UNRESOLVED until the first width is known. Listeners are called
    with (old, new) only when the state actually changes.
    """

    def __init__(self, breakpoint: int = MOBILE_BREAKPOINT, width: int | None = None):
        self.breakpoint = breakpoint
        self.width: int | None = None
        self.state = DeviceState.UNRESOLVED
        self._listeners: list[Callable[[DeviceState, DeviceState], None]] = []
        if width is not None:
            self.update(width)

    def subscribe(self, listener: Callable[[DeviceState, DeviceState], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def classify(self, width: int) -> DeviceState:
        return DeviceState.MOBILE if width < self.breakpoint else DeviceState.DESKTOP

    def update(self, width: int) -> DeviceState:
        self.width = width
        new_state = self.classify(width)
        if new_state != self.state:
            old_state = self.state
            self.state = new_state
            logger.debug(f"Viewport {width}px: {old_state.value} -> {new_state.value}")
            for listener in list(self._listeners):
                listener(old_state, new_state)
        return self.state

    @property
    def is_mobile(self) -> bool:
        return self.state == DeviceState.MOBILE
