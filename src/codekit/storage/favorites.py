"""Favorites, mirrored to local storage on every change."""

import logging
from typing import Any

from ..resources.models import Favorite, FavoriteType
from .local import FAVORITES_KEY, LocalStorage

logger = logging.getLogger(__name__)


def _parse(raw: Any) -> list[Favorite]:
    if not isinstance(raw, list):
        return []
    favorites: list[Favorite] = []
    for entry in raw:
        try:
            fav = Favorite(FavoriteType(entry["type"]), str(entry["id"]))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping malformed favorite: {entry!r}")
            continue
        if fav not in favorites:
            favorites.append(fav)
    return favorites


class Favorites:
    """Ordered set of (type, id) favorites."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._items = _parse(storage.get(FAVORITES_KEY, []))

    def _save(self) -> None:
        self.storage.set(FAVORITES_KEY, [f.to_dict() for f in self._items])

    @property
    def items(self) -> list[Favorite]:
        return list(self._items)

    def is_favorite(self, type: FavoriteType, item_id: str) -> bool:
        return Favorite(type, item_id) in self._items

    def add(self, type: FavoriteType, item_id: str) -> None:
        fav = Favorite(type, item_id)
        if fav in self._items:
            return
        self._items.append(fav)
        self._save()

    def remove(self, type: FavoriteType, item_id: str) -> None:
        fav = Favorite(type, item_id)
        if fav not in self._items:
            return
        self._items.remove(fav)
        self._save()

    def toggle(self, type: FavoriteType, item_id: str) -> bool:
        """Flip membership; return True if the item is now a favorite."""
        if self.is_favorite(type, item_id):
            self.remove(type, item_id)
            return False
        self.add(type, item_id)
        return True

    def by_type(self, type: FavoriteType) -> list[str]:
        return [f.id for f in self._items if f.type == type]

    def clear(self) -> None:
        self._items = []
        self._save()
