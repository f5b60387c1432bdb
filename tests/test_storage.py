import pytest

from codekit.api.errors import StorageError
from codekit.resources.models import Favorite, FavoriteType
from codekit.storage.favorites import Favorites
from codekit.storage.local import FAVORITES_KEY, LocalStorage


def test_values_round_trip_through_files(tmp_path):
    storage = LocalStorage(tmp_path)

    assert storage.set("codekit_theme", "dark")
    assert storage.get("codekit_theme") == "dark"
    assert storage.has("codekit_theme")

    storage.remove("codekit_theme")
    assert storage.get("codekit_theme", "light") == "light"


def test_corrupt_document_reads_as_default(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    assert LocalStorage(tmp_path).get("broken", []) == []


def test_unwritable_storage_is_absorbed(tmp_path):
    blocker = tmp_path / "occupied"
    blocker.write_text("a file, not a directory")
    storage = LocalStorage(blocker)

    assert storage.set("key", {"a": 1}) is False
    assert storage.get("key", "fallback") == "fallback"
    storage.remove("key")
    storage.clear()


def test_admin_session_and_theme(tmp_path):
    storage = LocalStorage(tmp_path)

    assert storage.get_admin_session() is False
    storage.set_admin_session(True)
    storage.set_theme("dark")

    assert storage.get_admin_session() is True
    assert storage.get_theme() == "dark"


def test_toggle_twice_restores_favorites(tmp_path):
    favorites = Favorites(LocalStorage(tmp_path))
    favorites.add(FavoriteType.SNIPPET, "s1")
    before = set(favorites.items)

    assert favorites.toggle(FavoriteType.PROMPT, "p1") is True
    assert favorites.is_favorite(FavoriteType.PROMPT, "p1")
    assert favorites.toggle(FavoriteType.PROMPT, "p1") is False

    assert set(favorites.items) == before


def test_same_id_different_type_are_distinct(tmp_path):
    favorites = Favorites(LocalStorage(tmp_path))

    favorites.add(FavoriteType.PROMPT, "1")
    favorites.add(FavoriteType.LINK, "1")
    favorites.add(FavoriteType.LINK, "1")

    assert favorites.items == [Favorite(FavoriteType.PROMPT, "1"), Favorite(FavoriteType.LINK, "1")]
    assert favorites.by_type(FavoriteType.LINK) == ["1"]


def test_favorites_survive_restart(tmp_path):
    Favorites(LocalStorage(tmp_path)).add(FavoriteType.GUIDE, "g1")

    reloaded = Favorites(LocalStorage(tmp_path))

    assert reloaded.is_favorite(FavoriteType.GUIDE, "g1")


def test_malformed_stored_entries_are_skipped(tmp_path):
    storage = LocalStorage(tmp_path)
    storage.set(
        FAVORITES_KEY,
        [{"type": "prompt", "id": "1"}, {"type": "video", "id": "2"}, {"id": "3"}, "junk"],
    )

    assert Favorites(storage).items == [Favorite(FavoriteType.PROMPT, "1")]


def test_favorites_work_without_persistence(tmp_path):
    blocker = tmp_path / "occupied"
    blocker.write_text("")
    favorites = Favorites(LocalStorage(blocker))

    assert favorites.toggle(FavoriteType.PROMPT, "p1") is True
    assert favorites.is_favorite(FavoriteType.PROMPT, "p1")

    favorites.clear()
    assert favorites.items == []


def test_write_failure_raises_storage_error_internally(tmp_path):
    blocker = tmp_path / "occupied"
    blocker.write_text("")

    with pytest.raises(StorageError):
        LocalStorage(blocker)._write("key", 1)
