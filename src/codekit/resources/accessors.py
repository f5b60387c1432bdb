"""Cached resource accessors binding REST paths to the query cache."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar
from urllib.parse import urlencode

from ..api.client import ApiClient
from ..api.errors import CodeKitError
from ..cache.query_cache import CacheEntry, QueryCache, QueryStatus, make_key
from ..storage.local import ADMIN_TOKEN_KEY, LocalStorage
from .models import AffiliateStats, DashboardStats

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class QueryResult(Generic[T]):
    """Snapshot of a cached read."""

    data: Optional[T]
    error: Optional[Exception]
    status: QueryStatus

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    @classmethod
    def from_entry(cls, entry: CacheEntry, convert: Callable[[Any], T]) -> "QueryResult[T]":
        if entry.data is None:
            return cls(data=None, error=entry.error, status=entry.status)
        try:
            data = convert(entry.data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected payload shape: {e!r}")
            return cls(data=None, error=e, status=QueryStatus.ERROR)
        return cls(data=data, error=entry.error, status=entry.status)


class Resource(Generic[T]):
    """CRUD access to one REST collection.

    Reads go through the query cache and never raise; failures are reported
    on the returned `QueryResult`. Mutations raise and, once they succeed,
    invalidate every cache key under the collection's path.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: QueryCache,
        base_path: str,
        model: Callable[[dict[str, Any]], T],
    ):
        self.api = api
        self.cache = cache
        self.base_path = base_path.rstrip("/")
        self.model = model

    def item_path(self, item_id: str) -> str:
        return f"{self.base_path}/{item_id}"

    def _convert_list(self, raw: Any) -> list[T]:
        return [self.model(item) for item in raw or []]

    async def list(self, filters: dict[str, Any] | None = None) -> QueryResult[list[T]]:
        """Fetch the collection, serving fresh cached data when available."""
        key = make_key(self.base_path, filters)

        async def load() -> Any:
            url = self.base_path
            if filters:
                query = urlencode(sorted((k, v) for k, v in filters.items() if v is not None))
                url = f"{url}?{query}" if query else url
            return (await self.api.get(url)).data

        entry = await self.cache.fetch(key, load)
        return QueryResult.from_entry(entry, self._convert_list)

    async def get(self, item_id: str) -> QueryResult[T]:
        """Fetch a single item by id."""
        path = self.item_path(item_id)

        async def load() -> Any:
            return (await self.api.get(path)).data

        entry = await self.cache.fetch(path, load)
        return QueryResult.from_entry(entry, self.model)

    async def create(self, data: dict[str, Any]) -> T:
        response = await self.api.post(self.base_path, data)
        self.cache.invalidate(self.base_path)
        return self.model(response.data)

    async def update(self, item_id: str, data: dict[str, Any]) -> T:
        response = await self.api.put(self.item_path(item_id), data)
        self.cache.invalidate(self.base_path)
        return self.model(response.data)

    async def delete(self, item_id: str) -> str:
        await self.api.delete(self.item_path(item_id))
        self.cache.invalidate(self.base_path)
        return item_id


class AffiliateResource(Resource[T]):
    """Affiliates, plus click tracking and click statistics."""

    async def track_click(self, affiliate_id: str) -> None:
        await self.api.post(f"{self.item_path(affiliate_id)}/click", {})

    async def stats(self, affiliate_id: str = "all") -> QueryResult[AffiliateStats]:
        path = f"{self.base_path}/stats/{affiliate_id}"

        async def load() -> Any:
            return (await self.api.get(path)).data

        entry = await self.cache.fetch(path, load)
        return QueryResult.from_entry(entry, AffiliateStats.from_api)


class Analytics:
    """Page-view tracking."""

    BASE_PATH = "/api/analytics"

    def __init__(self, api: ApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def track_view(
        self,
        page: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"page": page}
        if entity_type:
            payload["entityType"] = entity_type
        if entity_id:
            payload["entityId"] = entity_id

        response = await self.api.post(f"{self.BASE_PATH}/view", payload)
        self.cache.invalidate(self.BASE_PATH)
        return response.data

    async def view_stats(self, days: int = 30) -> QueryResult[dict]:
        path = f"{self.BASE_PATH}/stats"
        key = make_key(path, {"days": days})

        async def load() -> Any:
            return (await self.api.get(f"{path}?days={days}")).data

        entry = await self.cache.fetch(key, load)
        return QueryResult.from_entry(entry, dict)


async def fetch_dashboard_stats(api: ApiClient, cache: QueryCache) -> DashboardStats:
    """Dashboard counts. Never raises; any failure yields zeros."""

    async def load() -> Any:
        return (await api.get("/api/stats")).data

    entry = await cache.fetch("/api/stats", load, stale_time=30.0)
    if entry.error is not None:
        logger.warning(f"Error fetching stats, using defaults: {entry.error}")
    if not isinstance(entry.data, dict):
        return DashboardStats()
    try:
        return DashboardStats.from_api(entry.data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed stats payload, using defaults: {e}")
        return DashboardStats()


class AdminAuth:
    """Admin session against `/api/auth/admin/*`, mirrored to local storage."""

    BASE_PATH = "/api/auth/admin"

    def __init__(self, api: ApiClient, storage: LocalStorage):
        self.api = api
        self.storage = storage

    @property
    def is_authenticated(self) -> bool:
        return self.storage.get_admin_session()

    async def check(self) -> bool:
        """Ask the backend whether the current session is an admin session."""
        try:
            response = await self.api.get(f"{self.BASE_PATH}/check")
        except CodeKitError as e:
            logger.warning(f"Admin check failed: {e}")
            self.storage.set_admin_session(False)
            return False
        authenticated = isinstance(response.data, dict) and bool(response.data.get("authenticated"))
        self.storage.set_admin_session(authenticated)
        return authenticated

    async def login(self, password: str) -> bool:
        """Log in; a rejected password or unreachable backend returns False."""
        try:
            response = await self.api.post(f"{self.BASE_PATH}/login", {"password": password})
        except CodeKitError as e:
            logger.warning(f"Admin login failed: {e}")
            return False

        data = response.data if isinstance(response.data, dict) else {}
        authenticated = bool(data.get("authenticated"))
        self.storage.set_admin_session(authenticated)
        token = data.get("token")
        if authenticated and token:
            self.storage.set_admin_token(token)
            self.api.api_token = token
        return authenticated

    async def logout(self) -> None:
        """Log out. Local state is cleared even if the backend call fails."""
        try:
            await self.api.post(f"{self.BASE_PATH}/logout", {})
        except CodeKitError as e:
            logger.warning(f"Admin logout failed, clearing local session anyway: {e}")
        finally:
            self.storage.set_admin_session(False)
            self.storage.remove(ADMIN_TOKEN_KEY)
