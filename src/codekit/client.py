"""Application-scoped client wiring the API, cache, resources and storage."""

import asyncio
import logging

from .api.client import ApiClient
from .cache.query_cache import QueryCache
from .config import Config
from .resources.accessors import (
    AdminAuth,
    AffiliateResource,
    Analytics,
    Resource,
    fetch_dashboard_stats,
)
from .resources.models import Affiliate, DashboardStats, Guide, Link, Prompt, Snippet
from .resources.search import SearchResult, search_all
from .storage.favorites import Favorites
from .storage.local import LocalStorage

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "connect.sid"


class CodeKitClient:
    """Owns the query cache; every resource shares it by reference."""

    def __init__(self, config: Config, api: ApiClient | None = None):
        self.config = config
        self.storage = LocalStorage(config.storage_path)
        cookies = {SESSION_COOKIE_NAME: config.session_cookie} if config.session_cookie else None
        self.api = api or ApiClient(
            base_url=config.api_base_url,
            timeout_seconds=config.request_timeout_seconds,
            api_token=config.api_token or self.storage.get_admin_token(),
            cookies=cookies,
        )
        self.cache = QueryCache(stale_time=config.stale_time_seconds)
        self.favorites = Favorites(self.storage)

        self.prompts: Resource[Prompt] = Resource(self.api, self.cache, "/api/prompts", Prompt.from_api)
        self.snippets: Resource[Snippet] = Resource(self.api, self.cache, "/api/snippets", Snippet.from_api)
        self.links: Resource[Link] = Resource(self.api, self.cache, "/api/links", Link.from_api)
        self.guides: Resource[Guide] = Resource(self.api, self.cache, "/api/guides", Guide.from_api)
        self.affiliates: AffiliateResource[Affiliate] = AffiliateResource(
            self.api, self.cache, "/api/affiliates", Affiliate.from_api
        )
        self.analytics = Analytics(self.api, self.cache)
        self.auth = AdminAuth(self.api, self.storage)

    def resource(self, name: str) -> Resource:
        resources = {
            "prompts": self.prompts,
            "snippets": self.snippets,
            "links": self.links,
            "guides": self.guides,
            "affiliates": self.affiliates,
        }
        try:
            return resources[name]
        except KeyError:
            raise ValueError(f"Unknown resource: {name}") from None

    async def dashboard_stats(self) -> DashboardStats:
        return await fetch_dashboard_stats(self.api, self.cache)

    async def search(self, query: str, limit: int = 20) -> list[SearchResult]:
        """Search every collection; collections that fail to load count as empty."""
        prompts, snippets, links, guides = await asyncio.gather(
            self.prompts.list(),
            self.snippets.list(),
            self.links.list(),
            self.guides.list(),
        )
        return search_all(
            query,
            prompts.data or [],
            snippets.data or [],
            links.data or [],
            guides.data or [],
            limit=limit,
        )
