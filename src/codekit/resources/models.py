"""Data models for CodeKit resources."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class FavoriteType(Enum):
    PROMPT = "prompt"
    SNIPPET = "snippet"
    LINK = "link"
    GUIDE = "guide"


def _tags(raw: Any) -> list[str]:
    if not raw:
        return []
    return [str(t) for t in raw]


@dataclass
class Prompt:
    """A reusable AI prompt."""

    id: str
    title: str
    content: str
    category: str
    tags: list[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Prompt":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            content=data.get("content", ""),
            category=data.get("category", ""),
            tags=_tags(data.get("tags")),
            created_at=data.get("createdAt") or data.get("created_at"),
        )


@dataclass
class Snippet:
    """A code snippet."""

    id: str
    title: str
    code: str
    language: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Snippet":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            code=data.get("code", ""),
            language=data.get("language", ""),
            description=data.get("description") or "",
            tags=_tags(data.get("tags")),
            created_at=data.get("createdAt") or data.get("created_at"),
        )


@dataclass
class Link:
    """A curated external link."""

    id: str
    title: str
    url: str
    description: str = ""
    category: str = ""
    icon: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Link":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            url=data.get("url", ""),
            description=data.get("description") or "",
            category=data.get("category", ""),
            icon=data.get("icon"),
        )


@dataclass
class Guide:
    """A visual guide or tutorial."""

    id: str
    title: str
    description: str = ""
    type: str = ""
    url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Guide":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            type=data.get("type", ""),
            url=data.get("url"),
            tags=_tags(data.get("tags")),
            created_at=data.get("createdAt") or data.get("created_at"),
        )


@dataclass
class Affiliate:
    """A third-party product with a tracked referral link."""

    id: str
    name: str
    url: str
    category: str = ""
    commission: Optional[str] = None
    code: Optional[str] = None
    utm: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Affiliate":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            url=data.get("url", ""),
            category=data.get("category", ""),
            commission=data.get("commission"),
            code=data.get("code"),
            utm=data.get("utm"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Favorite:
    """A favorited item, keyed by (type, id)."""

    type: FavoriteType
    id: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "id": self.id}


@dataclass
class DashboardStats:
    prompts: int = 0
    snippets: int = 0
    links: int = 0
    guides: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DashboardStats":
        return cls(
            prompts=int(data.get("prompts", 0)),
            snippets=int(data.get("snippets", 0)),
            links=int(data.get("links", 0)),
            guides=int(data.get("guides", 0)),
        )


@dataclass
class AffiliateStats:
    total_clicks: int = 0
    clicks_by_day: list[tuple[str, int]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AffiliateStats":
        return cls(
            total_clicks=int(data.get("totalClicks", 0)),
            clicks_by_day=[
                (d.get("date", ""), int(d.get("count", 0)))
                for d in data.get("clicksByDay") or []
            ],
        )
