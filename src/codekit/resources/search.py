"""Global search across cached resources and the static tool/page catalogue."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import Guide, Link, Prompt, Snippet

TOOLS: list[tuple[str, str, str]] = [
    ("readme", "Readme Generator", "/tools/readme"),
    ("meta", "Meta Tag Generator", "/tools/meta"),
    ("folders", "Folder Structures", "/tools/folders"),
    ("json", "JSON Schema", "/tools/json"),
    ("base64", "Image to Base64", "/tools/base64"),
    ("colors", "Palette Generator", "/tools/colors"),
    ("svg", "SVG Icons", "/tools/svg"),
    ("favicon", "Favicon Creator", "/tools/favicon"),
    ("license", "License Generator", "/tools/license"),
    ("gitignore", ".gitignore Builder", "/tools/gitignore"),
    ("json-formatter", "JSON Formatter", "/tools/json-formatter"),
    ("yaml-formatter", "YAML Formatter", "/tools/yaml-formatter"),
    ("regex", "Regex Tester", "/tools/regex"),
    ("uuid", "UUID Generator", "/tools/uuid"),
    ("jwt", "JWT Decoder", "/tools/jwt"),
    ("json-to-ts", "JSON to TypeScript", "/tools/json-to-ts"),
    ("api-tester", "API Tester", "/tools/api-tester"),
]

PAGES: list[tuple[str, str, str]] = [
    ("dashboard", "Dashboard", "/"),
    ("prompts", "Prompts", "/prompts"),
    ("snippets", "Snippets", "/snippets"),
    ("links", "Links", "/links"),
    ("guides", "Guides", "/guides"),
    ("affiliates", "Affiliates", "/affiliates"),
    ("tools", "Tools", "/tools"),
]


class ResultKind(Enum):
    PROMPT = "prompt"
    SNIPPET = "snippet"
    LINK = "link"
    GUIDE = "guide"
    TOOL = "tool"
    PAGE = "page"


RESULT_ICONS: dict[ResultKind, str] = {
    ResultKind.PROMPT: "💬",
    ResultKind.SNIPPET: "📄",
    ResultKind.LINK: "🔗",
    ResultKind.GUIDE: "📘",
    ResultKind.TOOL: "🛠",
    ResultKind.PAGE: "📍",
}

DEFAULT_ICON = "•"


def icon_for(kind: str) -> str:
    """Icon for a result type; unknown types get DEFAULT_ICON."""
    try:
        return RESULT_ICONS[ResultKind(kind)]
    except ValueError:
        return DEFAULT_ICON


@dataclass
class SearchResult:
    id: str
    type: str
    title: str
    href: str
    description: Optional[str] = None
    category: Optional[str] = None

    @property
    def icon(self) -> str:
        return icon_for(self.type)


def _matches(term: str, *fields: Optional[str]) -> bool:
    return any(term in (f or "").lower() for f in fields)


def search_all(
    query: str,
    prompts: list[Prompt],
    snippets: list[Snippet],
    links: list[Link],
    guides: list[Guide],
    limit: int = 20,
) -> list[SearchResult]:
    """Match `query` case-insensitively against every searchable source."""
    term = query.strip().lower()
    if not term:
        return []

    results: list[SearchResult] = []
    for p in prompts:
        if _matches(term, p.title, p.content, p.category, *p.tags):
            results.append(
                SearchResult(p.id, "prompt", p.title, f"/prompts?id={p.id}", p.content[:120], p.category)
            )
    for s in snippets:
        if _matches(term, s.title, s.description, s.language, *s.tags):
            results.append(
                SearchResult(s.id, "snippet", s.title, f"/snippets?id={s.id}", s.description, s.language)
            )
    for link in links:
        if _matches(term, link.title, link.description, link.url):
            results.append(
                SearchResult(link.id, "link", link.title, link.url, link.description, link.category)
            )
    for g in guides:
        if _matches(term, g.title, g.description, *g.tags):
            results.append(
                SearchResult(g.id, "guide", g.title, f"/guides?id={g.id}", g.description, g.type)
            )
    for tool_id, title, href in TOOLS:
        if _matches(term, title):
            results.append(SearchResult(tool_id, "tool", title, href))
    for page_id, title, href in PAGES:
        if _matches(term, title):
            results.append(SearchResult(page_id, "page", title, href))

    return results[:limit]
