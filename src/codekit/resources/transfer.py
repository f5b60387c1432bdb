"""Export and import of the prompt, snippet, link and guide collections."""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from ..api.errors import CodeKitError, ImportFormatError
from .models import Guide, Prompt, Snippet

if TYPE_CHECKING:
    from ..client import CodeKitClient

logger = logging.getLogger(__name__)

EXPORT_VERSION = "2.0"

COLLECTIONS = ("prompts", "snippets", "links", "guides")

# Field compared (case-insensitively) to detect an already existing item
DUPLICATE_FIELDS = {
    "prompts": "title",
    "snippets": "title",
    "links": "url",
    "guides": "title",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_api(item: Any) -> dict[str, Any]:
    """Model instance as the backend's camelCase document, without empty fields."""
    return {_camel(k): v for k, v in asdict(item).items() if v is not None}


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    failed: list[str] = field(default_factory=list)


async def export_data(client: "CodeKitClient") -> dict[str, Any]:
    """Snapshot every collection. Raises the first load error."""
    results = await asyncio.gather(*(client.resource(name).list() for name in COLLECTIONS))
    data: dict[str, Any] = {}
    for name, result in zip(COLLECTIONS, results):
        if result.error is not None:
            raise result.error
        data[name] = [to_api(item) for item in result.data or []]
    data["exportedAt"] = datetime.now(timezone.utc).isoformat()
    data["version"] = EXPORT_VERSION
    return data


def item_to_markdown(item: Prompt | Snippet | Guide) -> str:
    lines = [f"# {item.title}", ""]

    description = getattr(item, "description", "")
    if description:
        lines += [description, ""]
    if isinstance(item, Prompt):
        lines += ["## Content", "", item.content, ""]
    if isinstance(item, Snippet):
        lines += ["## Code", "", f"```{item.language}", item.code, "```", ""]
    if item.tags:
        lines += ["## Tags", ""] + [f"- {tag}" for tag in item.tags] + [""]
    if item.created_at:
        lines += ["---", "", f"*Created {item.created_at[:10]}*", ""]

    return "\n".join(lines)


def export_markdown(data: dict[str, Any]) -> str:
    """Markdown document for an export produced by `export_data`."""
    models = {"prompts": Prompt, "snippets": Snippet, "guides": Guide}
    sections = []
    for name, model in models.items():
        for raw in data.get(name, []):
            sections.append(item_to_markdown(model.from_api(raw)))
    return "\n".join(sections)


def parse_import(text: str) -> dict[str, Any]:
    """Parse an export file; it must hold at least one collection array."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ImportFormatError(f"Invalid JSON file: {e}") from e

    if not isinstance(data, dict) or not any(isinstance(data.get(name), list) for name in COLLECTIONS):
        raise ImportFormatError("Invalid file format: no prompts, snippets, links or guides")
    return data


def _key(item: Any, name: str) -> Optional[str]:
    value = item.get(DUPLICATE_FIELDS[name]) if isinstance(item, dict) else None
    return value.lower() if isinstance(value, str) else None


async def import_data(
    client: "CodeKitClient",
    data: dict[str, Any],
    skip_duplicates: bool = False,
) -> ImportSummary:
    """Create every item in `data`.

    With `skip_duplicates`, items matching an existing one by title (url for
    links) are skipped and ids are dropped so the backend assigns new ones.
    A failed create is recorded with the server's message and the import
    continues.
    """
    summary = ImportSummary()

    for name in COLLECTIONS:
        items = data.get(name)
        if not isinstance(items, list) or not items:
            continue
        resource = client.resource(name)

        existing: set[str] = set()
        if skip_duplicates:
            current = await resource.list()
            if current.error is not None:
                raise current.error
            existing = {
                k for k in (_key(to_api(item), name) for item in current.data or []) if k
            }

        for item in items:
            if not isinstance(item, dict):
                summary.failed.append(f"{name}: not an object")
                continue
            if skip_duplicates:
                if _key(item, name) in existing:
                    summary.skipped += 1
                    continue
                item = {k: v for k, v in item.items() if k != "id"}
            try:
                await resource.create(item)
            except CodeKitError as e:
                label = item.get(DUPLICATE_FIELDS[name]) or "?"
                logger.warning(f"Import of {name} item {label!r} failed: {e}")
                summary.failed.append(f"{name} {label!r}: {e}")
                continue
            summary.imported += 1
            if skip_duplicates and _key(item, name):
                existing.add(_key(item, name))

    return summary
