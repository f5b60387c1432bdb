"""CLI entry point."""

import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable

import click

from .affiliates.links import build_affiliate_url
from .api.errors import APIError, CodeKitError
from .client import CodeKitClient
from .config import Config
from .listing.filters import FilterOptions, ListFilter, field_value
from .listing.pagination import Paginator
from .resources.models import FavoriteType
from .resources.transfer import COLLECTIONS, export_data, export_markdown, import_data, parse_import

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Default sort field per resource
SORT_DEFAULTS = {
    "prompts": "createdAt",
    "snippets": "createdAt",
    "guides": "createdAt",
    "links": "title",
    "affiliates": "name",
}


def list_options(func: Callable) -> Callable:
    """Shared filter/sort/page options for the list commands."""
    options = [
        click.option("--config", "-c", default="config.yaml", help="Config file path"),
        click.option("--search", "-s", default="", help="Free-text search"),
        click.option("--category", default=None, help="Category filter"),
        click.option("--tag", default=None, help="Tag filter"),
        click.option("--language", default=None, help="Language filter (snippets)"),
        click.option("--sort", "sort_by", default=None, help="Sort field"),
        click.option("--order", type=click.Choice(["asc", "desc"]), default="desc"),
        click.option("--page", "-p", default=1, type=int, help="Page number"),
        click.option("--page-size", "-n", default=None, type=int, help="Items per page"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def handle_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except APIError as e:
            raise click.ClickException(f"{e.message} (HTTP {e.status})") from e
        except CodeKitError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def build_filter(
    resource: str,
    search: str,
    category: str | None,
    tag: str | None,
    language: str | None,
    sort_by: str | None,
    order: str,
) -> ListFilter:
    options = FilterOptions(
        search_term=search,
        category=category,
        get_category=lambda item: field_value(item, "category"),
        tag=tag,
        get_tags=lambda item: field_value(item, "tags") or [],
        language=language,
        get_language=lambda item: field_value(item, "language"),
    )
    return ListFilter(options, sort_by=sort_by or SORT_DEFAULTS[resource], sort_order=order)  # type: ignore[arg-type]


def _describe(item: Any) -> str:
    title = field_value(item, "title") or field_value(item, "name") or item.id
    extra = field_value(item, "category") or field_value(item, "language") or ""
    return f"{title} [{extra}]" if extra else title


def run_list(resource: str, config: str, page: int, page_size: int | None, **filters: Any) -> None:
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    result = asyncio.run(client.resource(resource).list())

    if result.error is not None:
        raise click.ClickException(f"Failed to load {resource}: {result.error}")

    list_filter = build_filter(resource, **filters)
    items = list_filter.apply(result.data or [])
    paginator = Paginator(page_size=page_size or cfg.page_size)
    paginator.set_total_items(len(items))
    paginator.go_to_page(page)
    page_items = paginator.paginate(items)

    if not page_items:
        click.echo(f"No {resource} found.")
        return

    state = paginator.state
    click.echo(
        f"{resource.capitalize()} {state.start_index + 1}-{state.end_index} of "
        f"{list_filter.filtered_count} (page {state.current_page}/{state.total_pages}):\n"
    )
    for item in page_items:
        click.echo(f"  {item.id}  {_describe(item)}")
        url = field_value(item, "url")
        if url:
            click.echo(f"      {url}")


@click.group()
def cli() -> None:
    """CodeKit - prompts, snippets, links and guides from the command line."""
    pass


@cli.command()
@list_options
@handle_errors
def prompts(config: str, page: int, page_size: int | None, **filters: Any) -> None:
    """List prompts."""
    run_list("prompts", config, page, page_size, **filters)


@cli.command()
@list_options
@handle_errors
def snippets(config: str, page: int, page_size: int | None, **filters: Any) -> None:
    """List code snippets."""
    run_list("snippets", config, page, page_size, **filters)


@cli.command()
@list_options
@handle_errors
def links(config: str, page: int, page_size: int | None, **filters: Any) -> None:
    """List curated links."""
    run_list("links", config, page, page_size, **filters)


@cli.command()
@list_options
@handle_errors
def guides(config: str, page: int, page_size: int | None, **filters: Any) -> None:
    """List guides."""
    run_list("guides", config, page, page_size, **filters)


@cli.command()
@list_options
@handle_errors
def affiliates(config: str, page: int, page_size: int | None, **filters: Any) -> None:
    """List affiliate programs."""
    run_list("affiliates", config, page, page_size, **filters)


@cli.command()
@click.argument("item_type", type=click.Choice([t.value for t in FavoriteType]))
@click.argument("item_id")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def favorite(item_type: str, item_id: str, config: str) -> None:
    """Toggle a favorite."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    added = client.favorites.toggle(FavoriteType(item_type), item_id)
    click.echo(f"{'Added' if added else 'Removed'} {item_type} {item_id}")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def favorites(config: str) -> None:
    """List favorites."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    items = client.favorites.items

    if not items:
        click.echo("No favorites yet.")
        return

    click.echo("Favorites:\n")
    for fav in items:
        click.echo(f"  {fav.type.value}: {fav.id}")


@cli.command("affiliate-url")
@click.argument("affiliate_id")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--medium", default="app", help="utm_medium value")
@click.option("--campaign", default="affiliate", help="utm_campaign value")
@handle_errors
def affiliate_url(affiliate_id: str, config: str, medium: str, campaign: str) -> None:
    """Print the tracked outbound URL for an affiliate."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    result = asyncio.run(client.affiliates.get(affiliate_id))

    if result.error is not None or result.data is None:
        raise click.ClickException(f"Affiliate {affiliate_id} not found: {result.error}")

    click.echo(build_affiliate_url(result.data, cfg.utm_source, medium, campaign))


@cli.command("track-click")
@click.argument("affiliate_id")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@handle_errors
def track_click(affiliate_id: str, config: str) -> None:
    """Record a click on an affiliate link."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    asyncio.run(client.affiliates.track_click(affiliate_id))
    click.echo(f"Click recorded for {affiliate_id}")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def stats(config: str) -> None:
    """Show dashboard statistics."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    s = asyncio.run(client.dashboard_stats())

    click.echo("Dashboard Statistics:")
    click.echo(f"  Prompts:   {s.prompts}")
    click.echo(f"  Snippets:  {s.snippets}")
    click.echo(f"  Links:     {s.links}")
    click.echo(f"  Guides:    {s.guides}")


@cli.command()
@click.argument("query")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--limit", "-n", default=20, help="Max results")
def search(query: str, config: str, limit: int) -> None:
    """Search prompts, snippets, links, guides, tools and pages."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    results = asyncio.run(client.search(query, limit=limit))

    if not results:
        click.echo("No results found.")
        return

    click.echo(f"Found {len(results)} results:\n")
    for r in results:
        click.echo(f"[{r.type}] {r.title}")
        click.echo(f"  {r.href}")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.password_option("--password", confirmation_prompt=False, help="Admin password")
def login(config: str, password: str) -> None:
    """Log in as admin."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    if not asyncio.run(client.auth.login(password)):
        raise click.ClickException("Login failed")
    click.echo("Logged in as admin")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def logout(config: str) -> None:
    """Log out of the admin session."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    asyncio.run(client.auth.logout())
    click.echo("Logged out")


@cli.command("admin-status")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
def admin_status(config: str) -> None:
    """Check whether the stored session is an admin session."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    authenticated = asyncio.run(client.auth.check())
    click.echo("Admin session active" if authenticated else "Not logged in")


@cli.command()
@click.argument("resource", type=click.Choice(["prompts", "snippets", "links", "guides", "affiliates"]))
@click.argument("item_id")
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.confirmation_option(prompt="Delete this item?")
@handle_errors
def delete(resource: str, item_id: str, config: str) -> None:
    """Delete an item (admin)."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    asyncio.run(client.resource(resource).delete(item_id))
    click.echo(f"Deleted {resource} {item_id}")


@cli.command("export")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--format", "fmt", type=click.Choice(["json", "markdown"]), default="json")
@handle_errors
def export_cmd(output: str, config: str, fmt: str) -> None:
    """Export prompts, snippets, links and guides to a file."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    data = asyncio.run(export_data(client))

    text = json.dumps(data, indent=2, ensure_ascii=False) if fmt == "json" else export_markdown(data)
    Path(output).write_text(text, encoding="utf-8")

    counts = ", ".join(f"{len(data[name])} {name}" for name in COLLECTIONS)
    click.echo(f"Exported {counts} to {output}")


@cli.command("import")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--skip-duplicates", is_flag=True, help="Skip items that already exist")
@handle_errors
def import_cmd(input_file: str, config: str, skip_duplicates: bool) -> None:
    """Import items from a JSON export (admin)."""
    cfg = Config.from_yaml(config)
    client = CodeKitClient(cfg)
    data = parse_import(Path(input_file).read_text(encoding="utf-8"))
    summary = asyncio.run(import_data(client, data, skip_duplicates=skip_duplicates))

    click.echo(f"Imported {summary.imported} items, skipped {summary.skipped}")
    for failure in summary.failed:
        click.echo(f"  Failed: {failure}", err=True)
    if summary.failed:
        raise click.ClickException(f"{len(summary.failed)} items could not be imported")


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--host", default="127.0.0.1", help="Host to bind")
@click.option("--port", "-p", default=5001, type=int, help="Port to bind")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def web(config: str, host: str, port: int, debug: bool) -> None:
    """Start the web interface."""
    from .web.app import create_app

    app = create_app(config)
    click.echo(f"Starting web interface at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
