"""Flask route handlers."""

import logging

from flask import Blueprint, abort, current_app, redirect, render_template, request, url_for

from ..affiliates.links import build_affiliate_url, find_affiliate, find_matching_affiliates
from ..api.errors import CodeKitError
from ..listing.filters import FilterOptions, ListFilter, field_value
from ..listing.pagination import Paginator
from ..resources.models import FavoriteType
from ..routing.viewport import DeviceState, Viewport

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__)

VIEWPORT_HEADERS = ("Sec-CH-Viewport-Width", "Viewport-Width")

SORT_DEFAULTS = {
    "prompts": "createdAt",
    "snippets": "createdAt",
    "guides": "createdAt",
    "links": "title",
    "affiliates": "name",
}

FAVORITE_TYPES = {
    "prompts": FavoriteType.PROMPT,
    "snippets": FavoriteType.SNIPPET,
    "links": FavoriteType.LINK,
    "guides": FavoriteType.GUIDE,
}


def get_client():
    """Get the application-scoped CodeKit client."""
    return current_app.config["CODEKIT"]


def get_router():
    return current_app.config["ROUTER"]


def current_viewport() -> Viewport:
    """Viewport from client hints or the `vw` query parameter."""
    viewport = Viewport(breakpoint=current_app.config["APP_CONFIG"].mobile_breakpoint)
    candidates = [request.headers.get(h) for h in VIEWPORT_HEADERS]
    candidates.append(request.args.get("vw"))
    for raw in candidates:
        if not raw:
            continue
        try:
            viewport.update(int(float(raw)))
            break
        except (ValueError, OverflowError):
            continue
    return viewport


async def track_page_view() -> None:
    """Record a view of the current page. Failures are logged, never raised."""
    if current_viewport().state == DeviceState.UNRESOLVED:
        return
    try:
        await get_client().analytics.track_view(request.path)
    except CodeKitError as e:
        logger.warning(f"View tracking failed for {request.path}: {e}")


def render_page(route: str, **context) -> str:
    viewport = current_viewport()
    context.setdefault("device", viewport.state.value)
    return get_router().render(route, viewport, context)


@bp.route("/")
async def index():
    """Dashboard with stats and recent prompts."""
    client = get_client()
    stats = await client.dashboard_stats()
    recent = await client.prompts.list()
    affiliates = await client.affiliates.list()
    await track_page_view()

    prompts = ListFilter(sort_by="createdAt").apply(recent.data or [])[:5]

    return render_page(
        "dashboard",
        stats=stats,
        recent=prompts,
        affiliates=affiliates.data or [],
        error=recent.error,
    )


@bp.route("/<any(prompts, snippets, links, guides, affiliates):resource>")
async def resource_list(resource: str):
    """Browse a collection with search, filters, sorting and pagination."""
    client = get_client()
    result = await client.resource(resource).list()
    await track_page_view()

    query = request.args.get("q", "").strip()
    category = request.args.get("category") or None
    tag = request.args.get("tag") or None
    language = request.args.get("language") or None
    sort = request.args.get("sort") or SORT_DEFAULTS[resource]
    order = request.args.get("order", "desc")
    if order not in ("asc", "desc"):
        order = "desc"
    page = request.args.get("page", 1, type=int)

    list_filter = ListFilter(
        FilterOptions(
            search_term=query,
            category=category,
            get_category=lambda item: field_value(item, "category"),
            tag=tag,
            get_tags=lambda item: field_value(item, "tags") or [],
            language=language,
            get_language=lambda item: field_value(item, "language"),
        ),
        sort_by=sort,
        sort_order=order,
    )
    items = list_filter.apply(result.data or [])

    paginator = Paginator(page_size=current_app.config["APP_CONFIG"].page_size)
    paginator.set_total_items(len(items))
    paginator.go_to_page(page)

    categories = sorted({c for c in (field_value(i, "category") for i in result.data or []) if c})
    fav_type = FAVORITE_TYPES.get(resource)
    favorites = set(client.favorites.by_type(fav_type)) if fav_type else set()

    affiliates = []
    if resource != "affiliates":
        affiliates = (await client.affiliates.list()).data or []
    page_items = paginator.paginate(items)
    page_text = " ".join(
        str(field_value(i, f) or "") for i in page_items for f in ("title", "description", "content")
    )

    return render_page(
        resource,
        resource=resource,
        items=page_items,
        pagination=paginator.state,
        filtered_count=list_filter.filtered_count,
        total_count=list_filter.total_count,
        query=query,
        category=category,
        tag=tag,
        sort=sort,
        order=order,
        categories=categories,
        favorites=favorites,
        affiliates=affiliates,
        recommended=find_matching_affiliates(page_text, affiliates),
        error=result.error,
    )


@bp.route("/search")
async def search():
    """Search across every collection."""
    query = request.args.get("q", "").strip()
    results = await get_client().search(query) if query else []
    await track_page_view()
    return render_page("search", query=query, results=results)


@bp.route("/favorites/<item_type>/<item_id>", methods=["POST"])
def toggle_favorite(item_type: str, item_id: str):
    """Toggle a favorite and return to the referring page."""
    try:
        fav_type = FavoriteType(item_type)
    except ValueError:
        abort(404)
    get_client().favorites.toggle(fav_type, item_id)
    return redirect(request.referrer or url_for("main.index"))


@bp.route("/go/<affiliate_id>")
async def go(affiliate_id: str):
    """Record a click and redirect to the tracked affiliate URL."""
    client = get_client()
    result = await client.affiliates.list()
    affiliate = find_affiliate(result.data or [], affiliate_id)
    if affiliate is None:
        if result.error is not None:
            raise result.error
        abort(404)

    try:
        await client.affiliates.track_click(affiliate.id)
    except CodeKitError as e:
        logger.warning(f"Click tracking failed for {affiliate.id}: {e}")

    cfg = current_app.config["APP_CONFIG"]
    return redirect(build_affiliate_url(affiliate, source=cfg.utm_source))


@bp.route("/embed/affiliate/<id_or_slug>")
async def embed_affiliate(id_or_slug: str):
    """Self-contained promotional card for embedding on other sites."""
    result = await get_client().affiliates.list()
    affiliate = find_affiliate(result.data or [], id_or_slug)
    if affiliate is None:
        abort(404)
    return render_template("embed_card.html", affiliate=affiliate)
