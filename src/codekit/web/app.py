"""Flask application factory."""

import logging
from typing import Any

from flask import Flask, render_template
from markupsafe import Markup, escape

from ..affiliates.links import inject_affiliate_links
from ..api.errors import APIError, ChunkLoadError, NetworkError
from ..client import CodeKitClient
from ..config import Config
from ..routing.adaptive import PageRouter

logger = logging.getLogger(__name__)

LIST_ROUTES = ("prompts", "snippets", "links", "guides", "affiliates")


def viewport_placeholder(context: dict[str, Any]) -> str:
    """Rendered until the viewport width is known; asks the browser for it."""
    return render_template("loading.html")


def build_router() -> PageRouter:
    """Register the desktop and mobile variant of every page."""
    router = PageRouter(placeholder=viewport_placeholder)
    router.register("dashboard", "codekit.web.pages.desktop:dashboard")
    for name in LIST_ROUTES:
        router.register(
            name,
            "codekit.web.pages.desktop:resource_list",
            "codekit.web.pages.mobile:resource_list",
        )
    router.register(
        "search",
        "codekit.web.pages.desktop:search_results",
        "codekit.web.pages.mobile:search_results",
    )
    return router


def create_app(config_path: str = "config.yaml", client: CodeKitClient | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(
        __name__,
        template_folder="templates",
    )

    # Load config and build the application-scoped client
    cfg = client.config if client is not None else Config.from_yaml(config_path)
    app.config["APP_CONFIG"] = cfg
    app.config["CODEKIT"] = client or CodeKitClient(cfg)
    app.config["ROUTER"] = build_router()

    # Register routes
    from . import routes

    app.register_blueprint(routes.bp)

    @app.errorhandler(ChunkLoadError)
    def chunk_load_failed(error: ChunkLoadError):
        logger.error(f"Page failed to load after reload: {error}")
        return render_template("error.html", message="This page could not be loaded.", fatal=True), 500

    @app.errorhandler(APIError)
    def api_failed(error: APIError):
        status = error.status if 400 <= error.status < 600 else 502
        return render_template("error.html", message=error.message, fatal=False), status

    @app.errorhandler(NetworkError)
    def network_failed(error: NetworkError):
        return render_template("error.html", message=error.message, fatal=False), 503

    @app.after_request
    def request_viewport_hints(response):
        response.headers["Accept-CH"] = "Sec-CH-Viewport-Width, Viewport-Width"
        response.headers["Vary"] = "Sec-CH-Viewport-Width, Viewport-Width"
        return response

    # Register custom Jinja filters
    @app.template_filter("truncate_smart")
    def truncate_smart(text: str | None, length: int = 150) -> str:
        """Truncate text at word boundary."""
        if not text or len(text) <= length:
            return text or ""
        truncated = text[:length].rsplit(" ", 1)[0]
        return truncated + "..." if len(truncated) < len(text) else text

    @app.template_filter("affiliate_links")
    def affiliate_links(text: str | None, affiliates: list) -> Markup:
        """Escape text, then link affiliate keywords in it."""
        return Markup(inject_affiliate_links(str(escape(text or "")), affiliates))

    return app
