"""Mobile page variants. Pages without one here fall back to desktop."""

from typing import Any

from flask import render_template


def resource_list(context: dict[str, Any]) -> str:
    """Single-column cards; filters collapse into the header."""
    return render_template("mobile/list.html", **context)


def search_results(context: dict[str, Any]) -> str:
    return render_template("mobile/search.html", **context)
