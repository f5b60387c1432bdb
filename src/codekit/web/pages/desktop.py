"""Desktop page variants."""

from typing import Any

from flask import render_template


def dashboard(context: dict[str, Any]) -> str:
    return render_template("desktop/dashboard.html", **context)


def resource_list(context: dict[str, Any]) -> str:
    """Table layout with the filter sidebar."""
    return render_template("desktop/list.html", **context)


def search_results(context: dict[str, Any]) -> str:
    return render_template("desktop/search.html", **context)
