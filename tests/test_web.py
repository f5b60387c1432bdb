import threading

import pytest

from codekit.api.errors import APIError, NetworkError
from codekit.client import CodeKitClient
from codekit.resources.models import FavoriteType
from codekit.web.app import create_app

from conftest import AFFILIATES, PROMPTS, FakeApi

DESKTOP = {"Viewport-Width": "1280"}
MOBILE = {"Sec-CH-Viewport-Width": "390"}


def make_app(config, routes):
    client = CodeKitClient(config, api=FakeApi(routes))
    app = create_app(client=client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def api_routes():
    return {
        ("GET", "/api/prompts"): [dict(p) for p in PROMPTS],
        ("GET", "/api/affiliates"): [dict(a) for a in AFFILIATES],
        ("POST", "/api/affiliates/a1/click"): None,
        ("GET", "/api/snippets"): [],
        ("GET", "/api/links"): [],
        ("GET", "/api/guides"): [],
        ("POST", "/api/analytics/view"): {"ok": True},
    }


@pytest.fixture
def app(config, api_routes):
    return make_app(config, api_routes)


@pytest.fixture
def web(app):
    return app.test_client()


def test_without_viewport_hint_the_loading_page_is_served(web):
    response = web.get("/prompts")

    assert response.status_code == 200
    assert b"page-loading" in response.data
    assert b"innerWidth" in response.data
    assert "Viewport-Width" in response.headers["Accept-CH"]


def test_desktop_hint_renders_table_layout(web):
    response = web.get("/prompts", headers=DESKTOP)

    assert b"device-desktop" in response.data
    assert b"<table>" in response.data
    assert b"Refactor component" in response.data


def test_mobile_hint_renders_cards(web):
    response = web.get("/prompts", headers=MOBILE)

    assert b"device-mobile" in response.data
    assert b'class="card"' in response.data


def test_query_parameter_width_is_honoured(web):
    response = web.get("/prompts?vw=500")

    assert b"device-mobile" in response.data


def test_page_without_mobile_variant_falls_back_to_desktop(web):
    response = web.get("/", headers=MOBILE)

    assert response.status_code == 200
    assert b"device-mobile" in response.data
    assert b"<h1>Dashboard</h1>" in response.data
    assert b"Prompts: 0" in response.data


def test_list_is_sorted_and_paginated(web):
    first = web.get("/prompts", headers=DESKTOP)
    second = web.get("/prompts?page=2", headers=DESKTOP)
    clamped = web.get("/prompts?page=99", headers=DESKTOP)

    assert first.data.index(b"Refactor component") < first.data.index(b"Explain error")
    assert b"Write tests" not in first.data
    assert b"Page 1 of 2" in first.data
    assert b"Write tests" in second.data
    assert b"Page 2 of 2" in clamped.data


def test_category_filter(web):
    response = web.get("/prompts?category=Testing", headers=DESKTOP)

    assert b"Write tests" in response.data
    assert b"Refactor component" not in response.data
    assert b"1 of 3" in response.data


def test_fetch_error_is_shown_inline(config, api_routes):
    api_routes[("GET", "/api/prompts")] = APIError("DB down", 500)
    web = make_app(config, api_routes).test_client()

    response = web.get("/prompts", headers=DESKTOP)

    assert response.status_code == 200
    assert b'<div class="error">DB down</div>' in response.data


def test_search_page(web):
    response = web.get("/search?q=pytest", headers=MOBILE)

    assert b"Write tests" in response.data
    assert b"No results found." not in response.data


def test_toggle_favorite(app, web):
    response = web.post("/favorites/prompt/2")

    assert response.status_code == 302
    assert app.config["CODEKIT"].favorites.is_favorite(FavoriteType.PROMPT, "2")

    listing = web.get("/prompts?page=2", headers=DESKTOP)
    assert "&#9733;".encode() in listing.data


def test_toggle_unknown_favorite_type(web):
    assert web.post("/favorites/video/1").status_code == 404


def test_go_tracks_click_and_redirects(web):
    response = web.get("/go/a1")

    assert response.status_code == 302
    assert response.headers["Location"] == (
        "https://hostinger.com?utm_source=codekit&utm_medium=app&utm_campaign=affiliate"
    )


def test_go_accepts_slug_and_survives_tracking_failure(app, web):
    response = web.get("/go/github-copilot")

    assert response.status_code == 302
    assert response.headers["Location"].startswith("https://github.com/features/copilot?ref=x&utm_source=")
    calls = app.config["CODEKIT"].api.calls
    assert ("POST", "/api/affiliates/a2/click", {}) in calls


def test_go_unknown_affiliate_is_404(web):
    assert web.get("/go/nope").status_code == 404


def test_go_when_backend_unreachable(config, api_routes):
    api_routes[("GET", "/api/affiliates")] = NetworkError()
    web = make_app(config, api_routes).test_client()

    response = web.get("/go/a1")

    assert response.status_code == 503
    assert b"Could not connect to server" in response.data


def test_embed_card(web):
    response = web.get("/embed/affiliate/hostinger")

    assert response.status_code == 200
    assert b"codekit-widget" in response.data
    assert b"CODEKIT" in response.data
    assert b"/go/a1" in response.data


def test_unloadable_page_renders_fatal_error(app, web):
    app.config["ROUTER"].register("search", "codekit_missing_page_module:render")

    response = web.get("/search?q=x", headers=DESKTOP)

    assert response.status_code == 500
    assert b"could not be loaded" in response.data


@pytest.mark.parametrize("vw", ["1e400", "inf", "-inf", "nan", "wide"])
def test_unparsable_width_serves_loading_page(web, vw):
    response = web.get(f"/prompts?vw={vw}")

    assert response.status_code == 200
    assert b"page-loading" in response.data
    assert b"isFinite" in response.data


def test_page_views_are_tracked(app, web):
    web.get("/prompts", headers=DESKTOP)
    web.get("/", headers=MOBILE)

    calls = app.config["CODEKIT"].api.calls
    assert ("POST", "/api/analytics/view", {"page": "/prompts"}) in calls
    assert ("POST", "/api/analytics/view", {"page": "/"}) in calls


def test_loading_page_is_not_tracked(app, web):
    web.get("/prompts")

    calls = app.config["CODEKIT"].api.calls
    assert not [c for c in calls if c[1] == "/api/analytics/view"]


def test_tracking_failure_does_not_break_the_page(config, api_routes):
    api_routes[("POST", "/api/analytics/view")] = NetworkError()
    web = make_app(config, api_routes).test_client()

    response = web.get("/prompts", headers=DESKTOP)

    assert response.status_code == 200
    assert b"Refactor component" in response.data


def test_prompt_content_gets_affiliate_links(config, api_routes):
    api_routes[("GET", "/api/prompts")] = [
        {
            "id": "9",
            "title": "Deploy checklist",
            "content": "Pick a hosting plan <script>alert(1)</script>",
            "category": "DevOps",
            "createdAt": "2024-02-01T00:00:00Z",
        }
    ]
    web = make_app(config, api_routes).test_client()

    for headers in (DESKTOP, MOBILE):
        response = web.get("/prompts", headers=headers)

        assert b'<a href="/go/hostinger"' in response.data
        assert b">hosting</a> plan" in response.data
        assert b"&lt;script&gt;" in response.data
        assert b"<script>alert" not in response.data


def test_matching_affiliates_are_recommended(config, api_routes):
    api_routes[("GET", "/api/prompts")] = [
        {"id": "9", "title": "Server setup", "content": "Configure the server", "category": "DevOps"}
    ]
    web = make_app(config, api_routes).test_client()

    response = web.get("/prompts", headers=DESKTOP)

    assert b"Recommended tools" in response.data
    assert b'<a href="/go/a1">Hostinger</a>' in response.data


def test_concurrent_requests_share_one_client(config, api_routes):
    client = CodeKitClient(config, api=FakeApi(api_routes, delay=0.2))
    app = create_app(client=client)
    app.config["TESTING"] = True
    responses = {}

    def get(name):
        responses[name] = app.test_client().get("/prompts", headers=DESKTOP)

    threads = [threading.Thread(target=get, args=(n,)) for n in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [responses[n].status_code for n in ("a", "b")] == [200, 200]
    assert all(b"Refactor component" in responses[n].data for n in ("a", "b"))
    assert "/api/prompts" in client.cache
