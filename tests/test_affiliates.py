import pytest

from codekit.affiliates.links import (
    affiliate_shortlink,
    build_affiliate_url,
    find_affiliate,
    find_matching_affiliates,
    inject_affiliate_links,
)
from codekit.resources.models import Affiliate


@pytest.fixture
def affiliates(affiliates_payload):
    return [Affiliate.from_api(a) for a in affiliates_payload]


def test_shortlink_uses_name_slug(affiliates):
    assert affiliate_shortlink(affiliates[1]) == "/go/github-copilot"


def test_markdown_injection_keeps_original_case(affiliates):
    text = "Cheap Hosting for side projects"

    assert inject_affiliate_links(text, affiliates, "markdown") == (
        "Cheap [Hosting](/go/hostinger) for side projects"
    )


def test_html_injection(affiliates):
    html = inject_affiliate_links("try copilot today", affiliates)

    assert html == (
        'try <a href="/go/github-copilot" target="_blank" rel="noopener" '
        'class="affiliate-link">copilot</a> today'
    )


@pytest.mark.parametrize(
    "text",
    [
        "[hosting](https://example.com)",
        "web-hosting plans",
        "webhosting plans",
        "https://example.com/hosting",
    ],
)
def test_injection_skips_linked_or_embedded_keywords(text, affiliates):
    assert inject_affiliate_links(text, affiliates, "markdown") == text


def test_injection_without_affiliates_is_identity():
    assert inject_affiliate_links("hosting", []) == "hosting"


def test_matching_affiliates_by_keyword(affiliates):
    assert [a.name for a in find_matching_affiliates("Ship it with copilot", affiliates)] == ["GitHub Copilot"]
    assert find_matching_affiliates("nothing relevant", affiliates) == []


def test_default_utm_parameters(affiliates):
    assert build_affiliate_url(affiliates[0]) == (
        "https://hostinger.com?utm_source=codekit&utm_medium=app&utm_campaign=affiliate"
    )


def test_existing_query_string_is_extended(affiliates):
    url = build_affiliate_url(affiliates[1], source="newsletter")

    assert url.startswith("https://github.com/features/copilot?ref=x&utm_source=newsletter")


def test_stored_utm_wins():
    affiliate = Affiliate(id="z", name="Z", url="https://z.io", utm="?utm_source=partner")

    assert build_affiliate_url(affiliate) == "https://z.io?utm_source=partner"


def test_find_affiliate_by_id_or_slug(affiliates):
    assert find_affiliate(affiliates, "a1").name == "Hostinger"
    assert find_affiliate(affiliates, "GitHub-Copilot").id == "a2"
    assert find_affiliate(affiliates, "missing") is None
