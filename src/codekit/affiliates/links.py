"""Affiliate matching, link injection and tracked URL building."""

import re
from typing import Literal
from urllib.parse import urlencode

from ..resources.models import Affiliate

# Keyword -> affiliate names, in priority order
KEYWORD_AFFILIATES: dict[str, list[str]] = {
    "hosting": ["Hostinger", "DigitalOcean", "Vercel"],
    "host": ["Hostinger", "DigitalOcean"],
    "server": ["Hostinger", "DigitalOcean"],
    "servidor": ["Hostinger", "DigitalOcean"],
    "deploy": ["Vercel", "Netlify", "Railway"],
    "despliegue": ["Vercel", "Netlify"],
    "cloud": ["DigitalOcean", "Vercel"],
    "ui": ["TailwindUI", "Canva"],
    "tailwind": ["TailwindUI"],
    "design": ["Canva", "TailwindUI"],
    "ai": ["GitHub Copilot", "Jasper AI"],
    "ia": ["GitHub Copilot", "Jasper AI"],
    "copilot": ["GitHub Copilot"],
    "gpt": ["Jasper AI"],
    "notes": ["Notion"],
    "notas": ["Notion"],
    "code": ["Replit", "GitHub Copilot"],
    "terminal": ["Replit"],
}


def affiliate_slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def affiliate_shortlink(affiliate: Affiliate) -> str:
    return f"/go/{affiliate_slug(affiliate.name)}"


def find_matching_affiliates(text: str, affiliates: list[Affiliate], limit: int = 3) -> list[Affiliate]:
    """Affiliates whose keywords appear anywhere in `text`."""
    lowered = text.lower()
    names = set()
    for keyword, affiliate_names in KEYWORD_AFFILIATES.items():
        if keyword in lowered:
            names.update(affiliate_names)
    return [a for a in affiliates if a.name in names][:limit]


def inject_affiliate_links(
    text: str,
    affiliates: list[Affiliate],
    fmt: Literal["html", "markdown"] = "html",
) -> str:
    """Link whole-word keyword occurrences to the first matching affiliate."""
    if not affiliates:
        return text

    by_name = {a.name.lower(): a for a in affiliates}
    result = text
    for keyword, names in KEYWORD_AFFILIATES.items():
        match = next((by_name[n.lower()] for n in names if n.lower() in by_name), None)
        if match is None:
            continue

        shortlink = affiliate_shortlink(match)
        pattern = re.compile(rf"(?<![\w/\[>-])({re.escape(keyword)})(?![\w\]<-])", re.IGNORECASE)
        if fmt == "html":
            replacement = rf'<a href="{shortlink}" target="_blank" rel="noopener" class="affiliate-link">\1</a>'
        else:
            replacement = rf"[\1]({shortlink})"
        result = pattern.sub(replacement, result)

    return result


def build_affiliate_url(
    affiliate: Affiliate,
    source: str = "codekit",
    medium: str = "app",
    campaign: str = "affiliate",
) -> str:
    """Outbound URL with the affiliate's stored UTM string or default UTM params."""
    separator = "&" if "?" in affiliate.url else "?"
    if affiliate.utm:
        return f"{affiliate.url}{separator}{affiliate.utm.lstrip('?')}"
    params = urlencode({"utm_source": source, "utm_medium": medium, "utm_campaign": campaign})
    return f"{affiliate.url}{separator}{params}"


def find_affiliate(affiliates: list[Affiliate], id_or_slug: str) -> Affiliate | None:
    """Look up by id, or by the slug of the affiliate's name."""
    wanted = id_or_slug.lower()
    for affiliate in affiliates:
        if affiliate.id == id_or_slug or affiliate_slug(affiliate.name) == wanted:
            return affiliate
    return None
