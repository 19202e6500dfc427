"""
Managed font-provider lookups.

References of the form `provider:google-fonts?family=Roboto&weight=700&italic=1`
are turned into a Google Fonts stylesheet request. The stylesheet response is
returned as-is; the font binaries it points at are not fetched here.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, quote, urlparse

import httpx

from docrender.config.logging_config import get_logger
from docrender.engine.contract import RequiredResource
from docrender.io.http_fetch import fetch_bytes

log = get_logger(__name__)

GOOGLE_FONTS_PREFIX = "provider:google-fonts"
GOOGLE_FONTS_CSS_URL = "https://fonts.googleapis.com/css2"

GENERIC_FAMILIES = {
    "sans-serif": "Noto Sans JP",
    "serif": "Noto Serif JP",
    "monospace": "Noto Sans Mono",
    "cursive": "Klee One",
    "fantasy": "Mochiy Pop One",
}

# Families without italic faces; italic requests fall back to the upright style
_UPRIGHT_ONLY_MARKERS = ("Noto Sans JP", "Noto Serif JP", "CJK")


@dataclass(frozen=True)
class FontQuery:
    family: str
    weight: str = "400"
    italic: bool = False


def is_provider_url(url: str) -> bool:
    return url.startswith(GOOGLE_FONTS_PREFIX)


def parse_provider_url(url: str) -> FontQuery | None:
    if not is_provider_url(url):
        return None
    params = parse_qs(urlparse(url).query)
    family = (params.get("family") or [""])[0]
    if not family:
        return None
    weight = (params.get("weight") or [""])[0] or "400"
    italic = (params.get("italic") or [""])[0] == "1"
    return FontQuery(family=family, weight=weight, italic=italic)


def stylesheet_url(query: FontQuery) -> str:
    """Build the provider stylesheet URL, mapping generic families to concrete ones."""
    target = GENERIC_FAMILIES.get(query.family, query.family)
    upright_only = query.family in GENERIC_FAMILIES or any(
        marker in query.family for marker in _UPRIGHT_ONLY_MARKERS
    )
    use_italic = query.italic and not upright_only
    family = quote(target, safe="!'()*-._~")
    return f"{GOOGLE_FONTS_CSS_URL}?family={family}:ital,wght@{1 if use_italic else 0},{query.weight}&display=swap"


async def resolve_google_fonts(
    resource: RequiredResource,
    client: httpx.AsyncClient,
    user_agent: str | None = None,
) -> bytes | None:
    query = parse_provider_url(resource.url)
    if query is None:
        return None
    url = stylesheet_url(query)
    try:
        return await fetch_bytes(client, url, user_agent)
    except httpx.HTTPError as e:
        log.warning(f"Font provider request failed for {resource.url}: {e}")
        return None
