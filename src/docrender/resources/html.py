from __future__ import annotations

import re
from typing import Iterable


def _link_pattern(url: str) -> re.Pattern[str]:
    return re.compile(
        r"<link[^>]*href\s*=\s*([\"'])" + re.escape(url) + r"\1[^>]*>",
        re.IGNORECASE,
    )


def strip_resolved_links(html: str, urls: Iterable[str]) -> str:
    """Remove `<link>` tags whose href equals one of `urls`.

    Resources injected out-of-band must not be discovered again by the
    engine's final render pass.
    """
    for url in urls:
        html = _link_pattern(url).sub("", html)
    return html
