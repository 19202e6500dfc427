from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import unquote, urlparse

import aiofiles
import aiofiles.os


def file_url_to_path(url: str) -> Path:
    """Convert a `file://` URL into a filesystem path."""
    parsed = urlparse(url)
    path = unquote(parsed.path)
    if os.name == "nt" and path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]
    return Path(path)


async def read_local_file(path: str | Path) -> bytes | None:
    """Read a file if it exists; return None when it does not."""
    if not await aiofiles.os.path.isfile(path):
        return None
    async with aiofiles.open(path, "rb") as f:
        return await f.read()
