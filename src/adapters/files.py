"""Utilidades de archivos para attachments (MIME + stream por chunks)."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import AsyncIterator

DEFAULT_CONTENT_TYPE = "application/octet-stream"
CHUNK_SIZE = 64 * 1024


def mime_type_from_name(name: str | Path) -> str:
    guessed, _ = mimetypes.guess_type(str(name))
    return guessed or DEFAULT_CONTENT_TYPE


async def iter_file(path: Path, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Lee `path` en chunks para enviarlo como body en streaming."""

    with path.open("rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, chunk_size)
            if not chunk:
                break
            yield chunk
