"""
Shared HTTP fetch for retrievers.

Every fetch is bounded by a per-request timeout and a body size cap (see `load_settings()`).
The cap applies to the download and to gzip output (e.g. `latest.log.gz` attachments): bodies are
streamed and decompressed incrementally, never materialized past the cap.
"""

from __future__ import annotations

import logging
import zlib
from typing import Any, Dict, Optional

import requests

from cozylogs.config.settings import load_settings

logger = logging.getLogger(__name__)

USER_AGENT = "cozylogs/0.1 (+log analysis)"
_GZIP_MAGIC = b"\x1f\x8b"
_CHUNK_SIZE = 64 * 1024


def decode_body(content: bytes, *, max_bytes: Optional[int] = None, source: str = "body") -> str:
    truncated = False
    if content[:2] == _GZIP_MAGIC:
        d = zlib.decompressobj(16 + zlib.MAX_WBITS)
        try:
            out = d.decompress(content, max_bytes or 0)
        except zlib.error as e:
            raise ValueError(f"corrupt gzip body: {e}") from e
        # Output stopped at the cap, or the compressed input was cut short.
        truncated = max_bytes is not None and (bool(d.unconsumed_tail) or not d.eof)
        content = out
    if max_bytes is not None and len(content) > max_bytes:
        content = content[:max_bytes]
        truncated = True
    if truncated:
        logger.warning("Truncated %s to %d bytes", source, max_bytes)
    # Logs are UTF-8 in practice; requests would guess ISO-8859-1 for bare text/plain.
    return content.decode("utf-8", errors="replace")


def get_response(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    stream: bool = False,
) -> Any:
    settings = load_settings()
    hdrs = {"User-Agent": USER_AGENT}
    hdrs.update(headers or {})
    resp = requests.get(url, headers=hdrs, timeout=timeout or settings.fetch_timeout_seconds, stream=stream)
    resp.raise_for_status()
    return resp


def read_capped(resp: Any, max_bytes: int, *, source: str) -> bytes:
    """Read a streamed response, stopping once more than `max_bytes` have arrived."""
    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
        if not chunk:
            continue
        buf.extend(chunk)
        if len(buf) > max_bytes:
            logger.warning("Download of %s exceeded %d bytes; reading stopped", source, max_bytes)
            break
    return bytes(buf[: max_bytes + 1])


def get_text(url: str, *, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> str:
    """GET `url` and return the decoded body. Raises requests exceptions on HTTP/network errors."""
    settings = load_settings()
    resp = get_response(url, headers=headers, timeout=timeout, stream=True)
    try:
        content = read_capped(resp, settings.fetch_max_bytes, source=url)
    finally:
        resp.close()
    return decode_body(content, max_bytes=settings.fetch_max_bytes, source=url)


def get_json(url: str, *, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> Any:
    return get_response(url, headers=headers, timeout=timeout).json()
