"""Retrievers for direct file links: chat attachments, raw `.log`/`.txt` URLs, and local files (CLI only)."""

from __future__ import annotations

from pathlib import Path
from typing import List
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import requests

from cozylogs.config.remote import ConfigSnapshot
from cozylogs.config.settings import load_settings
from cozylogs.core.errors import RetrievalError
from cozylogs.core.models import AnalysisContext
from cozylogs.retrievers.http import decode_body, get_text
from cozylogs.stages.base import Order

LOG_FILE_SUFFIXES = (".log", ".txt", ".gz")


def _has_log_suffix(path: str) -> bool:
    return unquote(path).lower().endswith(LOG_FILE_SUFFIXES)


class AttachmentRetriever:
    identifier = "attachment"
    order = Order.EARLIER

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and _has_log_suffix(parsed.path)

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        try:
            return [get_text(url)]
        except requests.RequestException as e:
            raise RetrievalError(self.identifier, url, e) from e


class LocalFileRetriever:
    """`file://` URLs. Only enabled when the caller sets `allow_local_files` on the context."""

    identifier = "local_file"
    order = Order.LATEST

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return urlparse(url).scheme == "file" and context.attr("allow_local_files") is True

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        path = Path(url2pathname(urlparse(url).path))
        max_bytes = load_settings().fetch_max_bytes
        try:
            with path.open("rb") as f:
                content = f.read(max_bytes + 1)
        except OSError as e:
            raise RetrievalError(self.identifier, url, e) from e
        return [decode_body(content, max_bytes=max_bytes, source=url)]
