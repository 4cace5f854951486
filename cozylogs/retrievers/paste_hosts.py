"""Paste-service retrievers (config-driven generic hosts plus services with their own APIs)."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import requests

from cozylogs.config.remote import ConfigSnapshot
from cozylogs.core.errors import RetrievalError
from cozylogs.core.models import AnalysisContext
from cozylogs.retrievers.http import get_json, get_text
from cozylogs.stages.base import Order

logger = logging.getLogger(__name__)

MCLOGS_URL_RE = re.compile(r"^https?://(?:www\.)?mclo\.gs/(?P<id>[A-Za-z0-9]+)/?$")
MCLOGS_RAW_URL = "https://api.mclo.gs/1/raw/{id}"

GIST_URL_RE = re.compile(r"^https?://gist\.github\.com/(?:[\w.-]+/)?(?P<id>[0-9a-fA-F]+)/?(?:#.*)?$")
GIST_API_URL = "https://api.github.com/gists/{id}"


class PastebinRetriever:
    """Generic paste hosts listed in the config snapshot (`pastebins`)."""

    identifier = "pastebin"
    order = Order.DEFAULT

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        # Host list lives in the snapshot; fetch() decides which hosts match.
        return url.startswith(("http://", "https://"))

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        bodies: List[str] = []
        last_error: Optional[requests.RequestException] = None
        for host in config.pastebins:
            raw_url = host.raw_url_for(url)
            if raw_url is None:
                continue
            logger.debug("Fetching %s paste %s via %s", host.name, url, raw_url)
            try:
                bodies.append(get_text(raw_url))
            except requests.RequestException as e:
                logger.warning("Paste host %s failed for %s: %s", host.name, url, e)
                last_error = e
        # Only an outright failure is an error; bodies from hosts that answered are kept.
        if not bodies and last_error is not None:
            raise RetrievalError(self.identifier, url, last_error) from last_error
        return bodies


class MclogsRetriever:
    identifier = "mclogs"
    order = Order.DEFAULT

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return MCLOGS_URL_RE.match(url) is not None

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        m = MCLOGS_URL_RE.match(url)
        if not m:
            return []
        try:
            return [get_text(MCLOGS_RAW_URL.format(id=m.group("id")))]
        except requests.RequestException as e:
            raise RetrievalError(self.identifier, url, e) from e


class GistRetriever:
    """GitHub gists: one body per file, in the order the API lists them."""

    identifier = "github_gist"
    order = Order.DEFAULT

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return GIST_URL_RE.match(url) is not None

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        m = GIST_URL_RE.match(url)
        if not m:
            return []
        try:
            data = get_json(
                GIST_API_URL.format(id=m.group("id")),
                headers={"Accept": "application/vnd.github+json"},
            )
            files = data.get("files") if isinstance(data, dict) else None
            if not isinstance(files, dict):
                return []

            bodies: List[str] = []
            for name, f in files.items():
                if not isinstance(f, dict):
                    continue
                if f.get("truncated") and f.get("raw_url"):
                    bodies.append(get_text(str(f["raw_url"])))
                elif isinstance(f.get("content"), str):
                    bodies.append(f["content"])
                else:
                    logger.debug("Skipping gist file without content: %s", name)
            return bodies
        except requests.RequestException as e:
            raise RetrievalError(self.identifier, url, e) from e
