"""
Remote config cache.

The config document (YAML) carries the link-detection pattern, the paste hosts the generic
paste retriever understands, and the global predicate specs. It is fetched at start-up and
refreshed periodically by a daemon thread; readers always get one complete, immutable snapshot.
"""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional

import requests
import yaml
from pydantic import ConfigDict, Field, ValidationError, field_validator

from cozylogs.config.predicates import GlobalPredicateSpec, StageKind
from cozylogs.core.errors import ConfigRefreshError
from cozylogs.core.models import AnalysisContext, BaseModelStrict

logger = logging.getLogger(__name__)

# The last character may not be sentence punctuation, so "see https://mclo.gs/abc." captures the link only.
DEFAULT_URL_REGEX = r"(https?://[^\s<>\"'`)\]|]*[^\s<>\"'`)\]|.,;:!?])"


class PastebinHost(BaseModelStrict):
    name: str
    pattern: str
    """Regex matched against the link; must define a named group `id`."""
    raw: str
    """Raw-content URL template, formatted with `{id}`."""

    @field_validator("pattern")
    @classmethod
    def _pattern_has_id_group(cls, v: str) -> str:
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid pastebin pattern: {e}") from e
        if "id" not in compiled.groupindex:
            raise ValueError("pastebin pattern must define a named group 'id'")
        return v

    def raw_url_for(self, url: str) -> Optional[str]:
        m = re.search(self.pattern, url)
        if not m:
            return None
        return self.raw.format(id=m.group("id"))


DEFAULT_PASTEBINS: List[PastebinHost] = [
    PastebinHost(
        name="pastebin",
        pattern=r"^https?://(?:www\.)?pastebin\.com/(?:raw/)?(?P<id>[A-Za-z0-9]+)/?$",
        raw="https://pastebin.com/raw/{id}",
    ),
    PastebinHost(
        name="paste.ee",
        pattern=r"^https?://(?:www\.)?paste\.ee/[pr]/(?P<id>[A-Za-z0-9]+)/?$",
        raw="https://paste.ee/r/{id}",
    ),
    PastebinHost(
        name="bytebin",
        pattern=r"^https?://bytebin\.lucko\.me/(?P<id>[A-Za-z0-9]+)/?$",
        raw="https://bytebin.lucko.me/{id}",
    ),
    PastebinHost(
        name="pastes.dev",
        pattern=r"^https?://pastes\.dev/(?P<id>[A-Za-z0-9]+)/?$",
        raw="https://api.pastes.dev/{id}",
    ),
]


class ConfigSnapshot(BaseModelStrict):
    """One immutable view of the remote config."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url_regex: str = DEFAULT_URL_REGEX
    pastebins: List[PastebinHost] = Field(default_factory=lambda: list(DEFAULT_PASTEBINS))
    global_predicates: List[GlobalPredicateSpec] = Field(default_factory=list)

    @field_validator("url_regex")
    @classmethod
    def _url_regex_has_group(cls, v: str) -> str:
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid url_regex: {e}") from e
        if compiled.groups < 1:
            raise ValueError("url_regex must have a capturing group for the candidate URL")
        return v

    def compiled_url_regex(self) -> "re.Pattern[str]":
        return re.compile(self.url_regex)

    def allows(self, identifier: str, kind: StageKind, context: AnalysisContext) -> bool:
        return all(spec.allows(identifier, kind, context) for spec in self.global_predicates)


def parse_config_document(text: str) -> ConfigSnapshot:
    try:
        data = yaml.safe_load(text) if text and text.strip() else {}
    except yaml.YAMLError as e:
        raise ConfigRefreshError(f"config document is not valid YAML: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigRefreshError(f"config document must be a mapping, got {type(data).__name__}")
    try:
        return ConfigSnapshot.model_validate(data)
    except ValidationError as e:
        raise ConfigRefreshError(f"config document failed validation: {e}") from e


def fetch_config_document(url: str, *, timeout: float = 10.0) -> str:
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise ConfigRefreshError(f"failed to fetch config from {url}: {e}") from e
    return resp.text


def load_config_file(path: str | Path) -> ConfigSnapshot:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigRefreshError(f"failed to read config file {path}: {e}") from e
    return parse_config_document(text)


class RemoteConfigCache:
    """Process-wide holder of the current `ConfigSnapshot`, swapped atomically on refresh."""

    def __init__(
        self,
        url: Optional[str],
        *,
        refresh_seconds: float = 3600.0,
        timeout: float = 10.0,
        fetcher: Optional[Callable[..., str]] = None,
        initial: Optional[ConfigSnapshot] = None,
    ) -> None:
        self.url = url
        self.refresh_seconds = refresh_seconds
        self.timeout = timeout
        self._fetcher = fetcher or fetch_config_document
        self._snapshot = initial or ConfigSnapshot()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[str] = None
        self.last_refreshed_at: Optional[datetime] = None

    def snapshot(self) -> ConfigSnapshot:
        with self._lock:
            return self._snapshot

    def load(self) -> ConfigSnapshot:
        """Fetch and parse the document. Raises ConfigRefreshError; never touches the current snapshot."""
        if not self.url:
            raise ConfigRefreshError("no config URL configured")
        try:
            text = self._fetcher(self.url, timeout=self.timeout)
        except ConfigRefreshError:
            raise
        except Exception as e:
            raise ConfigRefreshError(f"failed to fetch config from {self.url}: {e}") from e
        return parse_config_document(text)

    def _publish(self, snap: ConfigSnapshot) -> None:
        with self._lock:
            self._snapshot = snap
            self.last_refreshed_at = datetime.now(timezone.utc)
            self.last_error = None

    def refresh(self) -> bool:
        """Replace the snapshot. On failure keep the previous one and return False."""
        if not self.url:
            logger.debug("Skipping config refresh: no config URL configured")
            return False
        try:
            snap = self.load()
        except ConfigRefreshError as e:
            with self._lock:
                self.last_error = str(e)
            logger.warning("Config refresh failed, keeping previous snapshot: %s", e)
            return False
        self._publish(snap)
        logger.info(
            "Config refreshed: %d pastebin host(s), %d global predicate(s)",
            len(snap.pastebins),
            len(snap.global_predicates),
        )
        return True

    def start(self, *, strict: bool = False) -> None:
        """Initial fetch, then periodic refresh in a daemon thread."""
        if strict:
            self._publish(self.load())
        else:
            self.refresh()

        if not self.url or self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="cozylogs-config-refresh", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.refresh_seconds):
            self.refresh()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        t = self._thread
        self._thread = None
        if t is not None:
            t.join(timeout=timeout)

    def describe(self) -> dict[str, Any]:
        with self._lock:
            snap = self._snapshot
            last_error = self.last_error
            last_refreshed_at = self.last_refreshed_at
        return {
            "url": self.url,
            "refresh_seconds": self.refresh_seconds,
            "last_refreshed_at": last_refreshed_at.isoformat() if last_refreshed_at else None,
            "last_error": last_error,
            "url_regex": snap.url_regex,
            "pastebins": [p.name for p in snap.pastebins],
            "global_predicates": [spec.model_dump(mode="json") for spec in snap.global_predicates],
        }
