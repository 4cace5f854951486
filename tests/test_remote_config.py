from __future__ import annotations

from typing import List

import pytest
import requests

from cozylogs.config.predicates import ContextAllowlistSpec, DisableStagesSpec
from cozylogs.config.remote import ConfigSnapshot, RemoteConfigCache, load_config_file, parse_config_document
from cozylogs.config.settings import DEFAULT_CONFIG_URL, load_settings
from cozylogs.core.errors import ConfigRefreshError
from cozylogs.core.models import AnalysisContext

CONFIG_YAML = """
url_regex: '(https?://\\S+)'
pastebins:
  - name: hastebin
    pattern: '^https://hastebin\\.com/(?P<id>\\w+)'
    raw: 'https://hastebin.com/raw/{id}'
global_predicates:
  - type: disable
    stages: [known_patterns]
  - type: context_allowlist
    key: guild_id
    values: ["1"]
    kinds: [retriever]
unknown_top_level_key: ignored
"""


def test_parse_config_document() -> None:
    snap = parse_config_document(CONFIG_YAML)
    assert snap.url_regex == "(https?://\\S+)"
    assert [p.name for p in snap.pastebins] == ["hastebin"]
    assert snap.pastebins[0].raw_url_for("https://hastebin.com/abc") == "https://hastebin.com/raw/abc"
    assert isinstance(snap.global_predicates[0], DisableStagesSpec)
    assert isinstance(snap.global_predicates[1], ContextAllowlistSpec)

    ctx = AnalysisContext(attributes={"guild_id": 1})
    assert not snap.allows("known_patterns", "processor", ctx)
    assert snap.allows("mods", "parser", AnalysisContext())
    assert snap.allows("pastebin", "retriever", ctx)
    assert not snap.allows("pastebin", "retriever", AnalysisContext())


def test_empty_document_gives_defaults() -> None:
    snap = parse_config_document("")
    assert snap == ConfigSnapshot()
    assert {p.name for p in snap.pastebins} >= {"pastebin", "paste.ee"}


@pytest.mark.parametrize(
    "text",
    [
        "url_regex: '[unclosed'",
        "url_regex: 'https?://\\S+'",  # no capture group
        "- just\n- a list\n",
        "pastebins: [{name: x, pattern: '^https://x/(\\w+)', raw: 'https://x/{id}'}]",  # no `id` group
        "global_predicates: [{type: nope}]",
        "key: [unterminated",
    ],
)
def test_invalid_documents_are_rejected(text: str) -> None:
    with pytest.raises(ConfigRefreshError):
        parse_config_document(text)


def test_refresh_failure_keeps_previous_snapshot() -> None:
    responses: List[object] = [CONFIG_YAML, ConnectionError("down"), "url_regex: 'no-group'"]

    def _fetch(url, *, timeout):
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    cache = RemoteConfigCache("https://config.example/pastebins.yml", fetcher=_fetch)
    assert cache.snapshot() == ConfigSnapshot()

    assert cache.refresh() is True
    good = cache.snapshot()
    assert [p.name for p in good.pastebins] == ["hastebin"]

    assert cache.refresh() is False
    assert cache.snapshot() is good
    assert cache.last_error is not None

    assert cache.refresh() is False
    assert cache.snapshot() is good


def test_start_strict_raises_and_lenient_keeps_default() -> None:
    def _fetch(url, *, timeout):
        raise ConnectionError("down")

    lenient = RemoteConfigCache("https://config.example/x.yml", fetcher=_fetch, refresh_seconds=3600)
    lenient.start()
    try:
        assert lenient.snapshot() == ConfigSnapshot()
    finally:
        lenient.stop()

    strict = RemoteConfigCache("https://config.example/x.yml", fetcher=_fetch)
    with pytest.raises(ConfigRefreshError):
        strict.start(strict=True)


def test_cache_without_url_never_fetches() -> None:
    def _fetch(url, *, timeout):
        raise AssertionError("should not fetch")

    cache = RemoteConfigCache(None, fetcher=_fetch)
    cache.start()
    assert cache.refresh() is False
    assert cache.describe()["url"] is None
    cache.stop()


def test_default_fetcher_uses_requests(monkeypatch) -> None:
    class _Resp:
        text = CONFIG_YAML
        status_code = 200

        def raise_for_status(self) -> None:
            return None

    def _fake_get(url, timeout=None):
        assert url == "https://config.example/pastebins.yml"
        return _Resp()

    monkeypatch.setattr(requests, "get", _fake_get)
    cache = RemoteConfigCache("https://config.example/pastebins.yml")
    assert cache.refresh() is True
    assert cache.describe()["pastebins"] == ["hastebin"]


def test_load_config_file(tmp_path) -> None:
    path = tmp_path / "pastebins.yml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    assert [p.name for p in load_config_file(path).pastebins] == ["hastebin"]
    with pytest.raises(ConfigRefreshError):
        load_config_file(tmp_path / "missing.yml")


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.delenv("PASTEBIN_CONFIG_URL", raising=False)
    monkeypatch.setenv("PASTEBIN_REFRESH_MINS", "15")
    monkeypatch.setenv("RETRIEVAL_MAX_WORKERS", "not-a-number")
    s = load_settings()
    assert s.config_url == DEFAULT_CONFIG_URL
    assert s.config_refresh_minutes == 15
    assert s.retrieval_max_workers == 4

    monkeypatch.setenv("PASTEBIN_CONFIG_URL", "off")
    assert load_settings().config_url is None


def test_last_error_is_reported_and_cleared() -> None:
    responses: List[object] = [ConnectionError("down"), CONFIG_YAML]

    def _fetch(url, *, timeout):
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    cache = RemoteConfigCache("https://config.example/pastebins.yml", fetcher=_fetch)
    assert cache.refresh() is False
    failed = cache.describe()
    assert "down" in failed["last_error"]
    assert failed["last_refreshed_at"] is None

    assert cache.refresh() is True
    ok = cache.describe()
    assert ok["last_error"] is None
    assert ok["last_refreshed_at"] is not None
