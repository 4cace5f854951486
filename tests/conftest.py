"""
Pytest config.

Local imports like `import cozylogs` rely on the repo root being on sys.path. When invoking a
global `pytest` entrypoint that doesn't happen reliably during collection, so we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _no_remote_config_for_unit_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    The HTTP server fetches the remote config document on startup.

    Unit tests create `TestClient(webhook.app)` (which triggers FastAPI startup hooks) without
    network access, so the remote config is disabled by default and the process-wide cache is
    reset between tests. Individual tests can override PASTEBIN_CONFIG_URL themselves.
    """
    monkeypatch.setenv("PASTEBIN_CONFIG_URL", "off")
    monkeypatch.setattr("cozylogs.api.webhook._cache", None)
