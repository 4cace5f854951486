"""JSON dump helpers (CLI- and API-friendly, testable).

We keep printing logic out of core modules; this returns plain dicts.
"""

from __future__ import annotations

from typing import Any, Dict, Literal

from cozylogs.core.models import Log

DumpMode = Literal["summary", "full"]


def _clean(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v not in (None, "", [], {})}


def is_interesting(log: Log) -> bool:
    """Whether a log is worth showing to a user (aborted, has findings, or has identifiable facts)."""
    return bool(log.aborted or log.has_problems or log.messages or log.minecraft_version is not None or log.mods)


def log_to_json_dict(log: Log, *, mode: DumpMode = "summary") -> Dict[str, Any]:
    if mode == "full":
        # Pydantic v2: mode="json" produces JSON-serializable types; private state (messages, flags) is added by hand.
        out = log.model_dump(mode="json")
        out.update(
            {
                "messages": list(log.messages),
                "has_problems": log.has_problems,
                "aborted": log.aborted,
                "abort_reason": log.abort_reason,
            }
        )
        return out

    # summary mode (small, stable): no raw content, loaders keyed by display name.
    return {
        "url": log.url,
        "minecraft_version": str(log.minecraft_version) if log.minecraft_version is not None else None,
        "loaders": {k.display_name: str(v) for k, v in log.loaders.items()},
        "launcher": log.launcher.model_dump(mode="json") if log.launcher else None,
        "environment": _clean(log.environment.model_dump(mode="json")),
        "mod_count": len(log.mods),
        "messages": list(log.messages),
        "has_problems": log.has_problems,
        "aborted": log.aborted,
        "abort_reason": log.abort_reason,
        "errors": list(log.errors),
    }
