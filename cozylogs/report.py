"""Report renderer (log-first).

`Log` is the single source of truth. Rendering is deterministic Markdown, shaped for chat sinks
that cap message size (see `chunk_text`).
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from cozylogs.core.models import Log

DEFAULT_CHUNK_LIMIT = 2048
TITLE_LIMIT = 256
_SPLIT_MARKER = "..."


def render_log_title(log: Log) -> str:
    base = "Crash Log" if log.content.startswith("---- Crashed! ----") else "Log File"
    if log.aborted:
        return f"{base}: Aborted"
    if log.has_problems:
        return f"{base}: Problems Found"
    return base


def _environment_blocks(log: Log) -> List[List[str]]:
    env = log.environment
    # Each group renders as one block; empty groups are dropped.
    groups: List[List[Tuple[str, Optional[str], bool]]] = [
        [("Java Version", env.java_version, True), ("JVM Version", env.jvm_version, True)],
        [("Java Args", env.jvm_args, True)],
        [
            ("OS", env.os, False),
            ("CPU", env.cpu, True),
            ("GPU", env.gpu, True),
            ("System Memory", env.system_memory, True),
        ],
        [("Game Memory", env.game_memory, True), ("Shaderpack", env.shaderpack, True)],
    ]
    blocks: List[List[str]] = []
    for group in groups:
        lines = [f"**{label}:** `{value}`" if code else f"**{label}:** {value}" for label, value, code in group if value]
        if lines:
            blocks.append(lines)
    return blocks


def _render_header(log: Log) -> str:
    mc_version = str(log.minecraft_version) if log.minecraft_version is not None else "Unknown"
    blocks: List[List[str]] = [["**__Environment Info__**"], [f"**Minecraft Version:** `{mc_version}`"]]
    env_blocks = _environment_blocks(log)
    if env_blocks:
        blocks[1].extend(env_blocks[0])
        blocks.extend(env_blocks[1:])

    if log.launcher is not None:
        blocks.append([f"**Launcher:** {log.launcher.name} (`{log.launcher.version or 'Unknown Version'}`)"])

    plugin_platform = log.is_plugin_platform()
    tail: List[str] = []
    for kind, version in sorted(log.loaders.items(), key=lambda kv: kv[0].value):
        if plugin_platform:
            tail.append(f"**Platform:** {kind.display_name}")
            tail.append(f"**Version:** `{version}`")
        else:
            tail.append(f"**Loader:** {kind.display_name} (`{version}`)")
    item_type = "Plugins" if plugin_platform else "Mods"
    tail.append(f"**{item_type}:** {len(log.mods) if log.mods else 'None'}")
    blocks.append(tail)

    return "\n\n".join("\n".join(b) for b in blocks).strip()


def _render_messages(log: Log) -> str:
    if not (log.aborted or log.messages):
        return ""
    lines = ["__**Messages**__", ""]
    if log.aborted:
        lines.append("__**Log parsing aborted**__")
        lines.append(log.abort_reason or "")
    else:
        for message in log.messages:
            lines.append(message)
            lines.append("")
    return "\n".join(lines).strip()


def render_log_report(log: Log) -> str:
    """
    Render the Markdown body for one log: environment header, then messages.

    An aborted log shows only the abort reason in place of its messages.
    """
    header = _render_header(log)
    messages = _render_messages(log)
    return f"{header}\n\n{messages}" if messages else header


def chunk_text(text: str, limit: int = DEFAULT_CHUNK_LIMIT) -> List[str]:
    """
    Greedy line-based chunking for size-limited sinks.

    Lines are packed until the next one would overflow `limit`. A single line longer than the limit
    is split with "..." markers at the cut points.
    """
    if limit <= len(_SPLIT_MARKER) * 2 + 1:
        raise ValueError(f"chunk limit too small: {limit}")
    if len(text) <= limit:
        return [text]

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        if len(current) + len(line) + 1 <= limit:
            current += line + "\n"
            continue

        if current:
            chunks.append(current.strip())
            current = ""

        if len(line) <= limit:
            current = line + "\n"
            continue

        split_at = limit - len(_SPLIT_MARKER) * 2
        remaining = line
        while len(remaining) > limit:
            chunks.append(remaining[:split_at] + _SPLIT_MARKER)
            remaining = _SPLIT_MARKER + remaining[split_at:]
        current = remaining + "\n"

    if current.strip():
        chunks.append(current.strip())
    return chunks


def render_report_chunks(log: Log, limit: int = DEFAULT_CHUNK_LIMIT) -> List[Tuple[str, str]]:
    """(title, body) pairs; titles are numbered when the report spans several chunks."""
    title = render_log_title(log)
    bodies = chunk_text(render_log_report(log), limit)
    out: List[Tuple[str, str]] = []
    for i, body in enumerate(bodies, start=1):
        t = f"{title} ({i}/{len(bodies)})" if len(bodies) > 1 else title
        if len(t) > TITLE_LIMIT:
            t = t[: TITLE_LIMIT - len(_SPLIT_MARKER)] + _SPLIT_MARKER
        out.append((t, body))
    return out
