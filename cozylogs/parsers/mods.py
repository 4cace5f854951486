"""
Mod and plugin enumeration.

Logs list mods in several formats; the first format that yields entries wins so the same mod
is not counted twice when a log embeds both a launch listing and a crash report.
"""

from __future__ import annotations

import re
from typing import Callable, List

from cozylogs.core.models import AnalysisContext, Log, ModEntry
from cozylogs.stages.base import Order

QUILT_TABLE_HEADER_RE = re.compile(r"^\|\s*Index\s*\|\s*Mod\s*\|", re.MULTILINE)
QUILT_TABLE_ROW_RE = re.compile(
    r"^\|\s*\d+\s*\|\s*(?P<name>[^|]+?)\s*\|\s*(?P<id>[^|\s]+)\s*\|\s*(?P<version>[^|\s]+)\s*\|",
    re.MULTILINE,
)

FABRIC_LIST_HEADER_RE = re.compile(r"Loading \d+ mods:\s*$", re.MULTILINE)
FABRIC_LIST_TOP_RE = re.compile(r"^\s*- (?P<id>\S+) (?P<version>\S+)\s*$")
FABRIC_LIST_NESTED_RE = re.compile(r"^\s*(?:[|\\]\s*)*(?:\|--|\\--)\s")

FABRIC_CRASH_HEADER_RE = re.compile(r"^\s*Fabric Mods:\s*$", re.MULTILINE)
FABRIC_CRASH_ROW_RE = re.compile(r"^\s+(?P<id>[a-z0-9_.-]+): (?P<name>.+) (?P<version>\S+)\s*$")

FORGE_MOD_LIST_HEADER_RE = re.compile(r"^\s*Mod List:\s*$", re.MULTILINE)
FORGE_MOD_ROW_RE = re.compile(
    r"^\s*(?P<file>\S+\.jar)\s*\|(?P<name>[^|]+)\|(?P<id>[^|]+)\|(?P<version>[^|]+)\|",
    re.MULTILINE,
)

BUKKIT_PLUGIN_RE = re.compile(
    r"\]:? \[(?P<name>[^\]\s]+)\] Loading (?:server plugin )?(?P=name) v(?P<version>\S+)",
)
VELOCITY_PLUGIN_RE = re.compile(r"Loaded plugin (?P<id>\S+) (?P<version>\S+) by ")


def _lines_after(content: str, header: "re.Pattern[str]") -> List[str]:
    m = header.search(content)
    if not m:
        return []
    return content[m.end() :].lstrip("\n").split("\n")


def parse_quilt_table(content: str) -> List[ModEntry]:
    if not QUILT_TABLE_HEADER_RE.search(content):
        return []
    return [
        ModEntry(
            name=m.group("id"),
            version=m.group("version"),
            metadata={"display_name": m.group("name"), "format": "quilt_table"},
        )
        for m in QUILT_TABLE_ROW_RE.finditer(content)
    ]


def parse_fabric_list(content: str) -> List[ModEntry]:
    out: List[ModEntry] = []
    for line in _lines_after(content, FABRIC_LIST_HEADER_RE):
        top = FABRIC_LIST_TOP_RE.match(line)
        if top:
            out.append(ModEntry(name=top.group("id"), version=top.group("version"), metadata={"format": "fabric_list"}))
            continue
        if FABRIC_LIST_NESTED_RE.match(line):
            # Jar-in-jar children belong to the mod above.
            continue
        break
    return out


def parse_fabric_crash_report(content: str) -> List[ModEntry]:
    out: List[ModEntry] = []
    indent = None
    for line in _lines_after(content, FABRIC_CRASH_HEADER_RE):
        m = FABRIC_CRASH_ROW_RE.match(line)
        if not m:
            break
        line_indent = len(line) - len(line.lstrip())
        if indent is None:
            indent = line_indent
        if line_indent > indent:
            # Nested (jar-in-jar) entry.
            continue
        if line_indent < indent:
            break
        out.append(
            ModEntry(
                name=m.group("id"),
                version=m.group("version"),
                metadata={"display_name": m.group("name").strip(), "format": "fabric_crash_report"},
            )
        )
    return out


def parse_forge_mod_list(content: str) -> List[ModEntry]:
    m = FORGE_MOD_LIST_HEADER_RE.search(content)
    if not m:
        return []
    return [
        ModEntry(
            name=row.group("id").strip(),
            version=row.group("version").strip(),
            metadata={
                "display_name": row.group("name").strip(),
                "file": row.group("file"),
                "format": "forge_mod_list",
            },
        )
        for row in FORGE_MOD_ROW_RE.finditer(content, m.end())
    ]


def parse_bukkit_plugins(content: str) -> List[ModEntry]:
    return [
        ModEntry(name=m.group("name"), version=m.group("version"), metadata={"format": "bukkit_plugin"})
        for m in BUKKIT_PLUGIN_RE.finditer(content)
    ]


def parse_velocity_plugins(content: str) -> List[ModEntry]:
    return [
        ModEntry(name=m.group("id"), version=m.group("version"), metadata={"format": "velocity_plugin"})
        for m in VELOCITY_PLUGIN_RE.finditer(content)
    ]


MOD_LIST_FORMATS: List[Callable[[str], List[ModEntry]]] = [
    parse_quilt_table,
    parse_fabric_list,
    parse_fabric_crash_report,
    parse_forge_mod_list,
    parse_bukkit_plugins,
    parse_velocity_plugins,
]


class ModsParser:
    identifier = "mods"
    order = Order.LATER

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return not log.mods

    def process(self, log: Log) -> None:
        for fmt in MOD_LIST_FORMATS:
            entries = fmt(log.content)
            if entries:
                for entry in entries:
                    log.add_mod(entry)
                return
