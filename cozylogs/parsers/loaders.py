from __future__ import annotations

import re
from typing import List, Tuple

from cozylogs.core.models import AnalysisContext, LoaderType, Log, Version
from cozylogs.stages.base import Order

# Ordered: the first pattern that matches for a loader kind wins.
LOADER_PATTERNS: List[Tuple[LoaderType, "re.Pattern[str]"]] = [
    (LoaderType.QUILT, re.compile(r"Loading Minecraft \S+ with Quilt Loader (\S+)")),
    (LoaderType.QUILT, re.compile(r"\|\s*quilt_loader\s*\|\s*(\d[^|\s]*)\s*\|")),
    (LoaderType.FABRIC, re.compile(r"Loading Minecraft \S+ with Fabric Loader (\S+)")),
    (LoaderType.FABRIC, re.compile(r"^\s*fabricloader: Fabric Loader (\S+)", re.MULTILINE)),
    (LoaderType.NEOFORGE, re.compile(r"--fml\.neoForgeVersion,? (\d[^,\s\]]*)")),
    (LoaderType.NEOFORGE, re.compile(r"NeoForge: net\.neoforged:(\S+)")),
    (LoaderType.FORGE, re.compile(r"--fml\.forgeVersion,? (\d[^,\s\]]*)")),
    (LoaderType.FORGE, re.compile(r"Forge: net\.minecraftforge:(\S+)")),
    (LoaderType.FORGE, re.compile(r"MinecraftForge v(\d\S*) Initialized")),
    (LoaderType.PAPER, re.compile(r"This server is running Paper version (?:git-Paper-)?(\S+)")),
    (LoaderType.PURPUR, re.compile(r"This server is running Purpur version (?:git-Purpur-)?(\S+)")),
    (LoaderType.FOLIA, re.compile(r"This server is running Folia version (?:git-Folia-)?(\S+)")),
    (LoaderType.VELOCITY, re.compile(r"Booting up Velocity (\S+)")),
    (LoaderType.WATERFALL, re.compile(r"Enabled Waterfall version git:Waterfall-Bootstrap:(\S+)")),
    (LoaderType.BUNGEECORD, re.compile(r"Enabled BungeeCord version git:BungeeCord-Bootstrap:(\S+)")),
]

CRAFTBUKKIT_RE = re.compile(r"This server is running CraftBukkit version (\S+)")


class LoaderParser:
    identifier = "loaders"
    order = Order.EARLIEST

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return True

    def process(self, log: Log) -> None:
        for kind, pattern in LOADER_PATTERNS:
            if log.get_loader_version(kind) is not None:
                continue
            m = pattern.search(log.content)
            if not m:
                continue
            version = Version.parse(m.group(1).rstrip(".,"))
            if version is not None:
                log.add_loader(kind, version)

        m = CRAFTBUKKIT_RE.search(log.content)
        if m:
            raw = m.group(1)
            kind = LoaderType.SPIGOT if "spigot" in raw.lower() else LoaderType.BUKKIT
            version = Version.parse(raw)
            if version is not None:
                log.add_loader(kind, version)
