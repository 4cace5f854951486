from __future__ import annotations

import re

from cozylogs.core.models import AnalysisContext, Log, Version
from cozylogs.stages.base import Order

MINECRAFT_VERSION_PATTERNS = [
    re.compile(r"Loading Minecraft (\S+) with"),
    re.compile(r"^\s*Minecraft Version: (\S+)", re.MULTILINE),
    re.compile(r"^\s*Minecraft Version ID: (\S+)", re.MULTILINE),
    re.compile(r"Starting minecraft server version (\S+)"),
    re.compile(r"--fml\.mcVersion,? (\d[^,\s\]]*)"),
    re.compile(r"\(MC: (\S+?)\)"),
]


class MinecraftVersionParser:
    identifier = "minecraft_version"
    order = Order.EARLIER

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return log.minecraft_version is None

    def process(self, log: Log) -> None:
        for pattern in MINECRAFT_VERSION_PATTERNS:
            m = pattern.search(log.content)
            if m:
                log.minecraft_version = Version.parse(m.group(1))
                if log.minecraft_version is not None:
                    return
