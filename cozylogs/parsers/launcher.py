from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from cozylogs.core.models import AnalysisContext, Launcher, Log
from cozylogs.stages.base import Order

# Launcher log headers: (name, pattern with an optional version group).
LAUNCHER_HEADERS: List[Tuple[str, "re.Pattern[str]"]] = [
    ("Prism Launcher", re.compile(r"^Prism Launcher version: (\S+)", re.MULTILINE)),
    ("PolyMC", re.compile(r"^PolyMC version: (\S+)", re.MULTILINE)),
    ("PollyMC", re.compile(r"^PollyMC version: (\S+)", re.MULTILINE)),
    ("MultiMC", re.compile(r"^MultiMC version: (\S+)", re.MULTILINE)),
    ("ATLauncher", re.compile(r"ATLauncher [Vv]ersion:? (\S+)")),
    ("TLauncher", re.compile(r"\[TLauncher\]|tlauncher\.org|[\\/]\.tlauncher[\\/]", re.IGNORECASE)),
]

LAUNCHER_BRAND_RE = re.compile(r"-Dminecraft\.launcher\.brand=([^\s,\]]+)")
LAUNCHER_VERSION_RE = re.compile(r"-Dminecraft\.launcher\.version=([^\s,\]]+)")

LAUNCHER_BRANDS: Dict[str, str] = {
    "prismlauncher": "Prism Launcher",
    "polymc": "PolyMC",
    "multimc": "MultiMC",
    "atlauncher": "ATLauncher",
    "modrinth": "Modrinth App",
    "theseus": "Modrinth App",
    "gdlauncher": "GDLauncher",
    "curseforge": "CurseForge",
    "minecraft-launcher": "Minecraft Launcher",
    "tlauncher": "TLauncher",
}


def _version_from(m: "re.Match[str]") -> Optional[str]:
    if m.re.groups < 1:
        return None
    return (m.group(1) or "").strip() or None


class LauncherParser:
    identifier = "launcher"
    order = Order.DEFAULT

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return log.launcher is None

    def process(self, log: Log) -> None:
        for name, pattern in LAUNCHER_HEADERS:
            m = pattern.search(log.content)
            if m:
                log.launcher = Launcher(name=name, version=_version_from(m))
                return

        brand = LAUNCHER_BRAND_RE.search(log.content)
        if not brand:
            return
        raw = brand.group(1).strip()
        version = LAUNCHER_VERSION_RE.search(log.content)
        log.launcher = Launcher(
            name=LAUNCHER_BRANDS.get(raw.lower(), raw),
            version=version.group(1).strip() if version else None,
        )
