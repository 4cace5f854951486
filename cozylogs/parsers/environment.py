"""Environment facts: Java/JVM, OS, hardware, memory, shaderpack."""

from __future__ import annotations

import re
from typing import List, Tuple

from cozylogs.core.models import AnalysisContext, Log
from cozylogs.stages.base import Order

_M = re.MULTILINE

# (field, pattern, format). The first match per field wins.
ENVIRONMENT_PATTERNS: List[Tuple[str, "re.Pattern[str]", str]] = [
    ("java_version", re.compile(r"^\s*Java Version: (.+?)\s*$", _M), "{}"),
    ("java_version", re.compile(r"Java is version (\S+?),"), "{}"),
    ("java_version", re.compile(r"Java is .*?, version (\S+?),"), "{}"),
    ("jvm_version", re.compile(r"^\s*Java VM Version: (.+?)\s*$", _M), "{}"),
    ("jvm_args", re.compile(r"^\s*JVM Flags: \d+ total;\s*(.+?)\s*$", _M), "{}"),
    ("jvm_args", re.compile(r"^Java Arguments:\s*\n\[(.+?)\]\s*$", _M), "{}"),
    ("os", re.compile(r"^\s*Operating System: (.+?)\s*$", _M), "{}"),
    ("cpu", re.compile(r"^\s*Processor Name: (.+?)\s*$", _M), "{}"),
    ("cpu", re.compile(r"^\s*CPU: (.+?)\s*$", _M), "{}"),
    ("gpu", re.compile(r"^\s*Graphics card #\d+ name: (.+?)\s*$", _M), "{}"),
    ("gpu", re.compile(r"^\s*Backend API: (.+?) GL version", _M), "{}"),
    ("system_memory", re.compile(r"^\s*Physical memory \(MiB\): (\d+)\s*$", _M), "{} MiB"),
    ("system_memory", re.compile(r"^\s*Physical memory \(MB\): (\d+)\s*$", _M), "{} MB"),
    ("game_memory", re.compile(r"^\s*Memory: (.+?)\s*$", _M), "{}"),
    ("shaderpack", re.compile(r"(?:Loaded|Using) shaderpack:? (.+?)\s*$", _M | re.IGNORECASE), "{}"),
]

_DISABLED_SHADERPACK_VALUES = {"(off)", "off", "none", "(internal)"}


class EnvironmentParser:
    identifier = "environment"
    order = Order.DEFAULT

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return True

    def process(self, log: Log) -> None:
        env = log.environment
        for field_name, pattern, fmt in ENVIRONMENT_PATTERNS:
            if getattr(env, field_name) is not None:
                continue
            m = pattern.search(log.content)
            if not m:
                continue
            value = m.group(1).strip()
            if field_name == "shaderpack" and value.lower() in _DISABLED_SHADERPACK_VALUES:
                continue
            env.set_once(field_name, fmt.format(value))
