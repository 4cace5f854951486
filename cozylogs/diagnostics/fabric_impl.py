"""
Quilt-only heuristic: a mod crashing on a missing Fabric implementation class is probably
reaching into Fabric API internals that Quilt's compatibility layer does not provide.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cozylogs.core.models import AnalysisContext, LoaderType, Log
from cozylogs.diagnostics.entrypoint import ENTRYPOINT_ERROR_RE
from cozylogs.stages.base import Order

CLASS_NOT_FOUND_PREFIX = "Caused by: java.lang.ClassNotFoundException:"


class ScanState(Enum):
    SEARCHING_FOR_TRIGGER = "searching-for-trigger"
    SEARCHING_FOR_CORROBORATION = "searching-for-corroboration"
    DONE = "done"


@dataclass
class InternalsScan:
    state: ScanState = ScanState.SEARCHING_FOR_TRIGGER
    trigger_line: Optional[int] = None
    suspected_mod: Optional[str] = None
    missing_class: Optional[str] = None

    def feed(self, index: int, line: str) -> None:
        if self.state is ScanState.SEARCHING_FOR_TRIGGER:
            m = ENTRYPOINT_ERROR_RE.search(line)
            if m:
                self.trigger_line = index
                self.suspected_mod = m.group(2).strip()
                self.state = ScanState.SEARCHING_FOR_CORROBORATION
            return

        if self.state is ScanState.SEARCHING_FOR_CORROBORATION:
            if self.trigger_line is not None and index > self.trigger_line and line.startswith(CLASS_NOT_FOUND_PREFIX):
                self.missing_class = line.split("ClassNotFoundException:", 1)[1].strip() or None
                if self.missing_class:
                    self.state = ScanState.DONE


def is_fabric_internal(class_name: str) -> bool:
    return ".fabricmc." in class_name and (".impl." in class_name or ".mixin." in class_name)


class FabricImplProcessor:
    identifier = "quilt-fabric-impl"
    order = Order.DEFAULT

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return log.get_loader_version(LoaderType.QUILT) is not None

    def process(self, log: Log) -> None:
        scan = InternalsScan()
        for index, line in enumerate(log.content.split("\n")):
            scan.feed(index, line)
            if scan.state is ScanState.DONE:
                break

        if scan.suspected_mod and scan.missing_class and is_fabric_internal(scan.missing_class):
            log.mark_problems()
            log.add_message(f"Mod `{scan.suspected_mod}` may be using Fabric internals:\n`{scan.missing_class}`")
