from __future__ import annotations

from cozylogs.core.models import AnalysisContext, Log
from cozylogs.stages.base import Order

UNSUPPORTED_LAUNCHERS = {"TLauncher"}


class UnsupportedLauncherProcessor:
    """Logs from cracked launchers are not diagnosed."""

    identifier = "unsupported_launcher"
    order = Order.EARLIEST

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return log.launcher is not None and log.launcher.name in UNSUPPORTED_LAUNCHERS

    def process(self, log: Log) -> None:
        name = log.launcher.name if log.launcher else "this launcher"
        log.abort(f"{name} is not supported. Please use the official launcher or a legitimate third-party launcher.")
