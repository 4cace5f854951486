from __future__ import annotations

import re

from cozylogs.core.models import AnalysisContext, Log
from cozylogs.stages.base import Order

# Could not load plugin 'PluginName vX.X.X' as it is not marked as supporting Loader!
UNSUPPORTED_LOADER_RE = re.compile(
    r"Could not load plugin '(.+?)' as it is not marked as supporting (\w+)!",
    re.IGNORECASE,
)


class NotSupportMarkedPluginProcessor:
    identifier = "unsupported_loader_plugins"
    order = Order.EARLIER

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return True

    def process(self, log: Log) -> None:
        for m in UNSUPPORTED_LOADER_RE.finditer(log.content):
            plugin = m.group(1).strip()
            loader = m.group(2).strip()

            log.add_message(
                f"**Plugin `{plugin}` is not marked as supporting `{loader}`.**\n"
                f"This plugin must explicitly declare support for `{loader}` or be updated."
            )
            log.mark_problems()
