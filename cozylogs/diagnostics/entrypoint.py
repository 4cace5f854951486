from __future__ import annotations

import re

from cozylogs.core.models import AnalysisContext, Log
from cozylogs.stages.base import Order

ENTRYPOINT_ERROR_RE = re.compile(
    r"Could not execute entrypoint stage '(.+?)' due to errors, provided by '(.+?)' at '(.+?)'!",
    re.IGNORECASE,
)


class EntrypointStageProcessor:
    """A mod's entrypoint threw during startup. Runs early so later rules can see the finding."""

    identifier = "entrypoint_stage_error"
    order = Order.EARLIER

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return True

    def process(self, log: Log) -> None:
        m = ENTRYPOINT_ERROR_RE.search(log.content)
        if not m:
            return

        stage, mod_id, class_name = m.group(1), m.group(2), m.group(3)
        log.add_message(f"**Entrypoint `{stage}` provided by mod `{mod_id}` failed during startup**\n- `{class_name}`")
        log.mark_problems()
