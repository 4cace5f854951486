from __future__ import annotations

from typing import List, Optional

from cozylogs.core.models import AnalysisContext, Log
from cozylogs.diagnostics.log_pattern_matcher import LogPattern, LogPatternMatcher
from cozylogs.diagnostics.patterns import ALL_PATTERNS
from cozylogs.stages.base import Order


class KnownPatternsProcessor:
    """One message per matching pattern of the crash-cause library, in library order."""

    identifier = "known_patterns"
    order = Order.DEFAULT

    def __init__(self, patterns: Optional[List[LogPattern]] = None) -> None:
        self.matcher = LogPatternMatcher(ALL_PATTERNS if patterns is None else patterns)

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return bool(log.content)

    def process(self, log: Log) -> None:
        for pattern, ctx in self.matcher.find_matches(log.content):
            log.add_message(pattern.render(ctx))
            if pattern.is_problem:
                log.mark_problems()
