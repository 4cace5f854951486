"""Error taxonomy.

Stage errors are always contained by the pipeline (logged, recorded on the `Log` where one exists).
Only registration-time and strict config-bootstrap errors propagate.
"""

from __future__ import annotations

from typing import Optional


class CozyLogsError(Exception):
    pass


class StageError(CozyLogsError):
    """A single stage invocation failed."""

    stage_kind = "Stage"

    def __init__(self, identifier: str, url: Optional[str], cause: Optional[BaseException] = None) -> None:
        self.identifier = identifier
        self.url = url
        self.cause = cause
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"{self.stage_kind} {identifier} failed for URL {url}{detail}")


class RetrievalError(StageError):
    stage_kind = "Retriever"


class ParseError(StageError):
    stage_kind = "Parser"


class ProcessError(StageError):
    stage_kind = "Processor"


class DuplicateStageError(CozyLogsError):
    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"A {kind} with identifier {identifier!r} is already registered")


class ConfigRefreshError(CozyLogsError):
    pass


class AnalysisCancelledError(CozyLogsError):
    pass
