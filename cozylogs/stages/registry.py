from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

from cozylogs.core.errors import DuplicateStageError
from cozylogs.core.models import AnalysisContext
from cozylogs.stages.base import LogParser, LogProcessor, Retriever

StageT = TypeVar("StageT")

GlobalPredicate = Callable[[Any, AnalysisContext], bool]


@dataclass
class StageRegistry(Generic[StageT]):
    kind: str
    stages: List[StageT] = field(default_factory=list)

    def register(self, stage: StageT) -> StageT:
        identifier = getattr(stage, "identifier", None)
        if not identifier:
            raise ValueError(f"{self.kind} {stage!r} has no identifier")
        if self.get(identifier) is not None:
            raise DuplicateStageError(self.kind, identifier)
        self.stages.append(stage)
        return stage

    def get(self, identifier: str) -> Optional[StageT]:
        for s in self.stages:
            if getattr(s, "identifier", None) == identifier:
                return s
        return None

    def ordered(self) -> List[StageT]:
        # sorted() is stable: equal priorities keep registration order.
        return sorted(self.stages, key=lambda s: int(getattr(s, "order", 0)))

    def identifiers(self) -> List[str]:
        return [getattr(s, "identifier", "") for s in self.ordered()]

    def __iter__(self) -> Iterator[StageT]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self.stages)


@dataclass
class PipelineRegistry:
    retrievers: StageRegistry[Retriever] = field(default_factory=lambda: StageRegistry("retriever"))
    parsers: StageRegistry[LogParser] = field(default_factory=lambda: StageRegistry("parser"))
    processors: StageRegistry[LogProcessor] = field(default_factory=lambda: StageRegistry("processor"))
    global_predicates: List[GlobalPredicate] = field(default_factory=list)

    def add_global_predicate(self, predicate: GlobalPredicate) -> None:
        self.global_predicates.append(predicate)


def build_registry() -> PipelineRegistry:
    """Fresh registry holding every default stage."""
    reg = PipelineRegistry()
    # Explicit composition (single source of truth lives in each stage package).
    from cozylogs.diagnostics import DEFAULT_PROCESSOR_CLASSES  # noqa: WPS433
    from cozylogs.parsers import DEFAULT_PARSER_CLASSES  # noqa: WPS433
    from cozylogs.retrievers import DEFAULT_RETRIEVER_CLASSES  # noqa: WPS433

    for cls in DEFAULT_RETRIEVER_CLASSES:
        reg.retrievers.register(cls())
    for cls in DEFAULT_PARSER_CLASSES:
        reg.parsers.register(cls())
    for cls in DEFAULT_PROCESSOR_CLASSES:
        reg.processors.register(cls())
    return reg


_DEFAULT_REGISTRY: PipelineRegistry | None = None


def get_default_registry() -> PipelineRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is not None:
        return _DEFAULT_REGISTRY
    _DEFAULT_REGISTRY = build_registry()
    return _DEFAULT_REGISTRY
