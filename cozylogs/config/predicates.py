"""Global predicate specs: operational policy applied to every stage invocation."""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Union

from pydantic import Field

from cozylogs.core.models import AnalysisContext, BaseModelStrict

StageKind = Literal["retriever", "parser", "processor"]


class DisableStagesSpec(BaseModelStrict):
    """Skip stages by identifier and/or whole stage kinds."""

    type: Literal["disable"] = "disable"
    stages: List[str] = Field(default_factory=list)
    kinds: List[StageKind] = Field(default_factory=list)

    def allows(self, identifier: str, kind: StageKind, context: AnalysisContext) -> bool:
        return identifier not in self.stages and kind not in self.kinds


class ContextAllowlistSpec(BaseModelStrict):
    """
    Run the targeted stages only when `context.attributes[key]` is one of `values`.

    Empty `stages` and `kinds` target every stage.
    """

    type: Literal["context_allowlist"] = "context_allowlist"
    key: str
    values: List[Any] = Field(default_factory=list)
    stages: List[str] = Field(default_factory=list)
    kinds: List[StageKind] = Field(default_factory=list)

    def _targets(self, identifier: str, kind: StageKind) -> bool:
        if self.stages and identifier not in self.stages:
            return False
        if self.kinds and kind not in self.kinds:
            return False
        return True

    def allows(self, identifier: str, kind: StageKind, context: AnalysisContext) -> bool:
        if not self._targets(identifier, kind):
            return True
        value = context.attr(self.key)
        if value is None:
            return False
        # Chat ids arrive as ints or strings depending on the caller.
        return str(value) in {str(v) for v in self.values}


GlobalPredicateSpec = Annotated[Union[DisableStagesSpec, ContextAllowlistSpec], Field(discriminator="type")]
