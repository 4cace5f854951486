from __future__ import annotations

import pytest

from cozylogs.core.errors import DuplicateStageError
from cozylogs.stages.base import Order
from cozylogs.stages.registry import PipelineRegistry, StageRegistry, build_registry


class _Stage:
    def __init__(self, identifier: str, order: int) -> None:
        self.identifier = identifier
        self.order = order


def test_ordered_is_stable_for_equal_priorities() -> None:
    reg: StageRegistry[_Stage] = StageRegistry("parser")
    reg.register(_Stage("A", Order.DEFAULT))
    reg.register(_Stage("B", Order.EARLIER))
    reg.register(_Stage("C", Order.DEFAULT))

    assert reg.identifiers() == ["B", "A", "C"]
    assert [s.identifier for s in reg] == ["B", "A", "C"]


def test_plain_int_orders_are_accepted() -> None:
    reg: StageRegistry[_Stage] = StageRegistry("processor")
    reg.register(_Stage("late", 150))
    reg.register(_Stage("first", -500))
    reg.register(_Stage("default", 0))
    assert reg.identifiers() == ["first", "default", "late"]


def test_duplicate_identifier_is_rejected() -> None:
    reg: StageRegistry[_Stage] = StageRegistry("retriever")
    reg.register(_Stage("pastebin", 0))
    with pytest.raises(DuplicateStageError):
        reg.register(_Stage("pastebin", 100))
    assert len(reg) == 1


def test_missing_identifier_is_rejected() -> None:
    reg: StageRegistry[_Stage] = StageRegistry("parser")
    with pytest.raises(ValueError):
        reg.register(_Stage("", 0))


def test_same_identifier_in_different_kinds_is_allowed() -> None:
    reg = PipelineRegistry()
    reg.parsers.register(_Stage("launcher", 0))
    reg.processors.register(_Stage("launcher", 0))
    assert reg.parsers.get("launcher") is not None
    assert reg.processors.get("launcher") is not None


def test_default_registry_contains_expected_stages() -> None:
    reg = build_registry()
    assert reg.retrievers.identifiers() == ["attachment", "pastebin", "mclogs", "github_gist", "local_file"]
    assert reg.parsers.identifiers() == ["loaders", "minecraft_version", "environment", "launcher", "mods"]
    assert reg.processors.identifiers() == [
        "unsupported_launcher",
        "entrypoint_stage_error",
        "unsupported_loader_plugins",
        "quilt-fabric-impl",
        "known_patterns",
    ]
