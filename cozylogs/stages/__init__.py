"""Stage contracts and registries (retrievers, parsers, processors)."""

from .base import LogParser, LogProcessor, Order, Retriever
from .registry import PipelineRegistry, StageRegistry, build_registry, get_default_registry

__all__ = [
    "LogParser",
    "LogProcessor",
    "Order",
    "PipelineRegistry",
    "Retriever",
    "StageRegistry",
    "build_registry",
    "get_default_registry",
]
