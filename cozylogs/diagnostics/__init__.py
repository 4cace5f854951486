"""Diagnostic processors (rules over an already-parsed `Log`).

Each processor reads extracted facts and the raw content, appends findings, and may abort.
"""

from .entrypoint import EntrypointStageProcessor
from .fabric_impl import FabricImplProcessor
from .known_patterns import KnownPatternsProcessor
from .launcher import UnsupportedLauncherProcessor
from .plugins import NotSupportMarkedPluginProcessor

DEFAULT_PROCESSOR_CLASSES = [
    UnsupportedLauncherProcessor,
    EntrypointStageProcessor,
    NotSupportMarkedPluginProcessor,
    FabricImplProcessor,
    KnownPatternsProcessor,
]

__all__ = [
    "DEFAULT_PROCESSOR_CLASSES",
    "EntrypointStageProcessor",
    "FabricImplProcessor",
    "KnownPatternsProcessor",
    "NotSupportMarkedPluginProcessor",
    "UnsupportedLauncherProcessor",
]
