"""Parsers: extract structured facts from one raw body into a `Log`."""

from .environment import EnvironmentParser
from .launcher import LauncherParser
from .loaders import LoaderParser
from .minecraft import MinecraftVersionParser
from .mods import ModsParser

DEFAULT_PARSER_CLASSES = [
    LoaderParser,
    MinecraftVersionParser,
    EnvironmentParser,
    LauncherParser,
    ModsParser,
]

__all__ = [
    "DEFAULT_PARSER_CLASSES",
    "EnvironmentParser",
    "LauncherParser",
    "LoaderParser",
    "MinecraftVersionParser",
    "ModsParser",
]
