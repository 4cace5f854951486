"""Canonical domain models (single source of truth).

This file is the one place where we define models used across:
- retrieval (raw bodies become a `Log`)
- parsing (facts extracted into the `Log`)
- diagnostics (findings appended to the `Log`)
- rendering (reports, JSON dumps)

Design note:
- `Log` is mutated in place by every stage. Flags that stages raise (`has_problems`, `aborted`)
  are exposed read-only and only move from False to True.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import total_ordering
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class BaseModelAllowExtra(BaseModel):
    model_config = ConfigDict(extra="allow")


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


_SNAPSHOT_RE = re.compile(r"^(\d{2})w(\d{2})([a-z])$", re.IGNORECASE)
_PRE_RELEASE_RANKS = {"alpha": 0, "a": 0, "beta": 1, "b": 1, "snapshot": 1, "pre": 2, "prerelease": 2, "rc": 3}
_RELEASE_RANK = 4


def _ints(raw: str) -> Tuple[int, ...]:
    return tuple(int(x) for x in re.findall(r"\d+", raw))


def _version_sort_key(raw: str) -> Tuple[int, Tuple[int, ...], int, Tuple[int, ...]]:
    s = raw.strip()
    snap = _SNAPSHOT_RE.match(s)
    if snap:
        # Weekly snapshots (23w13a) sort among themselves, before any release.
        return 0, (int(snap.group(1)), int(snap.group(2)), ord(snap.group(3).lower())), 0, ()

    s = s.split("+", 1)[0]
    m = re.match(r"^([^- ]*)[- ]?(.*)$", s)
    main, suffix = (m.group(1), m.group(2)) if m else (s, "")

    release: List[int] = []
    for part in main.split("."):
        if not part.isdigit():
            break
        release.append(int(part))
    while len(release) < 4:
        release.append(0)

    rank = _RELEASE_RANK
    lowered = suffix.lower().replace("-", "").replace(" ", "")
    for tag, tag_rank in sorted(_PRE_RELEASE_RANKS.items(), key=lambda kv: -len(kv[0])):
        if lowered.startswith(tag):
            rank = tag_rank
            break
    return 1, tuple(release), rank, _ints(suffix)


@total_ordering
class Version(BaseModelStrict):
    """A parsed, comparable version string (Minecraft releases, snapshots, loader versions)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    string: str

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["Version"]:
        s = (raw or "").strip()
        if not s:
            return None
        return cls(string=s)

    @property
    def is_snapshot(self) -> bool:
        return bool(_SNAPSHOT_RE.match(self.string))

    def sort_key(self) -> Tuple[int, Tuple[int, ...], int, Tuple[int, ...]]:
        return _version_sort_key(self.string)

    # Equality follows the sort key so "1.20" and "1.20.0" compare equal and ordering stays total.
    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.string


class LoaderType(str, Enum):
    QUILT = "quilt"
    FABRIC = "fabric"
    FORGE = "forge"
    NEOFORGE = "neoforge"
    PAPER = "paper"
    PURPUR = "purpur"
    FOLIA = "folia"
    SPIGOT = "spigot"
    BUKKIT = "bukkit"
    VELOCITY = "velocity"
    BUNGEECORD = "bungeecord"
    WATERFALL = "waterfall"

    @property
    def display_name(self) -> str:
        return {
            LoaderType.NEOFORGE: "NeoForge",
            LoaderType.BUNGEECORD: "BungeeCord",
        }.get(self, self.value.capitalize())


PLUGIN_PLATFORMS = frozenset(
    {
        LoaderType.PAPER,
        LoaderType.PURPUR,
        LoaderType.FOLIA,
        LoaderType.SPIGOT,
        LoaderType.BUKKIT,
        LoaderType.VELOCITY,
        LoaderType.BUNGEECORD,
        LoaderType.WATERFALL,
    }
)


class Environment(BaseModelStrict):
    java_version: Optional[str] = None
    jvm_version: Optional[str] = None
    jvm_args: Optional[str] = None
    os: Optional[str] = None
    cpu: Optional[str] = None
    gpu: Optional[str] = None
    system_memory: Optional[str] = None
    game_memory: Optional[str] = None
    shaderpack: Optional[str] = None

    def set_once(self, field_name: str, value: Optional[str]) -> bool:
        """Set `field_name` only if it is still unset. Returns True if the value was written."""
        if field_name not in type(self).model_fields:
            raise KeyError(field_name)
        v = (value or "").strip()
        if not v or getattr(self, field_name) is not None:
            return False
        setattr(self, field_name, v)
        return True


class Launcher(BaseModelStrict):
    name: str
    version: Optional[str] = None


class ModEntry(BaseModelStrict):
    name: str
    version: str
    metadata: Dict[str, str] = Field(default_factory=dict)


class Log(BaseModelStrict):
    """Facts and findings for one raw text body."""

    content: str = Field(frozen=True)
    url: Optional[str] = None

    environment: Environment = Field(default_factory=Environment)
    launcher: Optional[Launcher] = None
    minecraft_version: Optional[Version] = None

    loaders: Dict[LoaderType, Version] = Field(default_factory=dict)
    mods: List[ModEntry] = Field(default_factory=list)

    # Render callbacks contributed by processors; the pipeline never calls them.
    extra_embeds: List[Callable[..., Any]] = Field(default_factory=list, exclude=True)

    # Contained stage failures, e.g. "Parser(mods): ValueError(...)".
    errors: List[str] = Field(default_factory=list)

    _messages: List[str] = PrivateAttr(default_factory=list)
    _has_problems: bool = PrivateAttr(default=False)
    _aborted: bool = PrivateAttr(default=False)
    _abort_reason: Optional[str] = PrivateAttr(default=None)

    @property
    def messages(self) -> Tuple[str, ...]:
        """Findings so far, in emission order. Append through `add_message()`."""
        return tuple(self._messages)

    @property
    def has_problems(self) -> bool:
        return self._has_problems

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def abort_reason(self) -> Optional[str]:
        return self._abort_reason

    def mark_problems(self) -> None:
        self._has_problems = True

    def abort(self, reason: str) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._abort_reason = reason

    def add_message(self, message: str) -> None:
        self._messages.append(message)

    def add_mod(self, mod: ModEntry) -> None:
        self.mods.append(mod)

    def add_loader(self, kind: LoaderType, version: Version) -> bool:
        if kind in self.loaders:
            return False
        self.loaders[kind] = version
        return True

    def get_loader_version(self, kind: LoaderType) -> Optional[Version]:
        return self.loaders.get(kind)

    def is_plugin_platform(self) -> bool:
        return any(k in PLUGIN_PLATFORMS for k in self.loaders)

    def add_extra_embed(self, embed: Callable[..., Any]) -> None:
        self.extra_embeds.append(embed)


class AnalysisContext(BaseModelStrict):
    """
    The originating message/event for one analysis.

    Opaque to the pipeline: only stage predicates and global predicates look at it.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    event: Any = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    def attr(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)
