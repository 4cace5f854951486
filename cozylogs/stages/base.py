from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, List, Protocol, Union

from cozylogs.core.models import AnalysisContext, Log

if TYPE_CHECKING:
    from cozylogs.config.remote import ConfigSnapshot


class Order(IntEnum):
    """Coarse execution priority. Lower runs first; plain ints are accepted too."""

    EARLIEST = -200
    EARLIER = -100
    DEFAULT = 0
    LATER = 100
    LATEST = 200


OrderHint = Union[Order, int]


class Retriever(Protocol):
    """
    Turns a URL into zero or more raw text bodies.

    Retrievers are the only stages allowed to block (network I/O) and own their timeouts.
    """

    identifier: str
    order: OrderHint

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        """Return True if this retriever handles `url`."""

    def fetch(self, url: str, config: "ConfigSnapshot") -> List[str]:
        """Return the raw bodies behind `url`. May raise; the pipeline contains it."""


class LogParser(Protocol):
    """
    Extracts structured facts from `log.content` into the log.

    Pure computation: no I/O.
    """

    identifier: str
    order: OrderHint

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        """Return True if this parser should run for the given log."""

    def process(self, log: Log) -> None:
        """Mutate `log` in place."""


class LogProcessor(Protocol):
    """
    Diagnostic rule over an already-parsed log.

    Reads facts, appends messages/embeds, marks problems, may abort.
    """

    identifier: str
    order: OrderHint

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        """Return True if this rule applies to the given log."""

    def process(self, log: Log) -> None:
        """Append findings to `log`."""
