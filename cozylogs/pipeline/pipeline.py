"""Analysis pipeline orchestrator.

`Log` is the single source of truth. Retrievers produce raw bodies, parsers populate a `Log` per
body, processors append findings. Stage failures are contained: logged, recorded on the log, and
treated as a no-op for that one stage call.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Iterable, List, Optional, Sequence

from cozylogs.config.predicates import StageKind
from cozylogs.config.remote import ConfigSnapshot
from cozylogs.config.settings import load_settings
from cozylogs.core.errors import AnalysisCancelledError, ParseError, ProcessError, RetrievalError
from cozylogs.core.models import AnalysisContext, Log
from cozylogs.pipeline.links import extract_links, merge_links
from cozylogs.stages.base import LogParser, LogProcessor
from cozylogs.stages.registry import PipelineRegistry, get_default_registry

logger = logging.getLogger(__name__)

_CANCEL_POLL_SECONDS = 0.1


def normalize_line_endings(body: str) -> str:
    return body.replace("\r\n", "\n")


def stage_allowed(
    stage: Any,
    kind: StageKind,
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> bool:
    """Global predicates (registry + config snapshot) gate a stage before its own predicate."""
    identifier = str(getattr(stage, "identifier", ""))
    for predicate in registry.global_predicates:
        if not predicate(stage, context):
            return False
    return config.allows(identifier, kind, context)


def run_retrievers(
    url: str,
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> List[str]:
    """All applicable retrievers, in order; bodies concatenated and line endings normalized."""
    bodies: List[str] = []
    for retriever in registry.retrievers.ordered():
        rid = retriever.identifier
        try:
            if not stage_allowed(retriever, "retriever", context, config=config, registry=registry):
                continue
            if not retriever.predicate(url, context):
                continue
            fetched = retriever.fetch(url, config)
        except RetrievalError as e:
            logger.exception("%s", e)
            continue
        except Exception as e:
            err = RetrievalError(rid, url, e)
            logger.exception("%s", err)
            continue

        for body in fetched or []:
            if isinstance(body, bytes):
                body = body.decode("utf-8", errors="replace")
            bodies.append(normalize_line_endings(str(body)))
        logger.debug("Retriever %s returned %d body(ies) for %s", rid, len(fetched or []), url)
    return bodies


def build_log(body: str, url: Optional[str]) -> Log:
    return Log(content=normalize_line_endings(body), url=url)


def _run_log_stages(
    log: Log,
    stages: Sequence[Any],
    kind: StageKind,
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> None:
    error_cls = ParseError if kind == "parser" else ProcessError
    label = "Parser" if kind == "parser" else "Processor"
    for stage in stages:
        if log.aborted:
            break
        sid = stage.identifier
        try:
            if not stage_allowed(stage, kind, context, config=config, registry=registry):
                continue
            if not stage.predicate(log, context):
                continue
            stage.process(log)
        except Exception as e:
            err = e if isinstance(e, error_cls) else error_cls(sid, log.url, e)
            logger.exception("%s", err)
            log.errors.append(f"{label}({sid}): {type(e).__name__}: {e}")


def run_parsers(
    log: Log,
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> None:
    parsers: List[LogParser] = registry.parsers.ordered()
    _run_log_stages(log, parsers, "parser", context, config=config, registry=registry)


def run_processors(
    log: Log,
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> None:
    processors: List[LogProcessor] = registry.processors.ordered()
    _run_log_stages(log, processors, "processor", context, config=config, registry=registry)


def analyze_body(
    body: str,
    url: Optional[str],
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
) -> Log:
    log = build_log(body, url)
    run_parsers(log, context, config=config, registry=registry)
    # An abort during parsing ends this log: no processor runs.
    if not log.aborted:
        run_processors(log, context, config=config, registry=registry)
    return log


def _retrieve_all(
    links: List[str],
    context: AnalysisContext,
    *,
    config: ConfigSnapshot,
    registry: PipelineRegistry,
    max_workers: int,
    cancel_event: Optional[threading.Event],
    strict: bool,
) -> Dict[str, List[str]]:
    if not links:
        return {}

    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(links))), thread_name_prefix="cozylogs-fetch")
    futures: Dict[str, Future] = {
        link: executor.submit(run_retrievers, link, context, config=config, registry=registry) for link in links
    }
    cancelled = False
    try:
        pending = set(futures.values())
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            _done, pending = wait(pending, timeout=_CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
    finally:
        executor.shutdown(wait=not cancelled, cancel_futures=cancelled)

    if cancelled:
        if strict:
            raise AnalysisCancelledError("analysis cancelled while retrieving links")
        logger.info(
            "Analysis cancelled; keeping results for %d of %d link(s)",
            sum(1 for f in futures.values() if f.done() and not f.cancelled()),
            len(links),
        )

    results: Dict[str, List[str]] = {}
    for link in links:
        f = futures[link]
        if not f.done() or f.cancelled():
            continue
        # run_retrievers contains every retriever failure; nothing to catch here.
        results[link] = f.result()
    return results


def analyze(
    text: str,
    attachment_urls: Iterable[str] = (),
    context: Optional[AnalysisContext] = None,
    *,
    config: ConfigSnapshot,
    registry: Optional[PipelineRegistry] = None,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    strict: bool = False,
) -> List[Log]:
    """
    Analyze every log reachable from one incoming message.

    Returns every completed log (including ones without findings), ordered by link discovery
    order and, within a link, by retriever order. Filtering is the caller's concern.
    """
    ctx = context or AnalysisContext()
    reg = registry or get_default_registry()

    links = merge_links(extract_links(text or "", config.compiled_url_regex()), attachment_urls)
    if not links:
        return []
    logger.info("Analyzing %d link(s)", len(links))

    bodies_by_link = _retrieve_all(
        links,
        ctx,
        config=config,
        registry=reg,
        max_workers=max_workers or load_settings().retrieval_max_workers,
        cancel_event=cancel_event,
        strict=strict,
    )

    logs: List[Log] = []
    for link in links:
        for body in bodies_by_link.get(link, []):
            logs.append(analyze_body(body, link, ctx, config=config, registry=reg))
    logger.info("Analysis produced %d log(s) from %d link(s)", len(logs), len(links))
    return logs
