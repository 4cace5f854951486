from __future__ import annotations

import threading
from typing import Dict, List, Optional

import pytest

from cozylogs.config.predicates import ContextAllowlistSpec, DisableStagesSpec
from cozylogs.config.remote import ConfigSnapshot
from cozylogs.core.errors import AnalysisCancelledError
from cozylogs.core.models import AnalysisContext, Log
from cozylogs.pipeline.links import extract_links, merge_links
from cozylogs.pipeline.pipeline import analyze, analyze_body, run_processors
from cozylogs.stages.base import Order
from cozylogs.stages.registry import PipelineRegistry


class _DictRetriever:
    """Serves canned bodies for known URLs."""

    def __init__(self, bodies: Dict[str, List[str]], identifier: str = "canned", order: int = Order.DEFAULT) -> None:
        self.bodies = bodies
        self.identifier = identifier
        self.order = order
        self.calls: List[str] = []

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return url in self.bodies

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        self.calls.append(url)
        return list(self.bodies[url])


class _FailingRetriever:
    identifier = "failing"
    order = Order.EARLIEST

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return True

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        raise ConnectionError("boom")


class _RecordingProcessor:
    def __init__(
        self,
        identifier: str,
        order: int = Order.DEFAULT,
        *,
        abort: Optional[str] = None,
        fail: bool = False,
        message: Optional[str] = None,
    ) -> None:
        self.identifier = identifier
        self.order = order
        self.abort_reason = abort
        self.fail = fail
        self.message = message
        self.ran: List[str] = []

    def predicate(self, log: Log, context: AnalysisContext) -> bool:
        return True

    def process(self, log: Log) -> None:
        self.ran.append(log.content)
        if self.fail:
            raise RuntimeError(f"{self.identifier} exploded")
        if self.message:
            log.add_message(self.message)
        if self.abort_reason:
            log.abort(self.abort_reason)


def _registry(*retrievers, parsers=(), processors=()) -> PipelineRegistry:
    reg = PipelineRegistry()
    for r in retrievers:
        reg.retrievers.register(r)
    for p in parsers:
        reg.parsers.register(p)
    for p in processors:
        reg.processors.register(p)
    return reg


def test_extract_links_dedupes_in_discovery_order() -> None:
    cfg = ConfigSnapshot()
    text = "see https://b.example/1 and https://a.example/2, also https://b.example/1."
    assert extract_links(text, cfg.compiled_url_regex()) == ["https://b.example/1", "https://a.example/2"]
    assert extract_links("", cfg.url_regex) == []
    assert merge_links(["https://a/1"], ["https://b/2", "https://a/1"]) == ["https://a/1", "https://b/2"]


def test_results_follow_link_then_retriever_order() -> None:
    first = _DictRetriever({"https://x.example/1": ["x1-a"], "https://y.example/2": ["y2-a"]}, "first", Order.EARLIER)
    second = _DictRetriever({"https://x.example/1": ["x1-b"]}, "second", Order.DEFAULT)
    reg = _registry(second, first)

    logs = analyze(
        "https://y.example/2 then https://x.example/1",
        config=ConfigSnapshot(),
        registry=reg,
        max_workers=4,
    )
    assert [(log.url, log.content) for log in logs] == [
        ("https://y.example/2", "y2-a"),
        ("https://x.example/1", "x1-a"),
        ("https://x.example/1", "x1-b"),
    ]


def test_analysis_is_deterministic() -> None:
    bodies = {f"https://h.example/{i}": [f"body {i}"] for i in range(8)}
    reg = _registry(_DictRetriever(bodies), processors=[_RecordingProcessor("p", message="hello")])
    text = " ".join(bodies)

    runs = [
        [(log.url, log.content, list(log.messages)) for log in analyze(text, config=ConfigSnapshot(), registry=reg)]
        for _ in range(3)
    ]
    assert runs[0] == runs[1] == runs[2]
    assert [u for u, _, _ in runs[0]] == list(bodies)


def test_line_endings_are_normalized() -> None:
    reg = _registry(_DictRetriever({"https://h.example/crlf": ["line one\r\nline two\r\n"]}))
    logs = analyze("https://h.example/crlf", config=ConfigSnapshot(), registry=reg)
    assert logs[0].content == "line one\nline two\n"


def test_link_without_retriever_yields_nothing() -> None:
    reg = _registry(_DictRetriever({}))
    assert analyze("look at https://unknown.example/log", config=ConfigSnapshot(), registry=reg) == []


def test_text_without_links_yields_nothing() -> None:
    reg = _registry(_DictRetriever({}))
    assert analyze("no links here", config=ConfigSnapshot(), registry=reg) == []


def test_retriever_failure_is_contained() -> None:
    good = _DictRetriever({"https://h.example/1": ["ok"]})
    reg = _registry(_FailingRetriever(), good)
    logs = analyze("https://h.example/1", config=ConfigSnapshot(), registry=reg)
    assert [log.content for log in logs] == ["ok"]


def test_all_retrievers_failing_yields_empty_list() -> None:
    reg = _registry(_FailingRetriever())
    assert analyze("https://h.example/1 https://h.example/2", config=ConfigSnapshot(), registry=reg) == []


def test_attachments_are_analyzed_after_text_links() -> None:
    retriever = _DictRetriever({"https://h.example/text": ["t"], "https://cdn.example/latest.log": ["a"]})
    reg = _registry(retriever)
    logs = analyze(
        "https://h.example/text",
        ["https://cdn.example/latest.log"],
        config=ConfigSnapshot(),
        registry=reg,
    )
    assert [log.content for log in logs] == ["t", "a"]


def test_abort_stops_later_processors() -> None:
    aborter = _RecordingProcessor("aborter", Order.EARLIER, abort="unsupported")
    later = _RecordingProcessor("later", Order.DEFAULT)
    reg = _registry(processors=[later, aborter])

    log = analyze_body("content", "https://h.example/1", AnalysisContext(), config=ConfigSnapshot(), registry=reg)
    assert log.aborted
    assert log.abort_reason == "unsupported"
    assert aborter.ran == ["content"]
    assert later.ran == []


def test_abort_during_parsing_skips_every_processor() -> None:
    parser = _RecordingProcessor("parser", abort="not a log")
    processor = _RecordingProcessor("processor")
    reg = _registry(parsers=[parser], processors=[processor])

    log = analyze_body("content", None, AnalysisContext(), config=ConfigSnapshot(), registry=reg)
    assert log.aborted
    assert processor.ran == []


def test_processor_failure_is_contained_and_recorded() -> None:
    broken = _RecordingProcessor("broken", Order.EARLIER, fail=True)
    healthy = _RecordingProcessor("healthy", Order.DEFAULT, message="found something")
    reg = _registry(processors=[broken, healthy])

    log = Log(content="content")
    run_processors(log, AnalysisContext(), config=ConfigSnapshot(), registry=reg)

    assert list(log.messages) == ["found something"]
    assert len(log.errors) == 1
    assert log.errors[0].startswith("Processor(broken): RuntimeError")
    assert healthy.ran == ["content"]


def test_registry_global_predicate_gates_stages() -> None:
    skipped = _RecordingProcessor("skipped")
    kept = _RecordingProcessor("kept")
    reg = _registry(processors=[skipped, kept])
    reg.add_global_predicate(lambda stage, ctx: stage.identifier != "skipped")

    run_processors(Log(content="c"), AnalysisContext(), config=ConfigSnapshot(), registry=reg)
    assert skipped.ran == []
    assert kept.ran == ["c"]


def test_config_disable_spec_gates_stages() -> None:
    retriever = _DictRetriever({"https://h.example/1": ["body"]})
    processor = _RecordingProcessor("noisy")
    reg = _registry(retriever, processors=[processor])
    cfg = ConfigSnapshot(global_predicates=[DisableStagesSpec(stages=["noisy"])])

    logs = analyze("https://h.example/1", config=cfg, registry=reg)
    assert len(logs) == 1
    assert processor.ran == []

    cfg_no_retrieval = ConfigSnapshot(global_predicates=[DisableStagesSpec(kinds=["retriever"])])
    assert analyze("https://h.example/1", config=cfg_no_retrieval, registry=reg) == []


def test_config_context_allowlist_gates_on_context_attributes() -> None:
    retriever = _DictRetriever({"https://h.example/1": ["body"]})
    reg = _registry(retriever)
    cfg = ConfigSnapshot(global_predicates=[ContextAllowlistSpec(key="channel_id", values=[123], kinds=["retriever"])])

    allowed = analyze("https://h.example/1", context=AnalysisContext(attributes={"channel_id": "123"}), config=cfg, registry=reg)
    denied = analyze("https://h.example/1", context=AnalysisContext(attributes={"channel_id": "999"}), config=cfg, registry=reg)
    missing = analyze("https://h.example/1", context=AnalysisContext(), config=cfg, registry=reg)

    assert len(allowed) == 1
    assert denied == []
    assert missing == []


class _BlockingRetriever:
    """Finishes `fast` immediately; blocks on every other URL until released."""

    identifier = "blocking"
    order = Order.DEFAULT

    def __init__(self, fast: str) -> None:
        self.fast = fast
        self.release = threading.Event()
        self.fast_done = threading.Event()

    def predicate(self, url: str, context: AnalysisContext) -> bool:
        return True

    def fetch(self, url: str, config: ConfigSnapshot) -> List[str]:
        if url == self.fast:
            self.fast_done.set()
            return ["fast body"]
        self.release.wait(5)
        return ["slow body"]


def test_cancellation_returns_completed_links_only() -> None:
    retriever = _BlockingRetriever("https://h.example/fast")
    reg = _registry(retriever)
    cancel = threading.Event()

    def _cancel_after_fast() -> None:
        retriever.fast_done.wait(5)
        cancel.set()

    t = threading.Thread(target=_cancel_after_fast)
    t.start()
    try:
        logs = analyze(
            "https://h.example/slow https://h.example/fast",
            config=ConfigSnapshot(),
            registry=reg,
            max_workers=2,
            cancel_event=cancel,
        )
    finally:
        retriever.release.set()
        t.join()

    assert [log.content for log in logs] == ["fast body"]


def test_strict_cancellation_raises() -> None:
    retriever = _BlockingRetriever("https://h.example/fast")
    reg = _registry(retriever)
    cancel = threading.Event()
    cancel.set()
    try:
        with pytest.raises(AnalysisCancelledError):
            analyze("https://h.example/slow", config=ConfigSnapshot(), registry=reg, cancel_event=cancel, strict=True)
    finally:
        retriever.release.set()


def test_abort_in_middle_parser_skips_later_parsers_and_processors() -> None:
    p1 = _RecordingProcessor("p1", Order.EARLIER)
    p2 = _RecordingProcessor("p2", Order.DEFAULT, abort="not a game log")
    p3 = _RecordingProcessor("p3", Order.LATER)
    processor = _RecordingProcessor("processor")
    reg = _registry(parsers=[p3, p1, p2], processors=[processor])

    log = analyze_body("content", None, AnalysisContext(), config=ConfigSnapshot(), registry=reg)

    assert log.aborted
    assert log.abort_reason == "not a game log"
    assert p1.ran == ["content"]
    assert p2.ran == ["content"]
    assert p3.ran == []
    assert processor.ran == []


def test_configured_pattern_group_is_used_verbatim() -> None:
    assert extract_links("see <https://example.com/crash!>", r"<(https?://\S+?)>") == ["https://example.com/crash!"]


def test_default_pattern_excludes_trailing_punctuation() -> None:
    pattern = ConfigSnapshot().compiled_url_regex()
    text = "crashed: https://mclo.gs/abc. Also (https://pastebin.com/xyz)! and https://h.example/a?b=1"
    assert extract_links(text, pattern) == [
        "https://mclo.gs/abc",
        "https://pastebin.com/xyz",
        "https://h.example/a?b=1",
    ]
