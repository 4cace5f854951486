"""
Log analysis HTTP server.

Receives a message body (plus attachment URLs) and returns one analyzed log per retrieved body.
The remote config cache is started with the app and refreshed in the background.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from cozylogs.config.remote import RemoteConfigCache
from cozylogs.config.settings import load_settings
from cozylogs.core.models import AnalysisContext
from cozylogs.dump import is_interesting, log_to_json_dict
from cozylogs.pipeline.pipeline import analyze
from cozylogs.report import render_log_report, render_log_title

logger = logging.getLogger(__name__)

_cache: Optional[RemoteConfigCache] = None
_cache_lock = threading.Lock()


def get_config_cache() -> RemoteConfigCache:
    global _cache
    with _cache_lock:
        if _cache is None:
            settings = load_settings()
            _cache = RemoteConfigCache(
                settings.config_url,
                refresh_seconds=max(1, settings.config_refresh_minutes) * 60.0,
                timeout=settings.fetch_timeout_seconds,
            )
        return _cache


class AnalyzeRequest(BaseModel):
    content: str = ""
    attachments: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    only_interesting: bool = True


app = FastAPI(title="Cozylogs log analyzer")


@app.on_event("startup")
def _startup_config_cache() -> None:
    settings = load_settings()
    get_config_cache().start(strict=settings.config_strict_bootstrap)


@app.on_event("shutdown")
def _shutdown_config_cache() -> None:
    if _cache is not None:
        _cache.stop()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.get("/api/v1/config")
def get_config() -> Dict[str, Any]:
    return get_config_cache().describe()


@app.post("/api/v1/analyze")
def analyze_message(req: AnalyzeRequest) -> Dict[str, Any]:
    if not req.content.strip() and not req.attachments:
        raise HTTPException(status_code=400, detail="content or attachments required")

    settings = load_settings()
    # Local file access is a CLI-only capability.
    attributes = {k: v for k, v in req.attributes.items() if k != "allow_local_files"}
    logs = analyze(
        req.content,
        req.attachments,
        AnalysisContext(event=req.model_dump(mode="json"), attributes=attributes),
        config=get_config_cache().snapshot(),
        max_workers=settings.retrieval_max_workers,
    )
    if req.only_interesting:
        logs = [log for log in logs if is_interesting(log)]

    out: List[Dict[str, Any]] = []
    for log in logs:
        d = log_to_json_dict(log)
        d["title"] = render_log_title(log)
        d["report"] = render_log_report(log)
        out.append(d)
    return {"logs": out}


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    logger.info("Starting analyzer server on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
