"""Dashboard web application for TokenPulse."""

import asyncio
import json
import logging

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, StreamingResponse

from .config import DEFAULT_DAYS, MAX_DAYS
from .engine import UsageEngine

logger = logging.getLogger("tokenpulse")


def _ok(data) -> dict:
    return {"success": True, "data": data}


def _error(status_code: int, error: str, message: str | None = None, **extra) -> JSONResponse:
    body = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    body.update(extra)
    return JSONResponse(body, status_code=status_code)


def _dump(value):
    if isinstance(value, list):
        return [v.model_dump(mode="json", by_alias=True) for v in value]
    return value.model_dump(mode="json", by_alias=True)


def _invalid_days() -> JSONResponse:
    return _error(400, "Invalid days parameter", f"Days must be between 1 and {MAX_DAYS}")


def create_dashboard_app(engine: UsageEngine | None = None) -> FastAPI:
    engine = engine or UsageEngine()

    app = FastAPI(title="TokenPulse Dashboard")
    app.state.engine = engine

    @app.exception_handler(Exception)
    async def unhandled(request, exc):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, "Internal server error", str(exc))

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "tokenpulse-dashboard"}

    @app.get("/api/claude-code/stats")
    async def api_stats():
        metrics = await engine.get_dashboard_metrics()
        if metrics is None:
            file_info = await engine.get_file_info()
            return _error(
                404,
                "Claude Code stats file not found",
                "Make sure Claude Code is installed and has been used at least once",
                fileInfo=_dump(file_info),
            )
        return _ok(_dump(metrics))

    @app.get("/api/claude-code/live")
    async def api_live():
        live = await engine.get_live_usage()
        return _ok(_dump(live))

    @app.get("/api/claude-code/daily")
    async def api_daily(days: int = Query(DEFAULT_DAYS)):
        if days < 1 or days > MAX_DAYS:
            return _invalid_days()
        return _ok(_dump(await engine.get_daily_activity(days)))

    @app.get("/api/claude-code/daily-tokens")
    async def api_daily_tokens(days: int = Query(DEFAULT_DAYS)):
        if days < 1 or days > MAX_DAYS:
            return _invalid_days()
        return _ok(_dump(await engine.get_daily_model_tokens(days)))

    @app.get("/api/claude-code/raw")
    async def api_raw():
        stats = await engine.get_raw_stats()
        if stats is None:
            file_info = await engine.get_file_info()
            return _error(404, "Claude Code stats file not found", fileInfo=_dump(file_info))
        return _ok(_dump(stats))

    @app.get("/api/claude-code/file-info")
    async def api_file_info():
        return _ok(_dump(await engine.get_file_info()))

    @app.get("/api/claude-code/stream")
    async def api_stream():
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_change(snapshot):
            loop.call_soon_threadsafe(queue.put_nowait, snapshot)

        async def event_generator():
            unsubscribe = engine.watch(on_change)
            try:
                snapshot = await engine.get_raw_stats()
                while True:
                    payload = _dump(snapshot) if snapshot is not None else None
                    yield f"data: {json.dumps(payload)}\n\n".encode()
                    snapshot = await queue.get()
            finally:
                unsubscribe()

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    return app
