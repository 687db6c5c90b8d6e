from __future__ import annotations

import time
import logging
from typing import Optional
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..core.config import load_env_files
from ..web.pipeline import ResearchEngine, get_default_engine
from ..web.types import InvalidTopicError, ResearchError
from .models import ErrorResponse, ResearchResponse


def create_app(engine: Optional[ResearchEngine] = None) -> FastAPI:
    # Load environment variables from the closest .env.local then .env
    load_env_files()
    app = FastAPI(title="Keyless Research API", version="0.3.0")

    logger = logging.getLogger("keyless_research_api")
    logger.setLevel(logging.INFO)

    def _engine() -> ResearchEngine:
        return engine if engine is not None else get_default_engine()

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            dur_ms = (time.perf_counter() - start) * 1000.0
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                request.url.path,
                getattr(response, "status_code", "NA"),
                dur_ms,
            )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    # Sync handler: FastAPI runs it in its threadpool, so the blocking crawl
    # never stalls the event loop.
    @app.get(
        "/api/research",
        response_model=ResearchResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def research(
        topic: Optional[str] = Query(default=None),
        max_pages: Optional[str] = Query(default=None),
        max_time: Optional[str] = Query(default=None),
        deep: bool = Query(default=True),
    ):
        try:
            result = _engine().research(
                topic or "",
                max_pages=max_pages,
                max_time_seconds=max_time,
                deep=deep,
            )
        except InvalidTopicError:
            return JSONResponse(status_code=400, content={"error": "Missing topic parameter"})
        except ResearchError:
            # Malformed budgets (BudgetError) land here too
            logger.exception("research failed for %r", topic)
            return JSONResponse(status_code=500, content={"error": "internal_error"})
        return result.to_dict()

    return app


app = create_app()
