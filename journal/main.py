from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from journal.db_init import init_db
from journal.logging_config import configure_logging
from journal.routes import analytics, calendar, entries, export


def create_app(init_database: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Personal Journal API", version="0.1.0")

    app.include_router(entries.router)
    app.include_router(analytics.router)
    app.include_router(calendar.router)
    app.include_router(export.router)

    if init_database:
        @app.on_event("startup")
        async def _startup():
            await init_db()

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("journal").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
