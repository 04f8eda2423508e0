from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from miniapps_api.db import dispose_engine
from miniapps_api.db_init import init_db
from miniapps_api.routes import account, calendar, currency, habits, notes, pomodoro, shell, shopping, summarizer, todos, weather


@asynccontextmanager
async def _lifespan(app: FastAPI):
    await init_db()
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    app = FastAPI(title="Mini Apps Hub API", version="0.1.0", lifespan=_lifespan)

    app.include_router(shell.router)
    app.include_router(todos.router)
    app.include_router(habits.router)
    app.include_router(calendar.router)
    app.include_router(pomodoro.router)
    app.include_router(notes.router)
    app.include_router(shopping.router)
    app.include_router(currency.router)
    app.include_router(weather.router)
    app.include_router(summarizer.router)
    app.include_router(account.router)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("miniapps_api").exception("Unhandled exception on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
