"""FastAPI application entry point and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from grokdb.api.deck_router import router as deck_router
from grokdb.api.review_router import router as review_router
from grokdb.api.stash_router import router as stash_router
from grokdb.config import settings
from grokdb.database import Store
from grokdb.errors import QueryError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the store and create tables on startup, dispose on shutdown."""
    store: Store | None = getattr(app.state, "store", None)
    if store is None:
        store = Store.from_url(settings.database_url)
        app.state.store = store
    await store.create_all()
    yield
    await store.dispose()


async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    logger.error("Query failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Study cards in nested decks and stashes, with review selection and scoring",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(QueryError, query_error_handler)  # type: ignore[arg-type]

    app.include_router(review_router)
    app.include_router(deck_router)
    app.include_router(stash_router)

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, str]:
        """Check database connectivity and return status."""
        store: Store = request.app.state.store
        async with store.transaction() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ok"}

    return app


app = create_app()
