"""Entry point for the FastAPI-powered catalog session service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .models import (
    CarouselIndexIntent,
    CarouselStepIntent,
    CategoryIntent,
    PointerIntent,
    SearchIntent,
    SelectItemIntent,
    SessionSnapshot,
)
from .services.details import DetailAggregator
from .services.omdb import OMDbClient
from .services.query_controller import QueryController
from .services.session import CatalogSession
from .services.tmdb import TMDBClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    timeout = httpx.Timeout(settings.http_timeout_seconds, connect=10.0)
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(base_url=str(settings.tmdb_api_url), timeout=timeout)
    )
    omdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(base_url=str(settings.omdb_api_url), timeout=timeout)
    )

    tmdb = TMDBClient(settings, tmdb_http_client)
    omdb = OMDbClient(settings, omdb_http_client)
    session = CatalogSession(
        settings,
        QueryController(settings, tmdb),
        DetailAggregator(settings, tmdb, omdb),
    )

    fastapi_app.state.catalog_session = session
    await session.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await session.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Aggregated movie and series catalog driven by presentation intents",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_session(app: FastAPI) -> CatalogSession:
    session = getattr(app.state, "catalog_session", None)
    if not isinstance(session, CatalogSession):
        raise RuntimeError("Catalog session not initialised")
    return session


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/state")
    async def current_state() -> SessionSnapshot:
        return get_catalog_session(fastapi_app).snapshot()

    @fastapi_app.post("/api/category")
    async def select_category(intent: CategoryIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        session.select_category(intent.category)
        return session.snapshot()

    @fastapi_app.post("/api/search")
    async def set_search_text(intent: SearchIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        session.set_search_text(intent.text)
        return session.snapshot()

    @fastapi_app.post("/api/load-more")
    async def load_more() -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        if not session.request_load_more():
            logger.info("Load-more requested while not available")
        return session.snapshot()

    @fastapi_app.post("/api/selection")
    async def select_item(intent: SelectItemIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        item = session.find_item(intent.id, intent.media_kind)
        if item is None:
            raise HTTPException(
                status_code=404,
                detail=f"No visible {intent.media_kind} item with id {intent.id}",
            )
        session.select_item(item)
        return session.snapshot()

    @fastapi_app.delete("/api/selection")
    async def deselect_item() -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        session.deselect_item()
        return session.snapshot()

    @fastapi_app.post("/api/carousel/pointer")
    async def carousel_pointer(intent: PointerIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        if intent.phase == "down":
            session.pointer_down(intent.x)
        elif intent.phase == "move":
            session.pointer_move(intent.x)
        else:
            session.pointer_up()
        return session.snapshot()

    @fastapi_app.post("/api/carousel/index")
    async def carousel_index(intent: CarouselIndexIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        session.select_carousel_index(intent.index)
        return session.snapshot()

    @fastapi_app.post("/api/carousel/step")
    async def carousel_step(intent: CarouselStepIntent) -> SessionSnapshot:
        session = get_catalog_session(fastapi_app)
        if intent.direction == "next":
            session.carousel_next()
        else:
            session.carousel_previous()
        return session.snapshot()


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "reelboard.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
