import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from notion_client import AsyncClient

from cms import NotionContentSource
from config import configure_logging, content_location, load_settings
from media import MediaSynchronizer
from schemas import StaticGenerationResult, StaticStatus, SyncResult
from snapshot import PortfolioGenerator, SnapshotStore, utc_timestamp

logger = logging.getLogger(__name__)


def default_store() -> SnapshotStore:
    content_dir, fallback_file = content_location()
    return SnapshotStore(content_dir, fallback_file)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.generator is not None:
        yield
        return

    # Missing configuration raises ConfigError here and aborts startup
    settings = load_settings()
    configure_logging(settings.log_level)
    store = app.state.store
    async with AsyncClient(auth=settings.notion_token) as notion, httpx.AsyncClient() as http:
        app.state.generator = PortfolioGenerator(
            NotionContentSource(notion, settings.notion_page_id),
            MediaSynchronizer(store.media_dir, http),
            store,
        )
        logger.info("Serving portfolio content from %s", store.content_dir)
        yield


def create_app(generator: Optional[PortfolioGenerator] = None, store: Optional[SnapshotStore] = None) -> FastAPI:
    app = FastAPI(title="Portfolio Content API", version="1.0.0", lifespan=lifespan)
    app.state.generator = generator
    if store is None:
        store = generator.store if generator is not None else default_store()
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"message": "Portfolio content API running"}

    # Snapshot, generating it on first use
    @app.get("/content/profileData.json")
    async def profile_data(request: Request):
        store: SnapshotStore = request.app.state.store
        data = await store.read_snapshot()
        if data is not None:
            logger.debug("Serving pre-generated static portfolio data")
            return JSONResponse(data)

        logger.info("No static files found, generating on-demand...")
        try:
            result = await request.app.state.generator.generate()
        except Exception:
            logger.exception("On-demand generation failed")
        else:
            if result.success:
                data = await store.read_snapshot()
                if data is not None:
                    return JSONResponse(data)

        logger.warning("Falling back to %s", store.fallback_path)
        fallback = await store.read_fallback()
        if fallback is not None:
            return Response(content=fallback, media_type="application/json")
        return JSONResponse({"error": "Portfolio data not found"}, status_code=404)

    # Admin
    @app.post("/api/regenerate-static", response_model=StaticGenerationResult, response_model_exclude_none=True)
    async def regenerate_static(request: Request):
        try:
            logger.info("Regenerating static portfolio files...")
            result = await request.app.state.generator.generate()
        except Exception as e:
            logger.exception("Error regenerating static files")
            result = StaticGenerationResult(success=False, timestamp=utc_timestamp(), error=str(e))
        if not result.success:
            return JSONResponse(result.model_dump(by_alias=True, exclude_none=True), status_code=500)
        return result

    @app.get("/api/static-status", response_model=StaticStatus)
    async def static_status(request: Request):
        store: SnapshotStore = request.app.state.store
        try:
            return StaticStatus(
                has_static_files=await store.has_static_files(),
                last_update=await store.read_update_info(),
            )
        except Exception as e:
            logger.exception("Error getting static status")
            return JSONResponse({"error": str(e)}, status_code=500)

    async def run_sync(request: Request, label: str) -> Response:
        logger.info("%s sync requested", label)
        try:
            result = await request.app.state.generator.generate()
            if not result.success:
                raise RuntimeError(result.error or "Unknown error")
        except Exception as e:
            logger.error("%s sync failed: %s", label, e)
            payload = SyncResult(success=False, message=f"{label} sync failed", error=str(e))
            return JSONResponse(payload.model_dump(by_alias=True, exclude_none=True), status_code=500)
        payload = SyncResult(success=True, message=f"{label} synced successfully", stats=result.stats)
        return JSONResponse(payload.model_dump(by_alias=True, exclude_none=True))

    @app.post("/api/sync-notion")
    async def sync_notion(request: Request):
        return await run_sync(request, "Notion data")

    @app.post("/api/sync-images")
    async def sync_images(request: Request):
        return await run_sync(request, "Images")

    # Media and anything else below the content directory
    app.mount(
        "/content",
        StaticFiles(directory=str(app.state.store.content_dir), check_dir=False),
        name="content",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
