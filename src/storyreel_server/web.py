"""HTTP app: slide list, media upload and viewer playback endpoints."""

import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storyreel.core.errors import MediaUploadError, SlideSaveError
from storyreel.core.slides import Slide
from storyreel.core.store import SlideStore
from storyreel.core.workspace import UPLOADS_URL_PREFIX, Workspace
from storyreel.playback import PlaybackSession

from . import config

logger = logging.getLogger("StoryReel.web")


def _playback(request: Request, restart: bool = False) -> PlaybackSession:
    """The app's single viewer session, rebuilt from the store when asked."""
    app = request.app
    session: Optional[PlaybackSession] = app.state.playback
    if session is None or restart:
        if session is not None:
            session.close()
        session = PlaybackSession(app.state.store.load())
        app.state.playback = session
    return session


def create_app(workspace: Optional[Workspace] = None) -> FastAPI:
    workspace = workspace or Workspace.open(config.project_dir())
    store = SlideStore(workspace.slides_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving project '{workspace.project_name}' from {workspace.root_path}")
        yield
        if app.state.playback is not None:
            app.state.playback.close()
        logger.info("StoryReel web app shut down")

    app = FastAPI(title="StoryReel", version="0.1.0", lifespan=lifespan)
    app.state.workspace = workspace
    app.state.store = store
    app.state.playback = None

    # ── Slides ──────────────────────────────────────────────────────────

    @app.get("/api/slides")
    def get_slides() -> list[dict[str, Any]]:
        return [s.to_wire() for s in store.load()]

    def _replace_slides(slides: list[Slide]):
        try:
            store.save(slides)
        except SlideSaveError:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Failed to save slides"},
            )
        return {"success": True, "message": "Slides saved successfully"}

    @app.put("/api/slides")
    def put_slides(slides: list[Slide]):
        return _replace_slides(slides)

    @app.post("/api/slides")
    def post_slides(slides: list[Slide]):
        return _replace_slides(slides)

    # ── Media ───────────────────────────────────────────────────────────

    @app.post("/api/upload")
    async def upload_media(file: Optional[UploadFile] = File(None)):
        if file is None or not file.filename:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "No file uploaded"},
            )
        loop = asyncio.get_running_loop()
        store_upload = functools.partial(workspace.store_upload, file.filename, file.file)
        try:
            asset = await loop.run_in_executor(None, store_upload)
        except MediaUploadError:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Upload failed"},
            )
        finally:
            await file.close()
        return {"success": True, "url": workspace.public_url(asset), "type": asset.type}

    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=workspace.uploads_dir, check_dir=False),
        name="uploads",
    )

    # ── Playback ────────────────────────────────────────────────────────

    @app.get("/api/playback")
    async def get_playback(request: Request) -> dict[str, Any]:
        return _playback(request).view().to_dict()

    @app.post("/api/playback/start")
    async def start_playback(request: Request) -> dict[str, Any]:
        return _playback(request, restart=True).start().to_dict()

    @app.post("/api/playback/pause")
    async def toggle_playback(request: Request) -> dict[str, Any]:
        return _playback(request).toggle_pause().to_dict()

    @app.post("/api/playback/next")
    async def next_slide(request: Request) -> dict[str, Any]:
        return _playback(request).skip_next().to_dict()

    @app.post("/api/playback/prev")
    async def prev_slide(request: Request) -> dict[str, Any]:
        return _playback(request).skip_prev().to_dict()

    @app.post("/api/playback/buttons/{button_id}")
    async def choose_button(request: Request, button_id: str) -> dict[str, Any]:
        session = _playback(request)
        slide = session.state.current_slide
        if slide is None or slide.get_button(button_id) is None:
            raise HTTPException(status_code=404, detail=f"Button '{button_id}' not on current slide")
        return session.activate_button(button_id).to_dict()

    @app.get("/health")
    async def health_check() -> dict:
        return {"status": "healthy"}

    return app


def main():
    """Run the HTTP app with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
    uvicorn.run(
        "storyreel_server.web:create_app",
        factory=True,
        host=config.host(),
        port=config.port(),
        log_level="info",
    )


if __name__ == "__main__":
    main()
