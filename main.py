import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis_asyncio
import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dal.followup_queue import FollowupQueueGateway
from dal.record_dal import RecordStore
from routes.animal_route import router as animal_router
from routes.deploy_route import router as deploy_router
from routes.followup_route import router as followup_router
from routes.image_route import router as image_router
from services.deploy_service import DeployService
from services.image_pipeline import ImagePipeline
from utils.auth import require_admin
from utils.errors import AdminError
from utils.settings import AdminSettings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Optional[AdminSettings] = None,
    redis_client: Optional[redis_asyncio.Redis] = None,
    deploy_service: Optional[DeployService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `redis_client` and `deploy_service` may be injected (tests do); otherwise
    they are built from `settings` during startup.
    """
    settings = settings or AdminSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the content and image directories
          - the record store and image pipeline
          - the follow-up queue gateway (startup continues if Redis is down)
          - the deploy service
        and attach them to `app.state`.
        """
        settings.validate()
        settings.content_dir.mkdir(parents=True, exist_ok=True)
        settings.images_dir.mkdir(parents=True, exist_ok=True)

        app.state.record_store = RecordStore(settings.content_dir)
        app.state.image_pipeline = ImagePipeline(settings.images_dir)

        owns_client = redis_client is None
        client = redis_client if redis_client is not None else redis_asyncio.from_url(
            settings.redis_url, decode_responses=True
        )
        gateway = FollowupQueueGateway(client, key=settings.followup_queue_key)
        await gateway.connect()
        app.state.followup_queue = gateway

        app.state.deploy_service = deploy_service or DeployService(settings.deploy_command, settings.project_root)

        if settings.local_only:
            LOGGER.warning("ADMIN_LOCAL_ONLY is set; admin routes are not authenticated")

        try:
            yield
        finally:
            if owns_client:
                await gateway.close()

    app = FastAPI(title="Farm listing admin", lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(AdminError)
    async def admin_error_handler(request: Request, exc: AdminError):
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    # Uploaded images, served for previews in the admin UI.
    app.mount("/images", StaticFiles(directory=settings.images_dir, check_dir=False), name="images")

    # Serve static assets from the admin UI directory, if it exists.
    if settings.public_dir.exists():
        app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")

    @app.get("/", include_in_schema=False, dependencies=[Depends(require_admin)])
    async def serve_index():
        """
        Serve the admin UI index page from the public directory.
        """
        index_path = settings.public_dir / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting where content lives and whether the follow-up store answers.
        """
        gateway = getattr(request.app.state, "followup_queue", None)
        return {
            "ok": True,
            "content_root": str(settings.content_dir),
            "followups": gateway.state if gateway is not None else "unavailable",
        }

    # Register application routers; all of them sit behind the shared credential.
    for router in (animal_router, image_router, followup_router, deploy_router):
        app.include_router(router, dependencies=[Depends(require_admin)])

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
