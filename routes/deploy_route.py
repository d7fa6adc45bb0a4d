from fastapi import APIRouter, HTTPException, Request

from controllers.deploy_controller import run_deploy
from utils.errors import AdminError

router = APIRouter(prefix="/api", tags=["deploy"])


@router.post("/deploy")
async def deploy_route(request: Request):
    """Publish the current content by running the configured deploy command."""
    try:
        return await run_deploy(request)
    except (HTTPException, AdminError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
