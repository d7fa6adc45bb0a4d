from typing import Any, Dict

from fastapi import HTTPException, Request

from services.deploy_service import DeployService


async def run_deploy(request: Request) -> Dict[str, Any]:
    """Trigger the external publish command and report its outcome."""
    service: DeployService = getattr(request.app.state, "deploy_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Deploy service not initialized.")
    result = await service.deploy()
    return {"success": result.success, "message": result.message, "duration": round(result.duration, 2)}
