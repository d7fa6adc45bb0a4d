from fastapi import APIRouter, HTTPException, Request

from controllers.followup_controller import count_followups, dismiss_followup, list_followups
from utils.errors import AdminError

router = APIRouter(prefix="/api/followups", tags=["followups"])


@router.get("")
async def list_followups_route(request: Request):
	"""Return unanswered chat-bot questions with their current positions."""
	try:
		return await list_followups(request)
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/count")
async def count_followups_route(request: Request):
	return await count_followups(request)


@router.delete("/{index}")
async def dismiss_followup_route(request: Request, index: int):
	"""Dismiss the entry at `index` as returned by the last listing."""
	try:
		return await dismiss_followup(request, index)
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
