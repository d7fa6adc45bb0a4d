"""Follow-up queue controllers."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException, Request

from dal.followup_queue import FollowupQueueGateway
from utils.errors import UpstreamUnavailable

LOGGER = logging.getLogger(__name__)


def _get_gateway(request: Request) -> FollowupQueueGateway:
	gateway = getattr(request.app.state, "followup_queue", None)
	if gateway is None:
		raise HTTPException(status_code=500, detail="Follow-up queue not initialized.")
	return gateway


async def list_followups(request: Request) -> List[Dict[str, Any]]:
	"""Return queued follow-ups, each tagged with its current index."""
	gateway = _get_gateway(request)
	return [entry.as_dict() for entry in await gateway.list_entries()]


async def count_followups(request: Request) -> Dict[str, Any]:
	"""Return the queue depth, reporting zero when the store is unreachable.

	The admin UI polls this endpoint; an outage must not surface as an error.
	"""
	gateway = _get_gateway(request)
	try:
		count = await gateway.count()
	except UpstreamUnavailable as exc:
		LOGGER.warning("Follow-up count unavailable: %s", exc.details.get("details", exc.message))
		return {"count": 0, "available": False}
	return {"count": count, "available": True}


async def dismiss_followup(request: Request, index: int) -> Dict[str, bool]:
	gateway = _get_gateway(request)
	await gateway.remove_at(index)
	return {"success": True}
