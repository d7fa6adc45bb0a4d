"""FastAPI routes for animal listing records."""

from typing import Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.animal_controller import create_animal, delete_animal, get_animal, list_animals, update_animal
from utils.errors import AdminError

router = APIRouter(prefix="/api/animals", tags=["animals"])


class AnimalPayload(BaseModel):
	"""Body of create and update requests; every field is optional at this layer."""

	name: Optional[str] = None
	description: Optional[str] = None
	availability: Optional[str] = None
	images: Optional[List[Union[str, Dict[str, str]]]] = None


@router.get("")
async def list_animals_route(request: Request):
	try:
		return await list_animals(request)
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{category}/{record_id}")
async def get_animal_route(request: Request, category: str, record_id: str):
	try:
		return await get_animal(request, category, record_id)
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{category}", status_code=201)
async def create_animal_route(request: Request, category: str, payload: AnimalPayload):
	try:
		return await create_animal(request, category, payload.model_dump(exclude_none=True))
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{category}/{record_id}")
async def update_animal_route(request: Request, category: str, record_id: str, payload: AnimalPayload):
	try:
		return await update_animal(request, category, record_id, payload.model_dump(exclude_none=True))
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{category}/{record_id}")
async def delete_animal_route(request: Request, category: str, record_id: str):
	try:
		return await delete_animal(request, category, record_id)
	except (HTTPException, AdminError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
