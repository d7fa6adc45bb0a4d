"""Controllers for listing records."""

from typing import Any, Dict, List

from fastapi import HTTPException, Request

from dal.record_dal import RecordStore, ensure_category
from models.animal_record import CATEGORIES


def _get_record_store(request: Request) -> RecordStore:
    """Retrieve the shared record store from the app state."""
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Record store not initialized.")
    return store


async def list_animals(request: Request) -> Dict[str, List[Dict[str, Any]]]:
    """Return every record grouped by category."""
    store = _get_record_store(request)
    return {
        category: [record.as_dict() for record in await store.list_records(category)]
        for category in CATEGORIES
    }


async def get_animal(request: Request, category: str, record_id: str) -> Dict[str, Any]:
    store = _get_record_store(request)
    record = await store.get_record(ensure_category(category), record_id)
    return record.as_dict()


async def create_animal(request: Request, category: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Create a record; the id is derived from the name by the store."""
    store = _get_record_store(request)
    record = await store.create_record(ensure_category(category), fields)
    return record.as_dict()


async def update_animal(request: Request, category: str, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a partial update; omitted fields keep their stored values."""
    store = _get_record_store(request)
    record = await store.update_record(ensure_category(category), record_id, fields)
    return record.as_dict()


async def delete_animal(request: Request, category: str, record_id: str) -> Dict[str, bool]:
    """Delete a record file. Image assets are removed separately by the client."""
    store = _get_record_store(request)
    await store.delete_record(ensure_category(category), record_id)
    return {"success": True}
