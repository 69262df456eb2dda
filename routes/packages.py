from fastapi import APIRouter, Body, Query, status
from typing import Any, Dict, List, Optional

from config import get_owner_id
from db.database import run_in_db
from models.item import Item, SelectionUpdate, UserItemCreate
from utils.directions import Direction
from utils.errors import InvalidInputError, StorageError
from utils.packages import (
    ImportFailed,
    ImportInProgress,
    add_user_item,
    delete_package,
    get_item,
    import_package,
    list_items,
    set_selection,
)

router = APIRouter()


@router.post("/import")
async def import_vocabulary_package(
    document: Dict[str, Any] = Body(...),
    select: Optional[Direction] = Query(default=None, description="Also select new items for study"),
    owner_id: Optional[str] = Query(default=None),
):
    """Import a package document and report every state the import went through."""
    owner = owner_id or get_owner_id()

    def _import(conn) -> List[Any]:
        return list(import_package(conn, document, owner_id=owner, select=select))

    states = await run_in_db(_import)
    final = states[-1]
    if isinstance(final, ImportFailed):
        if final.is_storage_failure:
            raise StorageError(final.error)
        raise InvalidInputError(final.error)
    progress = [state.progress for state in states if isinstance(state, ImportInProgress)]
    return {
        "state": type(final).__name__,
        "package_id": final.package_id,
        "word_count": final.word_count,
        "progress": progress,
    }


@router.delete("/{package_id}")
async def remove_package(package_id: str):
    removed = await run_in_db(delete_package, package_id)
    return {"package_id": package_id, "items_removed": removed}


@router.get("/items", response_model=List[Item])
async def read_items(
    package_id: Optional[str] = Query(default=None),
    level: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
):
    return await run_in_db(list_items, package_id, level, category, limit, offset)


@router.post("/items", response_model=Item, status_code=status.HTTP_201_CREATED)
async def create_user_item(payload: UserItemCreate):
    """Add the learner's own word and select it for study."""
    owner = payload.owner_id or get_owner_id()
    return await run_in_db(
        add_user_item,
        owner,
        payload.source,
        payload.target,
        payload.example_source,
        payload.example_target,
        payload.direction,
    )


@router.get("/items/{item_id}", response_model=Item)
async def read_item(item_id: int):
    return await run_in_db(get_item, item_id)


@router.post("/selections")
async def update_selection(payload: SelectionUpdate):
    owner = payload.owner_id or get_owner_id()
    directions = await run_in_db(
        set_selection,
        owner,
        payload.item_id,
        payload.direction,
        payload.status,
    )
    return {
        "item_id": payload.item_id,
        "status": payload.status,
        "directions": [direction.value for direction in directions],
    }
