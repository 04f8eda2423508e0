from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import shopping
from miniapps_api.schemas import (
    ShoppingItemCreate,
    ShoppingItemPatch,
    ShoppingListCreate,
    ShoppingListPatch,
    ShoppingMemberCreate,
)
from miniapps_api.services.shopping import CATEGORIES, group_by_category, progress

router = APIRouter()


def _not_found():
    return HTTPException(status_code=404, detail="Shopping list not found")


@router.get("/v1/shopping/lists")
async def list_lists(user_id: str = Depends(require_user_id)):
    return {"items": await shopping.list_lists(user_id), "categories": CATEGORIES}


@router.post("/v1/shopping/lists")
async def create_list(payload: ShoppingListCreate, user_id: str = Depends(require_user_id)):
    try:
        return await shopping.create_list(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/v1/shopping/lists/{list_id}")
async def get_list(list_id: str, user_id: str = Depends(require_user_id)):
    record = await shopping.get_list(user_id, list_id)
    if not record:
        raise _not_found()
    items = await shopping.list_items(user_id, list_id) or []
    record["items"] = items
    record["grouped"] = group_by_category(items)
    record["progress"] = progress(items)
    record["members"] = await shopping.list_members(user_id, list_id) or []
    return record


@router.patch("/v1/shopping/lists/{list_id}")
async def patch_list(list_id: str, payload: ShoppingListPatch, user_id: str = Depends(require_user_id)):
    try:
        record = await shopping.update_list(user_id, list_id, payload.model_dump(exclude_unset=True))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise _not_found()
    return record


@router.delete("/v1/shopping/lists/{list_id}")
async def delete_list(list_id: str, user_id: str = Depends(require_user_id)):
    try:
        deleted = await shopping.delete_list(user_id, list_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if not deleted:
        raise _not_found()
    return {"ok": True}


@router.post("/v1/shopping/lists/{list_id}/members")
async def add_member(list_id: str, payload: ShoppingMemberCreate, user_id: str = Depends(require_user_id)):
    try:
        record = await shopping.add_member(user_id, list_id, payload.email, payload.role)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if record is None:
        raise _not_found()
    return record


@router.delete("/v1/shopping/lists/{list_id}/members/{member_email}")
async def remove_member(list_id: str, member_email: str, user_id: str = Depends(require_user_id)):
    try:
        removed = await shopping.remove_member(user_id, list_id, member_email)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if not removed:
        raise _not_found()
    return {"ok": True}


@router.post("/v1/shopping/lists/{list_id}/items")
async def add_item(list_id: str, payload: ShoppingItemCreate, user_id: str = Depends(require_user_id)):
    try:
        record = await shopping.add_item(user_id, list_id, payload.model_dump())
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise _not_found()
    return record


@router.patch("/v1/shopping/lists/{list_id}/items/{item_id}")
async def patch_item(
    list_id: str,
    item_id: str,
    payload: ShoppingItemPatch,
    user_id: str = Depends(require_user_id),
):
    try:
        record = await shopping.update_item(user_id, list_id, item_id, payload.model_dump(exclude_unset=True))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Item not found")
    return record


@router.post("/v1/shopping/lists/{list_id}/items/{item_id}/toggle")
async def toggle_item(list_id: str, item_id: str, user_id: str = Depends(require_user_id)):
    try:
        record = await shopping.toggle_item(user_id, list_id, item_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Item not found")
    return record


@router.delete("/v1/shopping/lists/{list_id}/items/checked")
async def clear_checked(list_id: str, user_id: str = Depends(require_user_id)):
    try:
        removed = await shopping.clear_checked(user_id, list_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if removed is None:
        raise _not_found()
    return {"ok": True, "deleted": removed}


@router.delete("/v1/shopping/lists/{list_id}/items/{item_id}")
async def delete_item(list_id: str, item_id: str, user_id: str = Depends(require_user_id)):
    try:
        deleted = await shopping.delete_item(user_id, list_id, item_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"ok": True}
