from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import profiles, todos
from miniapps_api.schemas import TodoCreate, TodoPatch

logger = logging.getLogger(__name__)

router = APIRouter()


async def _with_overdue(user_id: str, record: dict) -> dict:
    today = await profiles.user_today(user_id)
    record["is_overdue"] = todos.is_overdue(record, today)
    return record


@router.get("/v1/todos")
async def list_todos(
    filter: str = Query("all"),
    search: str | None = Query(None),
    sort: str = Query("created"),
    user_id: str = Depends(require_user_id),
):
    today = await profiles.user_today(user_id)
    try:
        items = await todos.list_todos(user_id, today, todo_filter=filter, search=search, sort=sort)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    everything = items if filter == "all" and not search else await todos.list_todos(user_id, today)
    return {"items": jsonable_encoder(items), "counts": todos.count_todos(everything)}


@router.post("/v1/todos")
async def create_todo(payload: TodoCreate, user_id: str = Depends(require_user_id)):
    try:
        record = await todos.create_todo(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("Todo created for %s", user_id)
    return await _with_overdue(user_id, record)


@router.patch("/v1/todos/{todo_id}")
async def patch_todo(todo_id: str, payload: TodoPatch, user_id: str = Depends(require_user_id)):
    try:
        record = await todos.update_todo(user_id, todo_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Todo not found")
    return await _with_overdue(user_id, record)


@router.post("/v1/todos/{todo_id}/toggle")
async def toggle_todo(todo_id: str, user_id: str = Depends(require_user_id)):
    record = await todos.toggle_todo(user_id, todo_id)
    if not record:
        raise HTTPException(status_code=404, detail="Todo not found")
    return await _with_overdue(user_id, record)


@router.delete("/v1/todos/completed")
async def clear_completed(user_id: str = Depends(require_user_id)):
    removed = await todos.clear_completed(user_id)
    return {"ok": True, "deleted": removed}


@router.delete("/v1/todos/{todo_id}")
async def delete_todo(todo_id: str, user_id: str = Depends(require_user_id)):
    if not await todos.delete_todo(user_id, todo_id):
        raise HTTPException(status_code=404, detail="Todo not found")
    return {"ok": True}
