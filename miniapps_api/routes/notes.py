from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import notes
from miniapps_api.schemas import NoteCreate, NotePatch

router = APIRouter()


@router.get("/v1/notes")
async def list_notes(
    filter: str = Query("all"),
    search: str | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    try:
        items = await notes.list_notes(user_id, note_filter=filter, search=search)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"items": items}


@router.get("/v1/notes/tags")
async def list_tags(user_id: str = Depends(require_user_id)):
    return {"items": await notes.list_tags(user_id)}


@router.post("/v1/notes")
async def create_note(payload: NoteCreate, user_id: str = Depends(require_user_id)):
    try:
        return await notes.create_note(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/v1/notes/{note_id}")
async def patch_note(note_id: str, payload: NotePatch, user_id: str = Depends(require_user_id)):
    try:
        record = await notes.update_note(user_id, note_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Note not found")
    return record


@router.post("/v1/notes/{note_id}/favorite")
async def toggle_favorite(note_id: str, user_id: str = Depends(require_user_id)):
    record = await notes.toggle_favorite(user_id, note_id)
    if not record:
        raise HTTPException(status_code=404, detail="Note not found")
    return record


@router.delete("/v1/notes/{note_id}")
async def delete_note(note_id: str, user_id: str = Depends(require_user_id)):
    if not await notes.delete_note(user_id, note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return {"ok": True}
