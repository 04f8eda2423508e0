from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import events, profiles
from miniapps_api.schemas import EventCreate, EventPatch

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/calendar/events")
async def list_events(
    start: date = Query(...),
    end: date = Query(...),
    user_id: str = Depends(require_user_id),
):
    try:
        items = await events.list_events(user_id, start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"items": items}


@router.get("/v1/calendar/upcoming")
async def upcoming_events(limit: int = Query(5, ge=1, le=50), user_id: str = Depends(require_user_id)):
    now = await profiles.user_now(user_id)
    return {"items": await events.upcoming_events(user_id, now, limit=limit)}


@router.get("/v1/calendar/export.ics")
async def export_calendar(user_id: str = Depends(require_user_id)):
    body = await events.export_ics(user_id)
    logger.info("Calendar export for %s (%s bytes)", user_id, len(body))
    return Response(
        content=body,
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="calendar.ics"'},
    )


@router.get("/v1/calendar/events/{event_id}")
async def get_event(event_id: str, user_id: str = Depends(require_user_id)):
    record = await events.get_event(user_id, event_id)
    if not record:
        raise HTTPException(status_code=404, detail="Event not found")
    return record


@router.post("/v1/calendar/events")
async def create_event(payload: EventCreate, user_id: str = Depends(require_user_id)):
    try:
        return await events.create_event(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/v1/calendar/events/{event_id}")
async def patch_event(event_id: str, payload: EventPatch, user_id: str = Depends(require_user_id)):
    try:
        record = await events.update_event(user_id, event_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Event not found")
    return record


@router.delete("/v1/calendar/events/{event_id}")
async def delete_event(event_id: str, user_id: str = Depends(require_user_id)):
    if not await events.delete_event(user_id, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"ok": True}
