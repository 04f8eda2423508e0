from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import pomodoro, profiles
from miniapps_api.schemas import PomodoroSessionCreate
from miniapps_api.services.pomodoro import DURATIONS, next_session_type

router = APIRouter()


@router.get("/v1/pomodoro/sessions")
async def list_sessions(limit: int = Query(10, ge=1, le=100), user_id: str = Depends(require_user_id)):
    return {"items": await pomodoro.list_sessions(user_id, limit=limit)}


@router.post("/v1/pomodoro/sessions")
async def record_session(payload: PomodoroSessionCreate, user_id: str = Depends(require_user_id)):
    try:
        record = await pomodoro.record_session(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    record["next_session_type"] = next_session_type(record["session_type"], payload.completed_work_count)
    return record


@router.get("/v1/pomodoro/stats")
async def session_stats(user_id: str = Depends(require_user_id)):
    stats = await pomodoro.session_stats(user_id, await profiles.user_now(user_id))
    stats["durations"] = DURATIONS
    return stats
