from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import habits, profiles
from miniapps_api.schemas import CompletionToggle, HabitCreate, HabitPatch

router = APIRouter()


@router.get("/v1/habits")
async def list_habits(user_id: str = Depends(require_user_id)):
    today = await profiles.user_today(user_id)
    items = await habits.list_habits_with_stats(user_id, today)
    return {"items": items, "today": today.isoformat(), "colors": habits.COLORS, "icons": habits.ICONS}


@router.post("/v1/habits")
async def create_habit(payload: HabitCreate, user_id: str = Depends(require_user_id)):
    try:
        return await habits.create_habit(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/v1/habits/{habit_id}")
async def patch_habit(habit_id: str, payload: HabitPatch, user_id: str = Depends(require_user_id)):
    try:
        record = await habits.update_habit(user_id, habit_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Habit not found")
    return record


@router.post("/v1/habits/{habit_id}/archive")
async def archive_habit(habit_id: str, user_id: str = Depends(require_user_id)):
    record = await habits.archive_habit(user_id, habit_id)
    if not record:
        raise HTTPException(status_code=404, detail="Habit not found")
    return record


@router.delete("/v1/habits/{habit_id}")
async def delete_habit(habit_id: str, user_id: str = Depends(require_user_id)):
    if not await habits.delete_habit(user_id, habit_id):
        raise HTTPException(status_code=404, detail="Habit not found")
    return {"ok": True}


@router.post("/v1/habits/{habit_id}/completions/toggle")
async def toggle_completion(habit_id: str, payload: CompletionToggle, user_id: str = Depends(require_user_id)):
    result = await habits.toggle_completion(user_id, habit_id, payload.date, payload.notes)
    if result is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    return result


@router.get("/v1/habits/completions")
async def list_completions(
    start: date = Query(...),
    end: date = Query(...),
    user_id: str = Depends(require_user_id),
):
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    items = await habits.list_completions(user_id, start.isoformat(), end.isoformat())
    return {"items": items}
