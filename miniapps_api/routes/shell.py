from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import catalog, profiles
from miniapps_api.schemas import FavoriteToggle, PreferencesPatch, ProfilePatch

router = APIRouter()


@router.get("/v1/apps")
async def list_apps(user_id: str = Depends(require_user_id)):
    return {"items": await catalog.list_apps()}


@router.get("/v1/preferences")
async def get_preferences(user_id: str = Depends(require_user_id)):
    return await catalog.get_preferences(user_id)


@router.patch("/v1/preferences")
async def patch_preferences(payload: PreferencesPatch, user_id: str = Depends(require_user_id)):
    try:
        return await catalog.update_preferences(user_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/v1/preferences/favorites/toggle")
async def toggle_favorite(payload: FavoriteToggle, user_id: str = Depends(require_user_id)):
    try:
        favorites = await catalog.toggle_favorite(user_id, payload.slug)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"favorite_apps": favorites}


@router.get("/v1/profile")
async def get_profile(user_id: str = Depends(require_user_id)):
    return await profiles.get_profile(user_id)


@router.patch("/v1/profile")
async def patch_profile(payload: ProfilePatch, user_id: str = Depends(require_user_id)):
    try:
        return await profiles.update_profile(user_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/v1/header")
async def header_snapshot(user_id: str = Depends(require_user_id)):
    profile = await profiles.get_profile(user_id)
    preferences = await catalog.get_preferences(user_id)
    today = await profiles.user_today(user_id)
    return {
        "today": today.isoformat(),
        "display_name": profile.get("display_name"),
        "timezone": profile.get("timezone"),
        "theme": preferences.get("theme"),
        "favorite_apps": preferences.get("favorite_apps", []),
    }
