from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import locations
from miniapps_api.schemas import LocationCreate
from miniapps_api.services import weather

router = APIRouter()


@router.get("/v1/weather")
async def get_weather(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    user_id: str = Depends(require_user_id),
):
    try:
        return await weather.get_weather(lat, lon)
    except weather.WeatherNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except weather.WeatherProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.get("/v1/weather/search")
async def search_locations(q: str = Query(""), user_id: str = Depends(require_user_id)):
    try:
        return {"items": await weather.search_locations(q)}
    except weather.WeatherNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except weather.WeatherProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.get("/v1/weather/locations")
async def list_locations(user_id: str = Depends(require_user_id)):
    return {"items": await locations.list_locations(user_id)}


@router.post("/v1/weather/locations")
async def add_location(payload: LocationCreate, user_id: str = Depends(require_user_id)):
    try:
        return await locations.add_location(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/v1/weather/locations/{location_id}/default")
async def set_default_location(location_id: str, user_id: str = Depends(require_user_id)):
    if not await locations.set_default(user_id, location_id):
        raise HTTPException(status_code=404, detail="Location not found")
    return {"ok": True}


@router.delete("/v1/weather/locations/{location_id}")
async def delete_location(location_id: str, user_id: str = Depends(require_user_id)):
    if not await locations.delete_location(user_id, location_id):
        raise HTTPException(status_code=404, detail="Location not found")
    return {"ok": True}
