from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import account, profiles

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/profile/stats")
async def profile_stats(user_id: str = Depends(require_user_id)):
    return await account.profile_stats(user_id, await profiles.user_now(user_id))


@router.get("/v1/usage")
async def usage_statistics(user_id: str = Depends(require_user_id)):
    return await account.usage_statistics(user_id, await profiles.user_now(user_id))


@router.get("/v1/activity")
async def recent_activity(limit: int = Query(10, ge=1, le=50), user_id: str = Depends(require_user_id)):
    return {"items": await account.recent_activity(user_id, limit=limit)}


@router.get("/v1/account/export")
async def export_data(user_id: str = Depends(require_user_id)):
    payload = await account.export_user_data(user_id)
    logger.info("Exported data for %s", user_id)
    return payload


@router.delete("/v1/account")
async def delete_account(user_id: str = Depends(require_user_id)):
    deleted = await account.delete_user_data(user_id)
    logger.warning("Deleted all data for %s", user_id)
    return {"ok": True, "deleted": deleted}
