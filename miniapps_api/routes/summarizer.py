from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import app_data
from miniapps_api.schemas import SummarizeRequest
from miniapps_api.services import summarizer

router = APIRouter()


@router.post("/v1/summarize")
async def summarize(payload: SummarizeRequest, user_id: str = Depends(require_user_id)):
    try:
        result = summarizer.summarize(payload.text, payload.ratio)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if payload.save:
        await app_data.save_summary(user_id, payload.text, result)
    return result


@router.get("/v1/summarize/history")
async def summary_history(user_id: str = Depends(require_user_id)):
    return {"items": await app_data.list_summaries(user_id)}


@router.delete("/v1/summarize/history")
async def clear_history(user_id: str = Depends(require_user_id)):
    await app_data.clear_summaries(user_id)
    return {"ok": True}
