from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from miniapps_api.auth import require_user_id
from miniapps_api.repositories import budgets, profiles
from miniapps_api.schemas import BudgetCreate, BudgetPatch, ExpenseCreate
from miniapps_api.services import currency
from miniapps_api.services.budget import EXPENSE_CATEGORIES, PERIODS, summarize_budget

router = APIRouter()


@router.get("/v1/currency/rates")
async def get_rates(user_id: str = Depends(require_user_id)):
    payload = await currency.get_rates()
    payload["currencies"] = currency.CURRENCIES
    return payload


@router.get("/v1/currency/convert")
async def convert(
    amount: float = Query(...),
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    user_id: str = Depends(require_user_id),
):
    rates = await currency.get_rates()
    source, target = from_currency.upper(), to_currency.upper()
    try:
        result = currency.convert(amount, source, target, rates["rates"])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "amount": amount,
        "from": source,
        "to": target,
        "result": round(result, 4),
        "rate": round(rates["rates"][target] / rates["rates"][source], 6),
        "source": rates["source"],
    }


@router.get("/v1/budgets")
async def list_budgets(user_id: str = Depends(require_user_id)):
    items = []
    for budget in await budgets.list_budgets(user_id):
        expenses = await budgets.list_expenses(user_id, budget["id"])
        budget["summary"] = summarize_budget(budget, expenses)
        items.append(budget)
    return {"items": items, "periods": list(PERIODS), "categories": EXPENSE_CATEGORIES}


@router.post("/v1/budgets")
async def create_budget(payload: BudgetCreate, user_id: str = Depends(require_user_id)):
    try:
        return await budgets.create_budget(user_id, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/v1/budgets/{budget_id}")
async def get_budget(budget_id: str, user_id: str = Depends(require_user_id)):
    budget = await budgets.get_budget(user_id, budget_id)
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    expenses = await budgets.list_expenses(user_id, budget_id)
    budget["expenses"] = expenses
    budget["summary"] = summarize_budget(budget, expenses)
    return budget


@router.patch("/v1/budgets/{budget_id}")
async def patch_budget(budget_id: str, payload: BudgetPatch, user_id: str = Depends(require_user_id)):
    try:
        record = await budgets.update_budget(user_id, budget_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Budget not found")
    return record


@router.delete("/v1/budgets/{budget_id}")
async def delete_budget(budget_id: str, user_id: str = Depends(require_user_id)):
    if not await budgets.delete_budget(user_id, budget_id):
        raise HTTPException(status_code=404, detail="Budget not found")
    return {"ok": True}


@router.post("/v1/budgets/{budget_id}/expenses")
async def add_expense(budget_id: str, payload: ExpenseCreate, user_id: str = Depends(require_user_id)):
    today = await profiles.user_today(user_id)
    try:
        record = await budgets.add_expense(user_id, budget_id, payload.model_dump(), today.isoformat())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not record:
        raise HTTPException(status_code=404, detail="Budget not found")
    return record


@router.delete("/v1/budgets/{budget_id}/expenses/{expense_id}")
async def delete_expense(budget_id: str, expense_id: str, user_id: str = Depends(require_user_id)):
    if not await budgets.delete_expense(user_id, budget_id, expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"ok": True}
