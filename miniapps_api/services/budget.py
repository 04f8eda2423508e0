from __future__ import annotations

EXPENSE_CATEGORIES = ["Food", "Transport", "Entertainment", "Shopping", "Bills", "Health", "Other"]
PERIODS = ("weekly", "monthly", "yearly", "custom")


def total_spent(expenses: list[dict]) -> float:
    return round(sum(float(item.get("amount") or 0) for item in expenses), 2)


def budget_progress(spent: float, total: float) -> float:
    if not total or total <= 0:
        return 0.0
    return min(spent / total * 100, 100.0)


def summarize_budget(budget: dict, expenses: list[dict]) -> dict:
    total = float(budget.get("total_amount") or 0)
    spent = total_spent(expenses)
    by_category: dict[str, float] = {}
    for item in expenses:
        category = item.get("category") or "Other"
        by_category[category] = round(by_category.get(category, 0.0) + float(item.get("amount") or 0), 2)
    return {
        "budget_id": budget.get("id"),
        "currency": budget.get("currency"),
        "total_amount": total,
        "total_spent": spent,
        "remaining": round(total - spent, 2),
        "progress": round(budget_progress(spent, total), 1),
        "over_budget": spent > total,
        "by_category": dict(sorted(by_category.items(), key=lambda pair: pair[1], reverse=True)),
        "expense_count": len(expenses),
    }
