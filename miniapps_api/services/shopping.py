from __future__ import annotations

CATEGORIES = ["Produce", "Dairy", "Meat", "Bakery", "Pantry", "Frozen", "Beverages", "Snacks", "Other"]
DEFAULT_CATEGORY = "Other"


def normalize_category(value) -> str:
    text = str(value or "").strip()
    for category in CATEGORIES:
        if category.lower() == text.lower():
            return category
    return DEFAULT_CATEGORY


def group_by_category(items: list[dict]) -> dict[str, list[dict]]:
    """Items grouped by category, in the fixed category order, skipping empty groups."""
    grouped: dict[str, list[dict]] = {category: [] for category in CATEGORIES}
    for item in items:
        grouped[normalize_category(item.get("category"))].append(item)
    return {category: rows for category, rows in grouped.items() if rows}


def progress(items: list[dict]) -> int:
    if not items:
        return 0
    checked = sum(1 for item in items if item.get("is_checked"))
    return round(checked / len(items) * 100)
