from __future__ import annotations

APP_CATALOG = [
    {
        "slug": "todo-list",
        "name": "To-Do List",
        "description": "Track tasks with priorities, categories and due dates.",
        "icon": "✅",
        "category": "productivity",
        "keywords": ["tasks", "todos", "checklist"],
    },
    {
        "slug": "shopping-list",
        "name": "Shopping List",
        "description": "Shared grocery lists grouped by aisle category.",
        "icon": "🛒",
        "category": "lifestyle",
        "keywords": ["shop", "groceries", "buy"],
    },
    {
        "slug": "pomodoro-timer",
        "name": "Pomodoro Timer",
        "description": "Focus sessions with short and long breaks.",
        "icon": "⏱️",
        "category": "productivity",
        "keywords": ["timer", "focus", "productivity"],
    },
    {
        "slug": "notes-manager",
        "name": "Notes & Snippets",
        "description": "Notes, markdown documents and code snippets with tags.",
        "icon": "📝",
        "category": "productivity",
        "keywords": ["notes", "write", "snippets", "code"],
    },
    {
        "slug": "text-summarizer",
        "name": "Text Summarizer",
        "description": "Condense long text into its key sentences.",
        "icon": "📄",
        "category": "utilities",
        "keywords": ["summarize", "text", "ai"],
    },
    {
        "slug": "currency-converter",
        "name": "Currency & Budget",
        "description": "Convert currencies and keep budgets on track.",
        "icon": "💱",
        "category": "finance",
        "keywords": ["currency", "money", "convert", "budget"],
    },
    {
        "slug": "weather-info",
        "name": "Weather Info",
        "description": "Current conditions and a five day forecast for saved places.",
        "icon": "🌤️",
        "category": "utilities",
        "keywords": ["weather", "forecast", "temperature"],
    },
    {
        "slug": "calendar",
        "name": "Calendar",
        "description": "Events, reminders and recurring schedules.",
        "icon": "📅",
        "category": "productivity",
        "keywords": ["calendar", "schedule", "events", "dates"],
    },
    {
        "slug": "habit-tracker",
        "name": "Habit Tracker",
        "description": "Build routines and keep your streaks alive.",
        "icon": "🎯",
        "category": "lifestyle",
        "keywords": ["habits", "goals", "track", "routine"],
    },
]

APP_SLUGS = [item["slug"] for item in APP_CATALOG]
APP_NAMES = {item["slug"]: item["name"] for item in APP_CATALOG}
