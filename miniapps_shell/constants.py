PAGES = [
    ("home", "Home", "🏠"),
    ("profile", "Profile", "👤"),
    ("about", "About", "ℹ️"),
]
PAGE_SLUGS = [slug for slug, _, _ in PAGES]
DEFAULT_PAGE = "home"

SHORTCUT_SLUGS = [
    "todo-list",
    "shopping-list",
    "pomodoro-timer",
    "notes-manager",
    "text-summarizer",
    "currency-converter",
    "weather-info",
    "calendar",
    "habit-tracker",
]

ACTIVE_VIEW_KEY = "ui.active_view"
QUICK_SEARCH_KEY = "ui.quick_search"
QUICK_SWITCH_KEY = "ui.quick_switch"

ACTIVITY_ICONS = {
    "todo": "✅",
    "note": "📝",
    "pomodoro": "🍅",
    "habit": "🔥",
    "event": "📅",
    "shopping": "🛒",
}
