from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ShellContext:
    user_email: str
    display_name: str
    today: str
    theme: str
    apps: List[Dict[str, Any]] = field(default_factory=list)
    preferences: Dict[str, Any] = field(default_factory=dict)
    profile: Dict[str, Any] = field(default_factory=dict)
    backend_ok: bool = True

    @property
    def favorites(self):
        return list(self.preferences.get("favorite_apps") or [])

    @property
    def timezone(self):
        return self.profile.get("timezone") or "UTC"

    def app_by_slug(self, slug):
        for app in self.apps:
            if app.get("slug") == slug:
                return app
        return None
