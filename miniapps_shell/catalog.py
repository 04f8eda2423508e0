from miniapps_shell.constants import SHORTCUT_SLUGS


def quick_search(apps, query):
    needle = str(query or "").strip().lower()
    if not needle:
        return list(apps)
    matches = []
    for app in apps:
        haystack = [app.get("name") or "", app.get("description") or ""]
        haystack.extend(app.get("keywords") or [])
        if any(needle in str(value).lower() for value in haystack):
            matches.append(app)
    return matches


def shortcut_slug(value):
    """Map a quick-switch digit ("1".."9") to its app slug, or None."""
    raw = str(value or "").strip()
    if len(raw) != 1 or not raw.isdigit() or raw == "0":
        return None
    index = int(raw) - 1
    if index >= len(SHORTCUT_SLUGS):
        return None
    return SHORTCUT_SLUGS[index]


def shortcut_digit(slug):
    if slug not in SHORTCUT_SLUGS:
        return None
    return str(SHORTCUT_SLUGS.index(slug) + 1)


def split_favorites(apps, favorites):
    favorite_set = set(favorites or [])
    by_slug = {app["slug"]: app for app in apps}
    pinned = [by_slug[slug] for slug in favorites or [] if slug in by_slug]
    others = [app for app in apps if app["slug"] not in favorite_set]
    return pinned, others
