from datetime import date, datetime, timezone

from miniapps_shell.state.pomodoro_timer import format_time

__all__ = ["format_time", "time_ago", "reminder_label", "format_money", "format_event_time", "parse_timestamp"]


def parse_timestamp(value):
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_ago(value, now=None):
    moment = parse_timestamp(value)
    if moment is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "Just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return moment.strftime("%b %d, %Y")


def reminder_label(minutes):
    if minutes is None:
        return "No reminder"
    minutes = int(minutes)
    if minutes == 0:
        return "At start"
    if minutes % 1440 == 0:
        days = minutes // 1440
        return f"{days} day{'s' if days > 1 else ''} before"
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours > 1 else ''} before"
    return f"{minutes} minutes before"


def format_money(amount, currency="USD", symbol=None):
    value = float(amount or 0)
    prefix = symbol if symbol else f"{currency} "
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.2f}"


def format_event_time(event):
    if event.get("is_all_day"):
        return "All day"
    start = str(event.get("start_time") or "")
    end = str(event.get("end_time") or "")
    start_clock = start[11:16] if len(start) >= 16 else ""
    end_clock = end[11:16] if len(end) >= 16 else ""
    if start_clock and end_clock:
        return f"{start_clock} - {end_clock}"
    return start_clock


def format_day(value):
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime("%a, %b %d")
