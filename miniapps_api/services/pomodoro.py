from __future__ import annotations

SESSION_TYPES = ("work", "short_break", "long_break")
DURATIONS = {"work": 25, "short_break": 5, "long_break": 15}
LONG_BREAK_EVERY = 4


def next_session_type(current: str, completed_work_count: int) -> str:
    """Session that follows ``current``.

    ``completed_work_count`` is the number of work sessions finished before
    the one that just ended; every fourth work session earns a long break.
    """
    if current not in SESSION_TYPES:
        raise ValueError(f"Invalid session type: {current!r}")
    if current != "work":
        return "work"
    if (completed_work_count + 1) % LONG_BREAK_EVERY == 0:
        return "long_break"
    return "short_break"
