from __future__ import annotations

from dataclasses import asdict, dataclass

DURATIONS = {"work": 25, "short_break": 5, "long_break": 15}
SESSION_LABELS = {"work": "Focus", "short_break": "Short break", "long_break": "Long break"}
STATES = ("idle", "running", "paused", "finished")
LONG_BREAK_EVERY = 4


def next_session_type(current: str, completed_work_count: int) -> str:
    if current == "work":
        return "long_break" if (completed_work_count + 1) % LONG_BREAK_EVERY == 0 else "short_break"
    return "work"


@dataclass
class PomodoroTimer:
    session_type: str = "work"
    state: str = "idle"
    started_at: float | None = None
    elapsed_before_pause: float = 0.0
    completed_work: int = 0

    @classmethod
    def from_dict(cls, payload: dict | None) -> "PomodoroTimer":
        if not payload:
            return cls()
        timer = cls(**{key: payload[key] for key in cls.__dataclass_fields__ if key in payload})
        if timer.session_type not in DURATIONS:
            timer.session_type = "work"
        if timer.state not in STATES:
            timer.state = "idle"
        return timer

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def duration_seconds(self) -> int:
        return DURATIONS[self.session_type] * 60

    def elapsed_seconds(self, now: float) -> float:
        if self.state == "running" and self.started_at is not None:
            return self.elapsed_before_pause + max(0.0, now - self.started_at)
        return self.elapsed_before_pause

    def remaining_seconds(self, now: float) -> int:
        if self.state == "finished":
            return 0
        return max(0, int(round(self.duration_seconds - self.elapsed_seconds(now))))

    def progress(self, now: float) -> float:
        return min(1.0, self.elapsed_seconds(now) / self.duration_seconds)

    def start(self, now: float) -> None:
        if self.state in ("idle", "finished"):
            self.elapsed_before_pause = 0.0
            self.started_at = now
            self.state = "running"

    def pause(self, now: float) -> None:
        if self.state != "running":
            return
        self.elapsed_before_pause = self.elapsed_seconds(now)
        self.started_at = None
        self.state = "paused"

    def resume(self, now: float) -> None:
        if self.state != "paused":
            return
        self.started_at = now
        self.state = "running"

    def reset(self) -> None:
        self.state = "idle"
        self.started_at = None
        self.elapsed_before_pause = 0.0

    def tick(self, now: float) -> bool:
        """Return True exactly once, when a running session reaches zero."""
        if self.state != "running" or self.remaining_seconds(now) > 0:
            return False
        self.elapsed_before_pause = float(self.duration_seconds)
        self.started_at = None
        self.state = "finished"
        return True

    def advance(self) -> str:
        finished = self.session_type
        self.session_type = next_session_type(finished, self.completed_work)
        if finished == "work":
            self.completed_work += 1
        self.reset()
        return self.session_type

    def skip(self) -> str:
        skipped = self.session_type
        self.session_type = next_session_type(skipped, self.completed_work)
        self.reset()
        return self.session_type

    def select(self, session_type: str) -> None:
        if session_type not in DURATIONS:
            raise ValueError(f"Unknown session type: {session_type}")
        self.session_type = session_type
        self.reset()


def format_time(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
