from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, Field


class PreferencesPatch(BaseModel):
    theme: Optional[Literal["light", "dark"]] = None
    favorite_apps: Optional[List[str]] = None


class FavoriteToggle(BaseModel):
    slug: str


class ProfilePatch(BaseModel):
    display_name: Optional[str] = None
    bio: Optional[str] = None
    timezone: Optional[str] = None
    avatar_url: Optional[str] = None


class TodoCreate(BaseModel):
    title: str
    description: Optional[str] = None
    priority: str = "medium"
    category: Optional[str] = None
    due_date: Optional[date] = None


class TodoPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    due_date: Optional[date] = None
    completed: Optional[bool] = None


class HabitCreate(BaseModel):
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    frequency: str = "daily"
    target_days: List[int] = Field(default_factory=list)
    reminder_time: Optional[str] = None


class HabitPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    frequency: Optional[str] = None
    target_days: Optional[List[int]] = None
    reminder_time: Optional[str] = None


class CompletionToggle(BaseModel):
    date: dt.date
    notes: Optional[str] = None


class EventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    event_type: str = "event"
    color: Optional[str] = None
    is_all_day: bool = False
    recurrence_rule: Optional[str] = None
    parent_event_id: Optional[str] = None
    reminder_minutes: Optional[int] = None


class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    event_type: Optional[str] = None
    color: Optional[str] = None
    is_all_day: Optional[bool] = None
    recurrence_rule: Optional[str] = None
    reminder_minutes: Optional[int] = None


class PomodoroSessionCreate(BaseModel):
    session_type: str
    duration_minutes: Optional[int] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    # Work sessions the current timer run finished before this one.
    completed_work_count: int = Field(0, ge=0)


class NoteCreate(BaseModel):
    title: str
    content: str = ""
    content_type: str = "note"
    language: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_favorite: bool = False
    color: Optional[str] = None


class NotePatch(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    content_type: Optional[str] = None
    language: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_favorite: Optional[bool] = None
    color: Optional[str] = None


class ShoppingListCreate(BaseModel):
    name: str
    description: Optional[str] = None


class ShoppingListPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ShoppingMemberCreate(BaseModel):
    email: str
    role: Literal["editor", "viewer"] = "editor"


class ShoppingItemCreate(BaseModel):
    name: str
    quantity: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class ShoppingItemPatch(BaseModel):
    name: Optional[str] = None
    quantity: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class BudgetCreate(BaseModel):
    name: str
    description: Optional[str] = None
    currency: str = "USD"
    total_amount: float
    period: str = "monthly"
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BudgetPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    currency: Optional[str] = None
    total_amount: Optional[float] = None
    period: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ExpenseCreate(BaseModel):
    description: str
    amount: float
    category: str = "Other"
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class LocationCreate(BaseModel):
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: float
    longitude: float
    is_default: bool = False


class SummarizeRequest(BaseModel):
    text: str
    ratio: float = 0.3
    save: bool = True
