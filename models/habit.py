from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from uuid import uuid4
from core.time_utils import get_current_time

Frequency = Literal["daily", "weekly"]

def new_id() -> str:
    return str(uuid4())

class Habit(BaseModel):
    """
    Represents a Habit in the system.

    Stored and serialized with camelCase keys (`userId`, `completionHistory`,
    ...). Those names and the `YYYY-MM-DD` date strings are the persisted
    contract shared by every store backend.

    Attributes:
    - completion_history: Dates the habit was marked done. A set kept as a list.
    - streak: Consecutive completed days ending today. Derived, see core.streaks.
    - best_streak: All-time high streak. Never decreases.
    """
    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., alias="userId")
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    frequency: Frequency = "daily"
    reminder_time: Optional[str] = Field(default=None, alias="reminderTime")

    # Streak Tracking (written only by core.streaks.toggle_completion)
    completion_history: List[str] = Field(default_factory=list, alias="completionHistory")
    streak: int = 0
    best_streak: int = Field(default=0, alias="bestStreak")

    is_active: bool = Field(default=True, alias="isActive")
    start_date: datetime = Field(default_factory=get_current_time, alias="startDate")
    created_at: datetime = Field(default_factory=get_current_time, alias="createdAt")

    class Config:
        populate_by_name = True

class HabitCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    frequency: Frequency
    reminder_time: Optional[str] = Field(default=None, alias="reminderTime")

    class Config:
        populate_by_name = True

class HabitUpdate(BaseModel):
    """
    Partial update of configuration fields.

    Completion history and streaks are not accepted here; they only change
    through the toggle operation. Fields may be omitted, but only
    `description` and `reminderTime` may be cleared with null.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    frequency: Optional[Frequency] = None
    reminder_time: Optional[str] = Field(default=None, alias="reminderTime")
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    @field_validator("title", "frequency", "is_active")
    @classmethod
    def reject_null(cls, value):
        # Defaults are not validated, so this only fires on an explicit null
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

    class Config:
        populate_by_name = True
        extra = "forbid"

class HabitToggle(BaseModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
