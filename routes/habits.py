import logging

from fastapi import APIRouter, HTTPException, Depends
from typing import List

from models.habit import Habit, HabitCreate, HabitUpdate, HabitToggle
from routes.auth import get_current_user_id
from core.storage import HabitStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/habits", tags=["Habits"])

async def get_owned_habit(habit_id: str, user_id: str, store: HabitStore) -> Habit:
    # Foreign habits look exactly like missing ones
    habit = await store.get_habit(habit_id)
    if not habit or habit.user_id != user_id:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit

@router.get("", response_model=List[Habit])
async def get_habits(user_id: str = Depends(get_current_user_id), store: HabitStore = Depends(get_store)):
    return await store.get_habits_by_user(user_id)

@router.post("", response_model=Habit)
async def create_habit(habit_in: HabitCreate, user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_store)):
    habit = await store.create_habit(user_id, habit_in)
    logger.info("Created habit %s for user %s", habit.id, user_id)
    return habit

@router.put("/{habit_id}", response_model=Habit)
async def update_habit(habit_id: str, updates: HabitUpdate, user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_store)):
    await get_owned_habit(habit_id, user_id, store)

    updated_habit = await store.update_habit(habit_id, updates)
    if not updated_habit:
        raise HTTPException(status_code=404, detail="Habit not found")
    return updated_habit

@router.delete("/{habit_id}")
async def delete_habit(habit_id: str, user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_store)):
    await get_owned_habit(habit_id, user_id, store)

    if not await store.delete_habit(habit_id):
        raise HTTPException(status_code=404, detail="Habit not found")
    logger.info("Deleted habit %s", habit_id)
    return {"message": "Habit deleted"}

@router.post("/{habit_id}/toggle", response_model=Habit)
async def toggle_habit(habit_id: str, toggle: HabitToggle, user_id: str = Depends(get_current_user_id),
                       store: HabitStore = Depends(get_store)):
    """
    Mark or un-mark a habit as done on `toggle.date`.

    The streak is recomputed relative to today, whichever date was toggled,
    and the best streak never goes down.

    Returns:
        Habit: the updated habit
    """
    await get_owned_habit(habit_id, user_id, store)

    updated_habit = await store.toggle_habit_completion(habit_id, toggle.date)
    if not updated_habit:
        raise HTTPException(status_code=404, detail="Habit not found")

    logger.debug("Habit %s toggled %s: streak=%d best=%d", habit_id, toggle.date,
                 updated_habit.streak, updated_habit.best_streak)
    return updated_habit
