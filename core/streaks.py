from datetime import date, timedelta
from typing import Iterable, List

from models.habit import Habit

def toggle_date(history: Iterable[str], day: str) -> List[str]:
    """
    Adds `day` to the completion history, or removes it if already present.

    History is a set stored as a list, so membership is checked before
    appending and order carries no meaning.
    """
    new_history = list(history)
    if day in new_history:
        new_history.remove(day)
    else:
        new_history.append(day)
    return new_history

def compute_streak(history: Iterable[str], reference_date: date) -> int:
    """
    Counts consecutive completed days walking backward from `reference_date`.

    The i-th newest history entry must equal `reference_date - i days` (as a
    `YYYY-MM-DD` string); the walk stops at the first mismatch. A run ending
    yesterday therefore counts as 0. Frequency is not consulted: weekly
    habits are measured by daily contiguity too.

    Dates are compared as strings, so malformed entries simply never match.
    """
    streak = 0
    sorted_dates = sorted(history, reverse=True)

    for i, completed in enumerate(sorted_dates):
        expected = (reference_date - timedelta(days=i)).isoformat()
        if completed == expected:
            streak += 1
        else:
            break

    return streak

def toggle_completion(habit: Habit, day: str, today: date) -> Habit:
    """
    Toggle a Habit's completion for one calendar day (The Core Streak Logic).

    1. Add or remove `day` in the completion history.
    2. Recompute the streak from scratch relative to `today`, not `day`.
       Toggling an old date can reset the streak to 0 when today is not done.
    3. best_streak = max(best_streak, streak).

    The input habit is left untouched; the caller persists the returned copy.
    The date is not validated.

    Returns:
        Habit: the updated record
    """
    completion_history = toggle_date(habit.completion_history, day)
    streak = compute_streak(completion_history, today)
    best_streak = max(habit.best_streak, streak)

    return habit.model_copy(update={
        "completion_history": completion_history,
        "streak": streak,
        "best_streak": best_streak,
    })
