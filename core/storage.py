import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument

from core.config import settings
from core.database import create_client
from core.security import get_password_hash
from core.streaks import toggle_completion
from core.time_utils import current_date, get_current_time
from models.habit import Habit, HabitCreate, HabitUpdate
from models.user import User, UserCreate

logger = logging.getLogger(__name__)

Clock = Callable[[], date]

class HabitStore(ABC):
    """
    Persistence contract for users and habits.

    Lookups that find nothing return None (or False for deletes); it is up to
    the caller to turn that into a 404. `clock` supplies "today" for streaks.
    """

    def __init__(self, clock: Clock = current_date):
        self.clock = clock

    # Users
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, user_in: UserCreate) -> User: ...

    # Habits
    @abstractmethod
    async def get_habits_by_user(self, user_id: str) -> List[Habit]: ...

    @abstractmethod
    async def get_habit(self, habit_id: str) -> Optional[Habit]: ...

    @abstractmethod
    async def create_habit(self, user_id: str, habit_in: HabitCreate) -> Habit: ...

    @abstractmethod
    async def update_habit(self, habit_id: str, updates: HabitUpdate) -> Optional[Habit]: ...

    @abstractmethod
    async def delete_habit(self, habit_id: str) -> bool: ...

    @abstractmethod
    async def toggle_habit_completion(self, habit_id: str, day: str) -> Optional[Habit]: ...

    async def close(self) -> None:
        return None

def build_user(user_in: UserCreate) -> User:
    return User(name=user_in.name, email=user_in.email, password=get_password_hash(user_in.password))

def build_habit(user_id: str, habit_in: HabitCreate) -> Habit:
    # Derived fields start empty; the id comes from the model default
    now = get_current_time()
    return Habit(
        user_id=user_id,
        title=habit_in.title,
        description=habit_in.description or None,
        frequency=habit_in.frequency,
        reminder_time=habit_in.reminder_time or None,
        start_date=now,
        created_at=now,
    )

class MemoryHabitStore(HabitStore):
    """Process-local store. Hands out copies so callers cannot mutate stored records."""

    def __init__(self, clock: Clock = current_date):
        super().__init__(clock)
        self.users: Dict[str, User] = {}
        self.habits: Dict[str, Habit] = {}

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self.users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def create_user(self, user_in: UserCreate) -> User:
        user = build_user(user_in)
        self.users[user.id] = user
        return user.model_copy()

    async def get_habits_by_user(self, user_id: str) -> List[Habit]:
        return [h.model_copy(deep=True) for h in self.habits.values() if h.user_id == user_id]

    async def get_habit(self, habit_id: str) -> Optional[Habit]:
        habit = self.habits.get(habit_id)
        return habit.model_copy(deep=True) if habit else None

    async def create_habit(self, user_id: str, habit_in: HabitCreate) -> Habit:
        habit = build_habit(user_id, habit_in)
        self.habits[habit.id] = habit
        return habit.model_copy(deep=True)

    async def update_habit(self, habit_id: str, updates: HabitUpdate) -> Optional[Habit]:
        habit = self.habits.get(habit_id)
        if not habit:
            return None

        updated_habit = habit.model_copy(update=updates.model_dump(exclude_unset=True))
        self.habits[habit_id] = updated_habit
        return updated_habit.model_copy(deep=True)

    async def delete_habit(self, habit_id: str) -> bool:
        return self.habits.pop(habit_id, None) is not None

    async def toggle_habit_completion(self, habit_id: str, day: str) -> Optional[Habit]:
        habit = self.habits.get(habit_id)
        if not habit:
            return None

        updated_habit = toggle_completion(habit, day, self.clock())
        self.habits[habit_id] = updated_habit
        return updated_habit.model_copy(deep=True)

class MongoHabitStore(HabitStore):
    """
    MongoDB backend (motor). Documents are keyed by the `id` field and use
    the camelCase field names of the models; Mongo's own `_id` is never exposed.
    """

    PROJECTION = {"_id": 0}

    def __init__(self, client: AsyncIOMotorClient, db_name: str = settings.DB_NAME, clock: Clock = current_date):
        super().__init__(clock)
        self.client = client
        self.db = self.client[db_name]
        self.users = self.db.users
        self.habits = self.db.habits

    async def connect(self) -> None:
        """Verifies the server is reachable. Raises on failure."""
        await self.client.admin.command("ping")
        logger.info("Connected to MongoDB database %s", self.db.name)

    async def close(self) -> None:
        self.client.close()

    async def get_user(self, user_id: str) -> Optional[User]:
        user_data = await self.users.find_one({"id": user_id}, self.PROJECTION)
        return User(**user_data) if user_data else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        user_data = await self.users.find_one({"email": email}, self.PROJECTION)
        return User(**user_data) if user_data else None

    async def create_user(self, user_in: UserCreate) -> User:
        user = build_user(user_in)
        await self.users.insert_one(user.model_dump(by_alias=True))
        return user

    async def get_habits_by_user(self, user_id: str) -> List[Habit]:
        cursor = self.habits.find({"userId": user_id}, self.PROJECTION)
        habits = await cursor.to_list(length=None)
        return [Habit(**h) for h in habits]

    async def get_habit(self, habit_id: str) -> Optional[Habit]:
        habit_data = await self.habits.find_one({"id": habit_id}, self.PROJECTION)
        return Habit(**habit_data) if habit_data else None

    async def create_habit(self, user_id: str, habit_in: HabitCreate) -> Habit:
        habit = build_habit(user_id, habit_in)
        await self.habits.insert_one(habit.model_dump(by_alias=True))
        return habit

    async def update_habit(self, habit_id: str, updates: HabitUpdate) -> Optional[Habit]:
        changes = updates.model_dump(by_alias=True, exclude_unset=True)
        if not changes:
            return await self.get_habit(habit_id)

        updated = await self.habits.find_one_and_update(
            {"id": habit_id},
            {"$set": changes},
            projection=self.PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return Habit(**updated) if updated else None

    async def delete_habit(self, habit_id: str) -> bool:
        result = await self.habits.delete_one({"id": habit_id})
        return result.deleted_count == 1

    async def toggle_habit_completion(self, habit_id: str, day: str) -> Optional[Habit]:
        # Read-modify-write without a version check: concurrent toggles on one
        # habit can overwrite each other.
        habit = await self.get_habit(habit_id)
        if not habit:
            return None

        updated_habit = toggle_completion(habit, day, self.clock())
        await self.habits.update_one(
            {"id": habit_id},
            {"$set": {
                "completionHistory": updated_habit.completion_history,
                "streak": updated_habit.streak,
                "bestStreak": updated_habit.best_streak,
            }}
        )
        return updated_habit

_store: Optional[HabitStore] = None
_store_lock = asyncio.Lock()

async def init_store(mongo_uri: str = settings.MONGO_URI) -> HabitStore:
    """
    Picks the backend: MongoDB when a URI is configured and reachable,
    otherwise the in-memory store.
    """
    if not mongo_uri:
        logger.info("Using in-memory storage (MONGO_URI not set)")
        return MemoryHabitStore()

    store = None
    try:
        logger.info("Initializing MongoDB storage...")
        store = MongoHabitStore(create_client(mongo_uri))
        await store.connect()
        return store
    except Exception as e:
        logger.error("Failed to initialize MongoDB storage: %s", e)
        if store is not None:
            await store.close()
        logger.warning("Falling back to in-memory storage")
        return MemoryHabitStore()

async def get_store() -> HabitStore:
    """FastAPI dependency returning the process-wide store, created on first use."""
    global _store
    # Concurrent first callers must share one initialisation
    async with _store_lock:
        if _store is None:
            _store = await init_store()
    return _store

async def close_store() -> None:
    global _store
    if _store is not None:
        await _store.close()
        _store = None
