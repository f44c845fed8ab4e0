import asyncio
from datetime import date

import pytest
from pydantic import ValidationError

from core.security import verify_password
from core import storage
from core.storage import MemoryHabitStore, MongoHabitStore, init_store
from models.habit import HabitCreate, HabitUpdate
from models.user import UserCreate

TODAY = date(2024, 1, 10)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store():
    return MemoryHabitStore(clock=lambda: TODAY)


@pytest.fixture
def habit(store):
    return run(store.create_habit("user-1", HabitCreate(title="Stretch", frequency="daily")))


def test_create_habit_defaults(store):
    created = run(store.create_habit("user-1", HabitCreate(title="Walk", description="", frequency="weekly",
                                                           reminderTime="08:00")))
    assert created.id
    assert created.user_id == "user-1"
    assert created.frequency == "weekly"
    assert created.reminder_time == "08:00"
    assert created.description is None
    assert created.completion_history == []
    assert created.streak == 0
    assert created.best_streak == 0
    assert created.is_active is True
    assert created.start_date == created.created_at


def test_create_habit_assigns_distinct_ids(store):
    first = run(store.create_habit("user-1", HabitCreate(title="A", frequency="daily")))
    second = run(store.create_habit("user-1", HabitCreate(title="B", frequency="daily")))
    assert first.id != second.id


def test_get_habit_missing_is_none(store):
    assert run(store.get_habit("nope")) is None


def test_get_habits_by_user_filters_owner(store, habit):
    run(store.create_habit("user-2", HabitCreate(title="Other", frequency="daily")))
    habits = run(store.get_habits_by_user("user-1"))
    assert [h.id for h in habits] == [habit.id]
    assert run(store.get_habits_by_user("user-3")) == []


def test_returned_habits_are_copies(store, habit):
    fetched = run(store.get_habit(habit.id))
    fetched.completion_history.append("2024-01-10")
    assert run(store.get_habit(habit.id)).completion_history == []


def test_update_merges_partial_fields(store, habit):
    updated = run(store.update_habit(habit.id, HabitUpdate(title="Stretch more", isActive=False)))
    assert updated.title == "Stretch more"
    assert updated.is_active is False
    assert updated.frequency == "daily"
    assert updated.created_at == habit.created_at


def test_update_missing_is_none(store):
    assert run(store.update_habit("nope", HabitUpdate(title="x"))) is None


def test_update_rejects_derived_fields():
    with pytest.raises(ValidationError):
        HabitUpdate(completionHistory=["2024-01-10"])
    with pytest.raises(ValidationError):
        HabitUpdate(streak=5)


def test_delete(store, habit):
    assert run(store.delete_habit(habit.id)) is True
    assert run(store.get_habit(habit.id)) is None
    assert run(store.delete_habit(habit.id)) is False


def test_toggle_persists_and_uses_store_clock(store, habit):
    toggled = run(store.toggle_habit_completion(habit.id, "2024-01-10"))
    assert toggled.streak == 1
    assert toggled.best_streak == 1

    stored = run(store.get_habit(habit.id))
    assert stored.completion_history == ["2024-01-10"]
    assert stored.streak == 1


def test_toggle_reference_date_follows_clock(habit, store):
    run(store.toggle_habit_completion(habit.id, "2024-01-10"))
    store.clock = lambda: date(2024, 1, 12)
    toggled = run(store.toggle_habit_completion(habit.id, "2024-01-11"))
    assert toggled.streak == 0
    assert toggled.best_streak == 1


def test_toggle_missing_is_none(store):
    assert run(store.toggle_habit_completion("nope", "2024-01-10")) is None


def test_create_user_hashes_password(store):
    user = run(store.create_user(UserCreate(name="Ada", email="ada@habits.io", password="secret")))
    assert user.password != "secret"
    assert verify_password("secret", user.password)
    assert run(store.get_user(user.id)).email == "ada@habits.io"
    assert run(store.get_user_by_email("ada@habits.io")).id == user.id
    assert run(store.get_user_by_email("bob@habits.io")) is None


def test_init_store_without_uri_uses_memory():
    assert isinstance(run(init_store("")), MemoryHabitStore)


def test_init_store_falls_back_on_invalid_uri():
    assert isinstance(run(init_store("postgres://localhost/db")), MemoryHabitStore)


def test_update_rejects_null_for_required_fields():
    for field in ("title", "frequency", "isActive"):
        with pytest.raises(ValidationError):
            HabitUpdate(**{field: None})

    cleared = HabitUpdate(description=None, reminderTime=None)
    assert cleared.model_dump(exclude_unset=True) == {"description": None, "reminder_time": None}


def test_init_store_closes_client_when_ping_fails(monkeypatch):
    closed = []
    real_close = MongoHabitStore.close

    async def refuse(self):
        raise ConnectionError("server unreachable")

    async def record_close(self):
        closed.append(self)
        await real_close(self)

    monkeypatch.setattr(MongoHabitStore, "connect", refuse)
    monkeypatch.setattr(MongoHabitStore, "close", record_close)

    assert isinstance(run(init_store("mongodb://localhost:1")), MemoryHabitStore)
    assert len(closed) == 1


def test_get_store_initialises_once_for_concurrent_callers(monkeypatch):
    calls = []

    async def slow_init_store():
        calls.append(1)
        await asyncio.sleep(0.01)
        return MemoryHabitStore()

    monkeypatch.setattr(storage, "_store", None)
    monkeypatch.setattr(storage, "init_store", slow_init_store)

    async def first_requests():
        stores = await asyncio.gather(*(storage.get_store() for _ in range(5)))
        await storage.close_store()
        return stores

    stores = run(first_requests())
    assert len(calls) == 1
    assert all(s is stores[0] for s in stores)
