import pytest

from tutor_desk.db import init_db
from tutor_desk.sqlite_storage import SqliteStorage
from tutor_desk.storage import MemStorage


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor_desk.db")
    return db_path


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_db):
    """Each storage contract test runs once per backend."""
    if request.param == "memory":
        return MemStorage()
    init_db(tmp_db)
    return SqliteStorage(tmp_db)


def make_user(**overrides):
    data = {
        "username": "jdoe",
        "email": "jdoe@example.com",
        "password": "secret",
        "first_name": "John",
        "last_name": "Doe",
        "role": "tutor",
    }
    data.update(overrides)
    return data


def make_inquiry(**overrides):
    data = {
        "parent_first_name": "Jack",
        "parent_last_name": "Smith",
        "parent_email": "jack@example.com",
        "parent_phone": "555-111-1111",
        "student_name": "Tommy Smith",
        "student_grade": "10",
        "subject": "math",
        "location": "online",
        "budget": "50-60",
        "contact_preference": "email",
    }
    data.update(overrides)
    return data


def make_session(**overrides):
    data = {
        "tutor_id": 1,
        "student_id": 1,
        "subject": "math",
        "date": "2024-05-01",
        "start_time": "15:00",
        "end_time": "16:00",
    }
    data.update(overrides)
    return data


def make_invoice(**overrides):
    data = {
        "tutor_id": 1,
        "parent_id": 2,
        "amount": 12000,
        "description": "Four math sessions",
        "due_date": "2024-05-31",
    }
    data.update(overrides)
    return data
