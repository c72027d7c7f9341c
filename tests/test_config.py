import pytest

from tutor_desk.config import Settings, create_storage, load_settings
from tutor_desk.db import DEFAULT_DB_PATH
from tutor_desk.sqlite_storage import SqliteStorage
from tutor_desk.storage import MemStorage


def test_defaults():
    settings = load_settings({})
    assert settings.backend == "sqlite"
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.log_level == "WARNING"
    assert settings.seed is True


def test_reads_environment():
    settings = load_settings({
        "TUTOR_DESK_BACKEND": "Memory",
        "TUTOR_DESK_DB": "/tmp/x.db",
        "TUTOR_DESK_LOG_LEVEL": "debug",
        "TUTOR_DESK_SEED": "false",
    })
    assert settings == Settings(backend="memory", db_path="/tmp/x.db", log_level="DEBUG", seed=False)


def test_unknown_backend():
    with pytest.raises(ValueError):
        load_settings({"TUTOR_DESK_BACKEND": "postgres"})


def test_create_memory_storage():
    assert isinstance(create_storage(Settings(backend="memory")), MemStorage)


def test_create_sqlite_storage_initializes_schema(tmp_db):
    storage = create_storage(Settings(backend="sqlite", db_path=tmp_db))
    assert isinstance(storage, SqliteStorage)
    assert storage.list_inquiries() == []


def test_storages_are_isolated():
    first = create_storage(Settings(backend="memory"))
    second = create_storage(Settings(backend="memory"))
    first.create_student({"first_name": "Amy", "last_name": "Lee", "grade": "5"})
    assert second.list_students() == []
