"""Settings read from the environment, and the storage factory."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from tutor_desk.db import DEFAULT_DB_PATH, init_db
from tutor_desk.sqlite_storage import SqliteStorage
from tutor_desk.storage import MemStorage, Storage

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "memory")


@dataclass
class Settings:
    backend: str = "sqlite"
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "WARNING"
    seed: bool = True


def _flag(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    backend = env.get("TUTOR_DESK_BACKEND", "sqlite").strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown storage backend {backend!r}; expected one of {', '.join(BACKENDS)}")
    return Settings(
        backend=backend,
        db_path=env.get("TUTOR_DESK_DB", DEFAULT_DB_PATH),
        log_level=env.get("TUTOR_DESK_LOG_LEVEL", "WARNING").upper(),
        seed=_flag(env.get("TUTOR_DESK_SEED", "1")),
    )


def create_storage(settings: Settings) -> Storage:
    if settings.backend == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()
    init_db(settings.db_path)
    logger.info("Using SQLite storage at %s", settings.db_path)
    return SqliteStorage(settings.db_path)
