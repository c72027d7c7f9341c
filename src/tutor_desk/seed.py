"""Seed storage with the default admin account and sample inquiries."""
import json
from pathlib import Path

CONTENT_DIR = Path(__file__).parent / "content"


def _load_demo() -> dict:
    return json.loads((CONTENT_DIR / "demo.json").read_text())


def is_seeded(storage) -> bool:
    """Check whether the default admin account already exists."""
    admin = _load_demo()["admin"]
    return storage.get_user_by_username(admin["username"]) is not None


def seed_admin(storage) -> None:
    storage.create_user(_load_demo()["admin"])


def seed_inquiries(storage) -> None:
    for inquiry in _load_demo()["inquiries"]:
        storage.create_inquiry(inquiry)


def seed_all(storage) -> None:
    """Run all seed functions in order."""
    if is_seeded(storage):
        return
    seed_admin(storage)
    seed_inquiries(storage)
