"""Database initialization, connection management and column encoding."""
import json
import sqlite3
from enum import Enum
from pathlib import Path

from tutor_desk.errors import StorageUnavailable
from tutor_desk.models import (
    Inquiry, Invoice, InvoiceItem, ScheduledCall, Session, SessionReport,
    Student, Tutor, User,
)

DEFAULT_DB_PATH = str(Path.home() / ".tutor_desk" / "tutor_desk.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    role TEXT NOT NULL,
    phone TEXT,
    avatar TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS students (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    grade TEXT NOT NULL,
    parent_id INTEGER,
    school TEXT,
    notes TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS inquiries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_first_name TEXT NOT NULL,
    parent_last_name TEXT NOT NULL,
    parent_email TEXT NOT NULL,
    parent_phone TEXT NOT NULL,
    student_name TEXT NOT NULL,
    student_grade TEXT NOT NULL,
    subject TEXT NOT NULL,
    location TEXT NOT NULL,
    specific_needs TEXT,
    budget TEXT,
    contact_preference TEXT,
    zip_code TEXT,
    availability TEXT,
    additional_info TEXT,
    referral TEXT,
    status TEXT NOT NULL DEFAULT 'new',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tutors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    subjects TEXT,
    education TEXT,
    bio TEXT,
    hourly_rate INTEGER,
    availability TEXT,
    location TEXT,
    zip_code TEXT,
    active INTEGER DEFAULT 1,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS scheduled_calls (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    time TEXT NOT NULL,
    inquiry_id INTEGER,
    parent_id INTEGER,
    admin_id INTEGER,
    duration INTEGER DEFAULT 30,
    call_type TEXT,
    purpose TEXT,
    notes TEXT,
    status TEXT NOT NULL DEFAULT 'scheduled',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tutor_id INTEGER NOT NULL,
    student_id INTEGER NOT NULL,
    subject TEXT NOT NULL,
    date TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    location TEXT,
    notes TEXT,
    status TEXT NOT NULL DEFAULT 'scheduled',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS session_reports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL,
    topics_covered TEXT NOT NULL,
    summary TEXT NOT NULL,
    progress_assessment TEXT NOT NULL,
    homework TEXT,
    internal_notes TEXT,
    admin_approved INTEGER DEFAULT 0,
    sent_to_parent INTEGER DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS invoices (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tutor_id INTEGER NOT NULL,
    parent_id INTEGER NOT NULL,
    amount INTEGER NOT NULL,
    description TEXT NOT NULL,
    due_date TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    paid_date TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS invoice_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_id INTEGER NOT NULL,
    description TEXT NOT NULL,
    amount INTEGER NOT NULL,
    session_id INTEGER,
    quantity INTEGER DEFAULT 1,
    created_at TEXT NOT NULL
);
"""

TABLES = {
    User: "users",
    Student: "students",
    Inquiry: "inquiries",
    Tutor: "tutors",
    ScheduledCall: "scheduled_calls",
    Session: "sessions",
    SessionReport: "session_reports",
    Invoice: "invoices",
    InvoiceItem: "invoice_items",
}

JSON_COLUMNS = {"subjects", "availability"}
BOOL_COLUMNS = {"active", "admin_approved", "sent_to_parent"}


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory set."""
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.OperationalError as exc:
        raise StorageUnavailable(f"Cannot open database {db_path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def encode_column(name: str, value):
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if name in JSON_COLUMNS:
        return json.dumps(value)
    if name in BOOL_COLUMNS:
        return int(bool(value))
    return value


def decode_column(name: str, value):
    if value is None:
        return None
    if name in JSON_COLUMNS:
        return json.loads(value)
    if name in BOOL_COLUMNS:
        return bool(value)
    return value
