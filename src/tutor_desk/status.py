"""Closed value sets for role and workflow status fields."""
from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class UserRole(str, Enum):
    ADMIN = "admin"
    PARENT = "parent"
    TUTOR = "tutor"


class InquiryStatus(str, Enum):
    NEW = "new"
    SCHEDULED = "scheduled"
    MATCHED = "matched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CallStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


def parse_status(enum_cls: Type[E], value) -> Optional[E]:
    """Return the member of ``enum_cls`` matching ``value``, or None if it is not one."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def choices(enum_cls: Type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
