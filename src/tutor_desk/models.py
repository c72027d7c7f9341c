"""Data classes for the tutoring business records."""
from dataclasses import dataclass, field
from typing import Any, Optional

from tutor_desk.status import (
    CallStatus, InquiryStatus, InvoiceStatus, SessionStatus, UserRole,
)


@dataclass
class User:
    id: int
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Student:
    id: int
    first_name: str
    last_name: str
    grade: str
    parent_id: Optional[int] = None
    school: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Inquiry:
    id: int
    parent_first_name: str
    parent_last_name: str
    parent_email: str
    parent_phone: str
    student_name: str
    student_grade: str
    subject: str
    location: str
    specific_needs: Optional[str] = None
    budget: Optional[str] = None
    contact_preference: Optional[str] = None
    zip_code: Optional[str] = None
    availability: Optional[list] = None
    additional_info: Optional[str] = None
    referral: Optional[str] = None
    status: InquiryStatus = InquiryStatus.NEW
    created_at: Optional[str] = None


@dataclass
class Tutor:
    id: int
    user_id: int
    subjects: list = field(default_factory=list)
    education: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: Optional[int] = None  # minor units
    availability: Any = None  # JSON
    location: Optional[str] = None
    zip_code: Optional[str] = None
    active: bool = True
    created_at: Optional[str] = None


@dataclass
class ScheduledCall:
    id: int
    date: str
    time: str
    inquiry_id: Optional[int] = None
    parent_id: Optional[int] = None
    admin_id: Optional[int] = None
    duration: int = 30
    call_type: str = "phone"
    purpose: str = ""
    notes: Optional[str] = None
    status: CallStatus = CallStatus.SCHEDULED
    created_at: Optional[str] = None


@dataclass
class Session:
    id: int
    tutor_id: int
    student_id: int
    subject: str
    date: str
    start_time: str
    end_time: str
    location: Optional[str] = None
    notes: Optional[str] = None
    status: SessionStatus = SessionStatus.SCHEDULED
    created_at: Optional[str] = None


@dataclass
class SessionReport:
    id: int
    session_id: int
    topics_covered: str
    summary: str
    progress_assessment: str
    homework: Optional[str] = None
    internal_notes: Optional[str] = None
    admin_approved: bool = False
    sent_to_parent: bool = False
    created_at: Optional[str] = None


@dataclass
class Invoice:
    id: int
    tutor_id: int
    parent_id: int
    amount: int  # minor units
    description: str
    due_date: str
    status: InvoiceStatus = InvoiceStatus.DRAFT
    paid_date: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class InvoiceItem:
    id: int
    invoice_id: int
    description: str
    amount: int  # minor units
    session_id: Optional[int] = None
    quantity: int = 1
    created_at: Optional[str] = None


ENTITIES = (
    User, Student, Inquiry, Tutor, ScheduledCall,
    Session, SessionReport, Invoice, InvoiceItem,
)

# Enum-typed fields, coerced on every create and update.
ENUM_FIELDS = {
    User: {"role": UserRole},
    Inquiry: {"status": InquiryStatus},
    ScheduledCall: {"status": CallStatus},
    Session: {"status": SessionStatus},
    Invoice: {"status": InvoiceStatus},
}


@dataclass
class Participant:
    id: int
    name: str
    initials: str


@dataclass
class TodaySession:
    id: int
    time: str
    subject: str
    topic: str
    student: Participant
    tutor: Participant


@dataclass
class DashboardStats:
    new_inquiries: int
    active_students: int
    active_tutors: int
    monthly_revenue: str
