"""Dashboard statistics, today's sessions and recent inquiries."""
from datetime import date, datetime
from typing import Optional

from tutor_desk.models import DashboardStats, Inquiry, Participant, TodaySession
from tutor_desk.status import InquiryStatus, InvoiceStatus, SessionStatus

TODAY_SESSION_LIMIT = 3
RECENT_INQUIRY_LIMIT = 5


def format_currency(minor_units: int) -> str:
    """Format cents as US dollars, e.g. 123456 -> "$1,234.56"."""
    sign = "-" if minor_units < 0 else ""
    dollars, cents = divmod(abs(minor_units), 100)
    return f"{sign}${dollars:,}.{cents:02d}"


def initials(first_name: str, last_name: str) -> str:
    return f"{first_name[:1]}{last_name[:1]}".upper()


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _student_participant(storage, student_id: int) -> Participant:
    student = storage.get_student(student_id)
    if student is None:
        return Participant(id=student_id, name=f"Student #{student_id}", initials="ST")
    return Participant(
        id=student_id,
        name=f"{student.first_name} {student.last_name}",
        initials=initials(student.first_name, student.last_name),
    )


def _tutor_participant(storage, tutor_id: int) -> Participant:
    tutor = storage.get_tutor(tutor_id)
    user = storage.get_user(tutor.user_id) if tutor else None
    if user is None:
        return Participant(id=tutor_id, name=f"Tutor #{tutor_id}", initials="TU")
    return Participant(
        id=tutor_id,
        name=f"{user.first_name} {user.last_name}",
        initials=initials(user.first_name, user.last_name),
    )


def get_today_sessions(storage, today: Optional[date] = None, limit: int = TODAY_SESSION_LIMIT) -> list[TodaySession]:
    """Scheduled sessions for today, earliest first, with display names resolved."""
    today = today or date.today()
    sessions = [
        s for s in storage.list_sessions(status=SessionStatus.SCHEDULED)
        if _as_date(s.date) == today
    ]
    sessions.sort(key=lambda s: (s.start_time, s.id))
    return [
        TodaySession(
            id=s.id,
            time=f"{s.start_time} - {s.end_time}",
            subject=s.subject,
            topic=s.notes or "General tutoring",
            student=_student_participant(storage, s.student_id),
            tutor=_tutor_participant(storage, s.tutor_id),
        )
        for s in sessions[:limit]
    ]


def get_recent_inquiries(storage, limit: int = RECENT_INQUIRY_LIMIT) -> list[Inquiry]:
    inquiries = storage.list_inquiries()
    inquiries.sort(key=lambda i: (i.created_at or "", i.id), reverse=True)
    return inquiries[:limit]


def monthly_revenue(storage, today: Optional[date] = None) -> int:
    """Sum (in minor units) of invoices paid in the current calendar month."""
    today = today or date.today()
    total = 0
    for invoice in storage.list_invoices(status=InvoiceStatus.PAID):
        paid = _as_date(invoice.paid_date)
        if paid and paid.year == today.year and paid.month == today.month:
            total += invoice.amount
    return total


def get_dashboard_stats(storage, today: Optional[date] = None) -> DashboardStats:
    return DashboardStats(
        new_inquiries=len(storage.list_inquiries(status=InquiryStatus.NEW)),
        active_students=len(storage.list_students()),
        active_tutors=len(storage.list_tutors(active=True)),
        monthly_revenue=format_currency(monthly_revenue(storage, today)),
    )
