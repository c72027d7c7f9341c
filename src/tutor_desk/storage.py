"""Storage engine: one contract for every record type, and the in-memory backend.

``Storage`` owns the rules shared by all backends (id/timestamp/default
assignment, shallow-merge updates, status validation, the call -> inquiry side
effect and the dashboard reads). A backend only has to persist and load
records through four hooks: ``_insert``, ``_load``, ``_load_all`` and
``_store``.
"""
import copy
import logging
import threading
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Optional

from tutor_desk import dashboard
from tutor_desk.errors import DuplicateUserError
from tutor_desk.ids import IdAllocator
from tutor_desk.models import (
    ENTITIES, ENUM_FIELDS, DashboardStats, Inquiry, Invoice, InvoiceItem,
    ScheduledCall, Session, SessionReport, Student, TodaySession, Tutor, User,
)
from tutor_desk.status import InquiryStatus, InvoiceStatus, parse_status

logger = logging.getLogger(__name__)

FIXED_FIELDS = frozenset({"id", "created_at"})
FIXED_USER_FIELDS = FIXED_FIELDS | {"role"}


def _normalize(value):
    if isinstance(value, date):
        return value.isoformat()
    return value


class Storage:
    def __init__(self):
        self._lock = threading.RLock()

    # -- backend hooks --------------------------------------------------

    def _insert(self, record) -> int:
        """Persist a new record whose ``id`` is a placeholder; return the id it was given."""
        raise NotImplementedError

    def _load(self, model, record_id: int):
        raise NotImplementedError

    def _load_all(self, model, filters: dict) -> list:
        raise NotImplementedError

    def _store(self, record) -> None:
        raise NotImplementedError

    # -- generic operations ---------------------------------------------

    def _create(self, model, payload: dict, **forced):
        values = {k: _normalize(v) for k, v in payload.items() if k not in FIXED_FIELDS}
        values.update(forced)
        for name, enum_cls in ENUM_FIELDS.get(model, {}).items():
            if name in values:
                values[name] = enum_cls(values[name])
        values["created_at"] = datetime.now().isoformat()
        draft = model(id=0, **values)
        with self._lock:
            if model is User:
                self._check_user_unique(draft)
            record_id = self._insert(draft)
        logger.debug("Created %s %d", model.__name__, record_id)
        return self._load(model, record_id)

    def _list(self, model, filters: dict) -> list:
        known = {f.name for f in fields(model)}
        unknown = sorted(set(filters) - known)
        if unknown:
            raise ValueError(f"Cannot filter {model.__name__} on: {', '.join(unknown)}")
        return self._load_all(model, {k: _normalize(v) for k, v in filters.items()})

    def _update(self, model, record_id: int, changes: dict, fixed=FIXED_FIELDS):
        values = {k: _normalize(v) for k, v in changes.items() if k not in fixed}
        for name, enum_cls in ENUM_FIELDS.get(model, {}).items():
            if name in values:
                parsed = parse_status(enum_cls, values[name])
                if parsed is None:
                    logger.warning(
                        "Rejected %s=%r for %s %s", name, values[name], model.__name__, record_id,
                    )
                    return None
                values[name] = parsed
        with self._lock:
            current = self._load(model, record_id)
            if current is None:
                return None
            updated = replace(current, **values)
            if model is User:
                self._check_user_unique(updated)
            self._store(updated)
        logger.debug("Updated %s %d: %s", model.__name__, record_id, sorted(values))
        return self._load(model, record_id)

    def _check_user_unique(self, user: User) -> None:
        for field_name in ("username", "email"):
            value = getattr(user, field_name)
            for existing in self._load_all(User, {field_name: value}):
                if existing.id != user.id:
                    raise DuplicateUserError(field_name, value)

    # -- users ------------------------------------------------------------

    def create_user(self, payload: dict) -> User:
        return self._create(User, payload)

    def get_user(self, user_id: int) -> Optional[User]:
        return self._load(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        users = self._list(User, {"username": username})
        return users[0] if users else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        users = self._list(User, {"email": email})
        return users[0] if users else None

    def list_users(self, **filters) -> list[User]:
        return self._list(User, filters)

    def update_user(self, user_id: int, changes: dict) -> Optional[User]:
        return self._update(User, user_id, changes, fixed=FIXED_USER_FIELDS)

    # -- students ---------------------------------------------------------

    def create_student(self, payload: dict) -> Student:
        return self._create(Student, payload)

    def get_student(self, student_id: int) -> Optional[Student]:
        return self._load(Student, student_id)

    def list_students(self, **filters) -> list[Student]:
        return self._list(Student, filters)

    def update_student(self, student_id: int, changes: dict) -> Optional[Student]:
        return self._update(Student, student_id, changes)

    # -- inquiries --------------------------------------------------------

    def create_inquiry(self, payload: dict) -> Inquiry:
        return self._create(Inquiry, payload, status=InquiryStatus.NEW)

    def get_inquiry(self, inquiry_id: int) -> Optional[Inquiry]:
        return self._load(Inquiry, inquiry_id)

    def list_inquiries(self, **filters) -> list[Inquiry]:
        return self._list(Inquiry, filters)

    def update_inquiry(self, inquiry_id: int, changes: dict) -> Optional[Inquiry]:
        return self._update(Inquiry, inquiry_id, changes)

    def update_inquiry_status(self, inquiry_id: int, status) -> Optional[Inquiry]:
        """Set an inquiry's status. Returns None for an unknown id or a value outside InquiryStatus."""
        parsed = parse_status(InquiryStatus, status)
        if parsed is None:
            logger.warning("Rejected inquiry status %r for inquiry %s", status, inquiry_id)
            return None
        return self._update(Inquiry, inquiry_id, {"status": parsed})

    def get_recent_inquiries(self, limit: int = 5) -> list[Inquiry]:
        return dashboard.get_recent_inquiries(self, limit=limit)

    # -- tutors -----------------------------------------------------------

    def create_tutor(self, payload: dict) -> Tutor:
        return self._create(Tutor, payload)

    def get_tutor(self, tutor_id: int) -> Optional[Tutor]:
        return self._load(Tutor, tutor_id)

    def list_tutors(self, **filters) -> list[Tutor]:
        return self._list(Tutor, filters)

    def update_tutor(self, tutor_id: int, changes: dict) -> Optional[Tutor]:
        return self._update(Tutor, tutor_id, changes)

    # -- scheduled calls --------------------------------------------------

    def create_scheduled_call(self, payload: dict) -> ScheduledCall:
        call = self._create(ScheduledCall, payload)
        self._after_call_created(call)
        return call

    def _after_call_created(self, call: ScheduledCall) -> None:
        """Mark the referenced inquiry as scheduled.

        Best effort: the call is already stored, so a failure here is logged
        and nothing is rolled back.
        """
        if call.inquiry_id is None:
            return
        try:
            updated = self.update_inquiry_status(call.inquiry_id, InquiryStatus.SCHEDULED)
        except Exception:
            logger.warning(
                "Could not mark inquiry %s scheduled after call %d",
                call.inquiry_id, call.id, exc_info=True,
            )
            return
        if updated is None:
            logger.warning("Call %d references unknown inquiry %s", call.id, call.inquiry_id)

    def get_scheduled_call(self, call_id: int) -> Optional[ScheduledCall]:
        return self._load(ScheduledCall, call_id)

    def list_scheduled_calls(self, **filters) -> list[ScheduledCall]:
        return self._list(ScheduledCall, filters)

    def update_scheduled_call(self, call_id: int, changes: dict) -> Optional[ScheduledCall]:
        return self._update(ScheduledCall, call_id, changes)

    def update_call_status(self, call_id: int, status) -> Optional[ScheduledCall]:
        return self._update(ScheduledCall, call_id, {"status": status})

    # -- sessions ---------------------------------------------------------

    def create_session(self, payload: dict) -> Session:
        return self._create(Session, payload)

    def get_session(self, session_id: int) -> Optional[Session]:
        return self._load(Session, session_id)

    def list_sessions(self, **filters) -> list[Session]:
        return self._list(Session, filters)

    def update_session(self, session_id: int, changes: dict) -> Optional[Session]:
        return self._update(Session, session_id, changes)

    def update_session_status(self, session_id: int, status) -> Optional[Session]:
        return self._update(Session, session_id, {"status": status})

    def get_today_sessions(self, today: Optional[date] = None) -> list[TodaySession]:
        return dashboard.get_today_sessions(self, today=today)

    # -- session reports --------------------------------------------------

    def create_session_report(self, payload: dict) -> SessionReport:
        return self._create(SessionReport, payload)

    def get_session_report(self, report_id: int) -> Optional[SessionReport]:
        return self._load(SessionReport, report_id)

    def get_report_by_session_id(self, session_id: int) -> Optional[SessionReport]:
        reports = self._list(SessionReport, {"session_id": session_id})
        return reports[0] if reports else None

    def list_session_reports(self, **filters) -> list[SessionReport]:
        return self._list(SessionReport, filters)

    def update_session_report(self, report_id: int, changes: dict) -> Optional[SessionReport]:
        return self._update(SessionReport, report_id, changes)

    def approve_report(self, report_id: int, approved: bool = True) -> Optional[SessionReport]:
        return self._update(SessionReport, report_id, {"admin_approved": approved})

    def mark_report_sent(self, report_id: int, sent: bool = True) -> Optional[SessionReport]:
        # Independent of approval; nothing stops sending an unapproved report.
        return self._update(SessionReport, report_id, {"sent_to_parent": sent})

    # -- invoices ---------------------------------------------------------

    def create_invoice(self, payload: dict) -> Invoice:
        return self._create(Invoice, payload)

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        return self._load(Invoice, invoice_id)

    def list_invoices(self, **filters) -> list[Invoice]:
        return self._list(Invoice, filters)

    def update_invoice(self, invoice_id: int, changes: dict) -> Optional[Invoice]:
        return self._update(Invoice, invoice_id, changes)

    def update_invoice_status(self, invoice_id: int, status) -> Optional[Invoice]:
        return self._update(Invoice, invoice_id, {"status": status})

    def mark_invoice_paid(self, invoice_id: int, paid_date: Optional[date] = None) -> Optional[Invoice]:
        return self._update(Invoice, invoice_id, {
            "status": InvoiceStatus.PAID,
            "paid_date": paid_date or date.today(),
        })

    # -- invoice items ----------------------------------------------------

    def create_invoice_item(self, payload: dict) -> InvoiceItem:
        return self._create(InvoiceItem, payload)

    def get_invoice_item(self, item_id: int) -> Optional[InvoiceItem]:
        return self._load(InvoiceItem, item_id)

    def list_invoice_items(self, **filters) -> list[InvoiceItem]:
        return self._list(InvoiceItem, filters)

    def update_invoice_item(self, item_id: int, changes: dict) -> Optional[InvoiceItem]:
        return self._update(InvoiceItem, item_id, changes)

    # -- dashboard ----------------------------------------------------------

    def get_dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        return dashboard.get_dashboard_stats(self, today=today)


class MemStorage(Storage):
    """Keeps every record in process memory. Nothing survives a restart."""

    def __init__(self):
        super().__init__()
        self._records = {model: {} for model in ENTITIES}
        self._allocators = {model: IdAllocator() for model in ENTITIES}

    def _insert(self, record) -> int:
        model = type(record)
        record_id = self._allocators[model].next()
        self._records[model][record_id] = copy.deepcopy(replace(record, id=record_id))
        return record_id

    def _load(self, model, record_id: int):
        record = self._records[model].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def _load_all(self, model, filters: dict) -> list:
        return [
            copy.deepcopy(record)
            for record in self._records[model].values()
            if all(getattr(record, k) == v for k, v in filters.items())
        ]

    def _store(self, record) -> None:
        self._records[type(record)][record.id] = copy.deepcopy(record)
