"""Storage contract tests, run against every backend."""
from dataclasses import asdict
from datetime import date
from unittest.mock import patch

import pytest

from tutor_desk.errors import DuplicateUserError
from tutor_desk.status import (
    CallStatus, InquiryStatus, InvoiceStatus, SessionStatus, UserRole,
)
from conftest import make_inquiry, make_invoice, make_session, make_user


def test_ids_start_at_one_and_increase(storage):
    ids = [storage.create_inquiry(make_inquiry()).id for _ in range(5)]
    assert ids == [1, 2, 3, 4, 5]


def test_ids_are_independent_per_type(storage):
    storage.create_inquiry(make_inquiry())
    storage.create_inquiry(make_inquiry())
    student = storage.create_student({"first_name": "Amy", "last_name": "Lee", "grade": "5"})
    assert student.id == 1


def test_create_then_get_round_trip(storage):
    payload = make_inquiry(availability=["weekday-evening", "weekend"], specific_needs="Algebra II")
    created = storage.create_inquiry(payload)
    fetched = storage.get_inquiry(created.id)
    assert fetched == created
    record = asdict(fetched)
    for key, value in payload.items():
        assert record[key] == value
    assert fetched.status == InquiryStatus.NEW
    assert fetched.created_at


def test_create_ignores_payload_id_and_timestamp(storage):
    inquiry = storage.create_inquiry(make_inquiry(id=99, created_at="1999-01-01T00:00:00"))
    assert inquiry.id == 1
    assert inquiry.created_at != "1999-01-01T00:00:00"


def test_create_inquiry_forces_new_status(storage):
    inquiry = storage.create_inquiry(make_inquiry(status="completed"))
    assert inquiry.status == InquiryStatus.NEW


def test_defaults_applied_on_create(storage):
    tutor = storage.create_tutor({"user_id": 1, "subjects": ["math", "physics"]})
    assert tutor.active is True
    call = storage.create_scheduled_call({"date": "2024-05-01", "time": "10:00"})
    assert call.duration == 30
    assert call.status == CallStatus.SCHEDULED
    session = storage.create_session(make_session())
    assert session.status == SessionStatus.SCHEDULED
    report = storage.create_session_report({
        "session_id": session.id, "topics_covered": "Fractions",
        "summary": "Good progress", "progress_assessment": "good",
    })
    assert report.admin_approved is False
    assert report.sent_to_parent is False
    invoice = storage.create_invoice(make_invoice())
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.paid_date is None
    item = storage.create_invoice_item({"invoice_id": invoice.id, "description": "Session", "amount": 3000})
    assert item.quantity == 1


def test_tutor_json_fields_round_trip(storage):
    availability = {"monday": ["15:00-18:00"], "saturday": ["09:00-12:00"]}
    tutor = storage.create_tutor({"user_id": 3, "subjects": ["math"], "availability": availability, "hourly_rate": 4500})
    fetched = storage.get_tutor(tutor.id)
    assert fetched.availability == availability
    assert fetched.subjects == ["math"]
    assert fetched.hourly_rate == 4500


def test_dates_are_stored_as_iso_strings(storage):
    session = storage.create_session(make_session(date=date(2024, 5, 1)))
    assert storage.get_session(session.id).date == "2024-05-01"


def test_unknown_field_rejected(storage):
    with pytest.raises(TypeError):
        storage.create_student({"first_name": "A", "last_name": "B", "grade": "3", "shoe_size": 9})


def test_invalid_enum_on_create_rejected(storage):
    with pytest.raises(ValueError):
        storage.create_user(make_user(role="superuser"))


def test_get_missing_returns_none(storage):
    assert storage.get_inquiry(42) is None
    assert storage.get_inquiry(42) is None
    assert storage.get_invoice(1) is None


def test_update_missing_returns_none(storage):
    assert storage.update_student(7, {"grade": "4"}) is None
    assert storage.update_student(7, {"grade": "4"}) is None
    assert storage.get_student(7) is None


def test_update_merges_only_given_fields(storage):
    student = storage.create_student({
        "first_name": "Amy", "last_name": "Lee", "grade": "5", "school": "Oak Elementary",
    })
    updated = storage.update_student(student.id, {"grade": "6", "notes": "Moved up a year"})
    assert updated.grade == "6"
    assert updated.notes == "Moved up a year"
    assert updated.first_name == "Amy"
    assert updated.school == "Oak Elementary"
    assert updated.created_at == student.created_at
    assert storage.get_student(student.id) == updated


def test_update_never_changes_id_or_created_at(storage):
    student = storage.create_student({"first_name": "Amy", "last_name": "Lee", "grade": "5"})
    updated = storage.update_student(student.id, {"id": 50, "created_at": "x", "grade": "6"})
    assert updated.id == student.id
    assert updated.created_at == student.created_at
    assert storage.get_student(50) is None


def test_user_role_is_fixed(storage):
    user = storage.create_user(make_user(role="parent"))
    updated = storage.update_user(user.id, {"role": "admin", "phone": "555-000-0000"})
    assert updated.role == UserRole.PARENT
    assert updated.phone == "555-000-0000"


def test_duplicate_username_rejected(storage):
    storage.create_user(make_user())
    with pytest.raises(DuplicateUserError) as exc_info:
        storage.create_user(make_user(email="other@example.com"))
    assert exc_info.value.field == "username"


def test_duplicate_email_rejected(storage):
    storage.create_user(make_user())
    with pytest.raises(DuplicateUserError):
        storage.create_user(make_user(username="someone"))


def test_update_to_taken_email_rejected(storage):
    storage.create_user(make_user())
    other = storage.create_user(make_user(username="amy", email="amy@example.com"))
    with pytest.raises(DuplicateUserError):
        storage.update_user(other.id, {"email": "jdoe@example.com"})
    assert storage.get_user(other.id).email == "amy@example.com"


def test_user_lookups(storage):
    user = storage.create_user(make_user())
    assert storage.get_user_by_username("jdoe") == user
    assert storage.get_user_by_email("jdoe@example.com") == user
    assert storage.get_user_by_username("nobody") is None


def test_list_filters_by_field(storage):
    storage.create_session(make_session(tutor_id=1))
    storage.create_session(make_session(tutor_id=2))
    storage.create_session(make_session(tutor_id=1))
    assert [s.id for s in storage.list_sessions(tutor_id=1)] == [1, 3]
    assert len(storage.list_sessions()) == 3


def test_list_filters_by_status_and_flag(storage):
    storage.create_tutor({"user_id": 1})
    storage.create_tutor({"user_id": 2, "active": False})
    assert [t.user_id for t in storage.list_tutors(active=True)] == [1]
    storage.create_inquiry(make_inquiry())
    second = storage.create_inquiry(make_inquiry())
    storage.update_inquiry_status(second.id, "matched")
    assert [i.id for i in storage.list_inquiries(status="new")] == [1]
    assert [i.id for i in storage.list_inquiries(status=InquiryStatus.MATCHED)] == [second.id]


def test_list_unknown_filter_rejected(storage):
    with pytest.raises(ValueError):
        storage.list_invoices(colour="blue")


def test_update_inquiry_status_valid(storage):
    inquiry = storage.create_inquiry(make_inquiry())
    updated = storage.update_inquiry_status(inquiry.id, "matched")
    assert updated.status == InquiryStatus.MATCHED
    before = asdict(inquiry)
    after = asdict(updated)
    changed = {k for k in before if before[k] != after[k]}
    assert changed == {"status"}


def test_update_inquiry_status_invalid_leaves_record(storage):
    inquiry = storage.create_inquiry(make_inquiry())
    assert storage.update_inquiry_status(inquiry.id, "bogus") is None
    assert storage.get_inquiry(inquiry.id).status == InquiryStatus.NEW


def test_update_inquiry_status_missing(storage):
    assert storage.update_inquiry_status(5, "matched") is None


def test_generic_update_rejects_bad_status(storage):
    session = storage.create_session(make_session(notes="Bring calculator"))
    assert storage.update_session(session.id, {"status": "postponed", "notes": "changed"}) is None
    unchanged = storage.get_session(session.id)
    assert unchanged.status == SessionStatus.SCHEDULED
    assert unchanged.notes == "Bring calculator"


def test_status_helpers(storage):
    session = storage.create_session(make_session())
    assert storage.update_session_status(session.id, "completed").status == SessionStatus.COMPLETED
    call = storage.create_scheduled_call({"date": "2024-05-01", "time": "10:00"})
    assert storage.update_call_status(call.id, "cancelled").status == CallStatus.CANCELLED
    invoice = storage.create_invoice(make_invoice())
    assert storage.update_invoice_status(invoice.id, "sent").status == InvoiceStatus.SENT
    assert storage.update_invoice_status(invoice.id, "lost") is None


def test_mark_invoice_paid(storage):
    invoice = storage.create_invoice(make_invoice())
    paid = storage.mark_invoice_paid(invoice.id, date(2024, 5, 20))
    assert paid.status == InvoiceStatus.PAID
    assert paid.paid_date == "2024-05-20"
    today_paid = storage.mark_invoice_paid(invoice.id)
    assert today_paid.paid_date == date.today().isoformat()


def test_report_flags_are_independent(storage):
    report = storage.create_session_report({
        "session_id": 4, "topics_covered": "Essays", "summary": "Solid",
        "progress_assessment": "satisfactory",
    })
    sent = storage.mark_report_sent(report.id)
    assert sent.sent_to_parent is True
    assert sent.admin_approved is False
    approved = storage.approve_report(report.id)
    assert approved.admin_approved is True
    assert approved.sent_to_parent is True
    assert storage.get_report_by_session_id(4) == approved
    assert storage.get_report_by_session_id(5) is None


def test_invoice_items_by_invoice(storage):
    first = storage.create_invoice(make_invoice())
    second = storage.create_invoice(make_invoice())
    storage.create_invoice_item({"invoice_id": first.id, "description": "A", "amount": 3000, "quantity": 2})
    storage.create_invoice_item({"invoice_id": second.id, "description": "B", "amount": 3000})
    items = storage.list_invoice_items(invoice_id=first.id)
    assert [(i.description, i.quantity) for i in items] == [("A", 2)]


def test_inquiry_intake_to_scheduling(storage):
    inquiry = storage.create_inquiry(make_inquiry(subject="math"))
    assert inquiry.status == InquiryStatus.NEW
    call = storage.create_scheduled_call({
        "inquiry_id": inquiry.id, "date": "2024-05-02", "time": "11:00",
        "call_type": "video", "purpose": "Initial consultation",
    })
    assert call.inquiry_id == inquiry.id
    assert storage.get_inquiry(inquiry.id).status == InquiryStatus.SCHEDULED


def test_call_for_unknown_inquiry_still_created(storage):
    call = storage.create_scheduled_call({"inquiry_id": 99, "date": "2024-05-02", "time": "11:00"})
    assert storage.get_scheduled_call(call.id) == call


def test_call_side_effect_failure_does_not_roll_back(storage, caplog):
    inquiry = storage.create_inquiry(make_inquiry())
    with patch.object(type(storage), "update_inquiry_status", side_effect=RuntimeError("db down")):
        call = storage.create_scheduled_call({"inquiry_id": inquiry.id, "date": "2024-05-02", "time": "11:00"})
    assert storage.get_scheduled_call(call.id) is not None
    assert storage.get_inquiry(inquiry.id).status == InquiryStatus.NEW
    assert "Could not mark inquiry" in caplog.text


def test_call_without_inquiry_leaves_inquiries_alone(storage):
    inquiry = storage.create_inquiry(make_inquiry())
    storage.create_scheduled_call({"date": "2024-05-02", "time": "11:00", "parent_id": 2})
    assert storage.get_inquiry(inquiry.id).status == InquiryStatus.NEW


def test_returned_records_are_copies(storage):
    tutor = storage.create_tutor({"user_id": 1, "subjects": ["math"]})
    tutor.subjects.append("art")
    tutor.bio = "changed"
    fresh = storage.get_tutor(tutor.id)
    assert fresh.subjects == ["math"]
    assert fresh.bio is None


def test_concurrent_creates_never_share_ids():
    from concurrent.futures import ThreadPoolExecutor
    from tutor_desk.storage import MemStorage

    storage = MemStorage()
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda n: storage.create_inquiry(make_inquiry()).id, range(200)))
    assert sorted(ids) == list(range(1, 201))


def test_concurrent_updates_keep_every_field():
    from concurrent.futures import ThreadPoolExecutor
    from tutor_desk.storage import MemStorage

    storage = MemStorage()
    student = storage.create_student({"first_name": "Amy", "last_name": "Lee", "grade": "5"})
    changes = [{"grade": "6"}, {"school": "Oak"}, {"notes": "Visual learner"}, {"parent_id": 3}]
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda c: storage.update_student(student.id, c), changes))
    final = storage.get_student(student.id)
    assert (final.grade, final.school, final.notes, final.parent_id) == ("6", "Oak", "Visual learner", 3)
