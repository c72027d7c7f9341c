"""Interactive back-office console."""
import logging
from datetime import date, timedelta

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt, FloatPrompt
from rich.table import Table

from tutor_desk.config import create_storage, load_settings
from tutor_desk.dashboard import format_currency
from tutor_desk.seed import is_seeded, seed_all
from tutor_desk.status import InquiryStatus, SessionStatus, choices

console = Console()
logger = logging.getLogger(__name__)

STATUS_COLORS = {
    "new": "cyan",
    "scheduled": "blue",
    "matched": "green",
    "completed": "green",
    "cancelled": "red",
    "draft": "dim",
    "sent": "yellow",
    "paid": "green",
    "overdue": "red",
}

PROGRESS_LEVELS = ["excellent", "good", "satisfactory", "needs-improvement", "concerning"]
INVOICE_TERMS_DAYS = 14


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def to_cents(dollars: float) -> int:
    return int(round(dollars * 100))


def colored(status) -> str:
    value = getattr(status, "value", status)
    color = STATUS_COLORS.get(value, "white")
    return f"[{color}]{value}[/{color}]"


def show_welcome():
    console.print(Panel(
        "[bold]Tutor Desk[/bold]\n[dim]Inquiries, sessions and billing[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Stats, today's sessions, recent inquiries"),
        ("inquiries", "List parent inquiries"),
        ("intake", "Record a new inquiry"),
        ("status", "Change an inquiry's status"),
        ("call", "Schedule a call for an inquiry"),
        ("students", "List or add students"),
        ("tutors", "List or add tutor profiles"),
        ("session", "Book a tutoring session"),
        ("sessions", "Sessions on a given day"),
        ("write-report", "Write the report for a session"),
        ("report", "Approve or send a session report"),
        ("invoice", "Create an invoice with line items"),
        ("invoices", "List invoices, mark one paid"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def inquiry_table(inquiries, title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Parent")
    table.add_column("Student")
    table.add_column("Subject", style="cyan")
    table.add_column("Status")
    for inq in inquiries:
        table.add_row(
            str(inq.id),
            f"{inq.parent_first_name} {inq.parent_last_name}",
            f"{inq.student_name} (grade {inq.student_grade})",
            inq.subject,
            colored(inq.status),
        )
    return table


def cmd_dashboard(storage):
    stats = storage.get_dashboard_stats()
    console.print(Panel(
        f"New inquiries: [bold]{stats.new_inquiries}[/bold]  |  "
        f"Students: [bold]{stats.active_students}[/bold]  |  "
        f"Active tutors: [bold]{stats.active_tutors}[/bold]  |  "
        f"Revenue this month: [bold green]{stats.monthly_revenue}[/bold green]",
        title="Dashboard", border_style="blue",
    ))

    sessions = storage.get_today_sessions()
    if sessions:
        table = Table(title="Today's Sessions")
        table.add_column("Time")
        table.add_column("Subject", style="cyan")
        table.add_column("Topic")
        table.add_column("Student")
        table.add_column("Tutor")
        for s in sessions:
            table.add_row(
                s.time, s.subject, s.topic,
                f"[bold]{s.student.initials}[/bold] {s.student.name}",
                f"[bold]{s.tutor.initials}[/bold] {s.tutor.name}",
            )
        console.print(table)
    else:
        console.print("[dim]No sessions scheduled for today.[/dim]")

    recent = storage.get_recent_inquiries()
    if recent:
        console.print(inquiry_table(recent, "Recent Inquiries"))


def cmd_inquiries(storage):
    status = Prompt.ask("Status", choices=["all"] + choices(InquiryStatus), default="all")
    inquiries = storage.list_inquiries() if status == "all" else storage.list_inquiries(status=status)
    if not inquiries:
        console.print("[yellow]No inquiries found.[/yellow]")
        return
    console.print(inquiry_table(inquiries, "Inquiries"))


def cmd_intake(storage):
    console.print("\n[bold]New Inquiry[/bold]")
    payload = {
        "parent_first_name": Prompt.ask("Parent first name"),
        "parent_last_name": Prompt.ask("Parent last name"),
        "parent_email": Prompt.ask("Parent email"),
        "parent_phone": Prompt.ask("Parent phone"),
        "student_name": Prompt.ask("Student name"),
        "student_grade": Prompt.ask("Student grade"),
        "subject": Prompt.ask("Subject"),
        "location": Prompt.ask("Location preference", choices=["online", "student-home", "tutor-location"], default="online"),
        "specific_needs": Prompt.ask("Specific needs", default="") or None,
        "budget": Prompt.ask("Budget", default="") or None,
        "contact_preference": Prompt.ask("Contact preference", choices=["email", "phone", "text"], default="email"),
    }
    inquiry = storage.create_inquiry(payload)
    console.print(f"[green]Recorded inquiry #{inquiry.id} ({inquiry.student_name}, {inquiry.subject}).[/green]")


def cmd_status(storage):
    inquiry_id = IntPrompt.ask("Inquiry #")
    inquiry = storage.get_inquiry(inquiry_id)
    if inquiry is None:
        console.print(f"[red]Inquiry #{inquiry_id} not found.[/red]")
        return
    status = Prompt.ask("New status", choices=choices(InquiryStatus), default=inquiry.status.value)
    updated = storage.update_inquiry_status(inquiry_id, status)
    if updated is None:
        console.print("[red]Status not changed.[/red]")
        return
    console.print(f"Inquiry #{inquiry_id} is now {colored(updated.status)}.")


def cmd_call(storage):
    inquiry_id = IntPrompt.ask("Inquiry # (blank for none)", default=None, show_default=False)
    call = storage.create_scheduled_call({
        "inquiry_id": inquiry_id,
        "date": Prompt.ask("Date (YYYY-MM-DD)", default=date.today().isoformat()),
        "time": Prompt.ask("Time (HH:MM)", default="10:00"),
        "duration": IntPrompt.ask("Duration in minutes", default=30),
        "call_type": Prompt.ask("Call type", choices=["phone", "video"], default="phone"),
        "purpose": Prompt.ask("Purpose", default="Initial consultation"),
    })
    console.print(
        f"[green]Call #{call.id} booked for {call.date} at {call.time} "
        f"({call.duration} min, {call.call_type}).[/green]"
    )
    if inquiry_id is not None:
        inquiry = storage.get_inquiry(inquiry_id)
        if inquiry is not None:
            console.print(f"Inquiry #{inquiry_id} is now {colored(inquiry.status)}.")


def cmd_students(storage):
    action = Prompt.ask("Action", choices=["list", "add"], default="list")
    if action == "add":
        student = storage.create_student({
            "first_name": Prompt.ask("First name"),
            "last_name": Prompt.ask("Last name"),
            "grade": Prompt.ask("Grade"),
            "school": Prompt.ask("School", default="") or None,
            "parent_id": IntPrompt.ask("Parent user # (blank for none)", default=None, show_default=False),
            "notes": Prompt.ask("Notes", default="") or None,
        })
        console.print(f"[green]Added student #{student.id} ({student.first_name} {student.last_name}).[/green]")
        return

    students = storage.list_students()
    if not students:
        console.print("[yellow]No students yet.[/yellow]")
        return
    table = Table(title="Students")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Grade")
    table.add_column("School")
    for s in students:
        table.add_row(str(s.id), f"{s.first_name} {s.last_name}", s.grade, s.school or "")
    console.print(table)


def cmd_tutors(storage):
    action = Prompt.ask("Action", choices=["list", "add"], default="list")
    if action == "add":
        user_id = IntPrompt.ask("Tutor user #")
        if storage.get_user(user_id) is None:
            console.print(f"[red]User #{user_id} not found.[/red]")
            return
        subjects = [s.strip() for s in Prompt.ask("Subjects (comma separated)").split(",") if s.strip()]
        tutor = storage.create_tutor({
            "user_id": user_id,
            "subjects": subjects,
            "education": Prompt.ask("Education", default="") or None,
            "hourly_rate": to_cents(FloatPrompt.ask("Hourly rate ($)")),
            "location": Prompt.ask("Location", default="") or None,
            "bio": Prompt.ask("Bio", default="") or None,
        })
        console.print(f"[green]Added tutor profile #{tutor.id}.[/green]")
        return

    tutors = storage.list_tutors()
    if not tutors:
        console.print("[yellow]No tutors yet.[/yellow]")
        return
    table = Table(title="Tutors")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Subjects", style="cyan")
    table.add_column("Rate", justify="right")
    table.add_column("Active")
    for t in tutors:
        user = storage.get_user(t.user_id)
        name = f"{user.first_name} {user.last_name}" if user else f"User #{t.user_id}"
        rate = format_currency(t.hourly_rate) if t.hourly_rate is not None else ""
        table.add_row(str(t.id), name, ", ".join(t.subjects), rate, "yes" if t.active else "no")
    console.print(table)


def cmd_session(storage):
    console.print("\n[bold]New Session[/bold]")
    session = storage.create_session({
        "tutor_id": IntPrompt.ask("Tutor #"),
        "student_id": IntPrompt.ask("Student #"),
        "subject": Prompt.ask("Subject"),
        "date": Prompt.ask("Date (YYYY-MM-DD)", default=date.today().isoformat()),
        "start_time": Prompt.ask("Start (HH:MM)", default="15:00"),
        "end_time": Prompt.ask("End (HH:MM)", default="16:00"),
        "location": Prompt.ask("Location", default="online"),
        "notes": Prompt.ask("Topic / notes", default="") or None,
    })
    console.print(
        f"[green]Session #{session.id} booked for {session.date} "
        f"{session.start_time} - {session.end_time}.[/green]"
    )


def cmd_sessions(storage):
    day = Prompt.ask("Date (YYYY-MM-DD)", default=date.today().isoformat())
    sessions = storage.list_sessions(date=day)
    if not sessions:
        console.print(f"[yellow]No sessions on {day}.[/yellow]")
        return
    table = Table(title=f"Sessions on {day}")
    table.add_column("#", justify="right")
    table.add_column("Time")
    table.add_column("Subject", style="cyan")
    table.add_column("Student", justify="right")
    table.add_column("Tutor", justify="right")
    table.add_column("Status")
    for s in sorted(sessions, key=lambda s: s.start_time):
        table.add_row(
            str(s.id), f"{s.start_time} - {s.end_time}", s.subject,
            str(s.student_id), str(s.tutor_id), colored(s.status),
        )
    console.print(table)


def cmd_write_report(storage):
    session_id = IntPrompt.ask("Session #")
    session = storage.get_session(session_id)
    if session is None:
        console.print(f"[red]Session #{session_id} not found.[/red]")
        return
    existing = storage.get_report_by_session_id(session_id)
    if existing is not None:
        console.print(f"[yellow]Session #{session_id} already has report #{existing.id}.[/yellow]")
        return
    report = storage.create_session_report({
        "session_id": session_id,
        "topics_covered": Prompt.ask("Topics covered"),
        "summary": Prompt.ask("Summary"),
        "homework": Prompt.ask("Homework assigned", default="") or None,
        "progress_assessment": Prompt.ask("Progress", choices=PROGRESS_LEVELS, default="good"),
        "internal_notes": Prompt.ask("Internal notes", default="") or None,
    })
    storage.update_session_status(session_id, SessionStatus.COMPLETED)
    console.print(f"[green]Report #{report.id} saved; awaiting approval.[/green]")


def cmd_report(storage):
    report_id = IntPrompt.ask("Report #")
    report = storage.get_session_report(report_id)
    if report is None:
        console.print(f"[red]Report #{report_id} not found.[/red]")
        return
    console.print(Panel(
        f"[bold]Topics:[/bold] {report.topics_covered}\n"
        f"[bold]Summary:[/bold] {report.summary}\n"
        f"[bold]Progress:[/bold] {report.progress_assessment}",
        title=f"Session #{report.session_id} report",
    ))
    action = Prompt.ask("Action", choices=["approve", "send", "skip"], default="approve")
    if action == "approve":
        storage.approve_report(report_id)
        console.print("[green]Report approved.[/green]")
    elif action == "send":
        if not report.admin_approved:
            console.print("[yellow]Note: this report has not been approved.[/yellow]")
        storage.mark_report_sent(report_id)
        console.print("[green]Report marked as sent to parent.[/green]")


def cmd_invoice(storage):
    console.print("\n[bold]New Invoice[/bold]")
    tutor_id = IntPrompt.ask("Tutor #")
    parent_id = IntPrompt.ask("Parent user #")
    description = Prompt.ask("Description", default="Tutoring Services")
    due_date = Prompt.ask(
        "Due date (YYYY-MM-DD)",
        default=(date.today() + timedelta(days=INVOICE_TERMS_DAYS)).isoformat(),
    )

    items = []
    while True:
        item_description = Prompt.ask("Item description (blank to finish)", default="")
        if not item_description:
            break
        items.append({
            "description": item_description,
            "amount": to_cents(FloatPrompt.ask("Unit price ($)")),
            "quantity": IntPrompt.ask("Quantity", default=1),
            "session_id": IntPrompt.ask("Session # (blank for none)", default=None, show_default=False),
        })
    if not items:
        console.print("[yellow]An invoice needs at least one item; nothing saved.[/yellow]")
        return

    invoice = storage.create_invoice({
        "tutor_id": tutor_id,
        "parent_id": parent_id,
        "amount": sum(item["amount"] * item["quantity"] for item in items),
        "description": description,
        "due_date": due_date,
    })
    for item in items:
        storage.create_invoice_item({"invoice_id": invoice.id, **item})
    console.print(
        f"[green]Invoice #{invoice.id} for {format_currency(invoice.amount)} "
        f"({len(items)} items) due {invoice.due_date}.[/green]"
    )


def cmd_invoices(storage):
    invoices = storage.list_invoices()
    if not invoices:
        console.print("[yellow]No invoices yet.[/yellow]")
        return
    table = Table(title="Invoices")
    table.add_column("#", justify="right")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Due")
    table.add_column("Status")
    for inv in invoices:
        table.add_row(
            str(inv.id), inv.description, format_currency(inv.amount),
            inv.due_date, colored(inv.status),
        )
    console.print(table)
    invoice_id = IntPrompt.ask("Mark invoice # as paid (blank to skip)", default=None, show_default=False)
    if invoice_id is None:
        return
    paid = storage.mark_invoice_paid(invoice_id)
    if paid is None:
        console.print(f"[red]Invoice #{invoice_id} not found.[/red]")
    else:
        console.print(f"[green]Invoice #{invoice_id} paid on {paid.paid_date}.[/green]")


COMMANDS = {
    "dashboard": cmd_dashboard,
    "inquiries": cmd_inquiries,
    "intake": cmd_intake,
    "status": cmd_status,
    "call": cmd_call,
    "students": cmd_students,
    "tutors": cmd_tutors,
    "session": cmd_session,
    "sessions": cmd_sessions,
    "write-report": cmd_write_report,
    "report": cmd_report,
    "invoice": cmd_invoice,
    "invoices": cmd_invoices,
}


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    storage = create_storage(settings)
    if settings.seed:
        first_run = not is_seeded(storage)
        if first_run:
            console.print("[dim]Setting up for first use...[/dim]")
        seed_all(storage)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Bye.[/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(storage)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
