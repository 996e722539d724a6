"""Rich console output for recipients, options, giver maps and numbering checks."""

import logging

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from feedback_logic.models import Question

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _question_title(question: Question) -> str:
    return escape(f"Q{question.question_number} [{question.question_id}] {question.text[:60]}")


def print_recipients(
    question: Question,
    giver_email: str,
    recipients: dict[str, str],
    max_rows: int = 200,
    show_labels: bool = True,
) -> None:
    """Print the resolved recipients of one giver, sorted by identifier."""
    console.print(Rule(f"[bold cyan]{_question_title(question)}[/bold cyan]"))
    table = Table(title=f"Recipients for {giver_email} ({question.recipient_type.value})")
    table.add_column("Identifier", style="bold")
    if show_labels:
        table.add_column("Name")
    for identifier in sorted(recipients)[:max_rows]:
        row = [identifier, recipients[identifier]] if show_labels else [identifier]
        table.add_row(*row)
    console.print(table)
    if len(recipients) > max_rows:
        console.print(Text(f"... {len(recipients) - max_rows} more", style="dim"))


def print_options(question: Question) -> None:
    """Print the options of a choice question in display order."""
    console.print(Rule(f"[bold cyan]{_question_title(question)}[/bold cyan]"))
    choices = question.details.choices if question.details else []
    if not choices:
        console.print(Text("No options.", style="dim"))
        return
    for i, choice in enumerate(choices, start=1):
        console.print(f"  {i:>3}. {escape(choice)}")


def print_giver_map(question: Question, giver_map: dict[str, set[str]], max_rows: int = 200) -> None:
    """Print one row per giver with its recipients."""
    console.print(Rule(f"[bold cyan]{_question_title(question)}[/bold cyan]"))
    table = Table(title=f"{question.giver_type.value} -> {question.recipient_type.value}")
    table.add_column("Giver", style="bold")
    table.add_column("#", justify="right")
    table.add_column("Recipients")
    for giver in sorted(giver_map)[:max_rows]:
        recipients = sorted(giver_map[giver])
        table.add_row(giver, str(len(recipients)), ", ".join(recipients))
    console.print(table)


def print_numbering(session_name: str, questions: list[Question], consistent: bool) -> None:
    """Print a session's question numbers and whether they are dense."""
    console.print(Rule(f"[bold cyan]{escape(session_name)}[/bold cyan]"))
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Text")
    for q in questions:
        table.add_row(str(q.question_number), str(q.question_id), q.text[:60])
    console.print(table)
    if consistent:
        console.print("[green]OK[/green] question numbers are 1..%d" % len(questions))
    else:
        console.print("[red]FAIL[/red] question numbers are not 1..%d" % len(questions))
