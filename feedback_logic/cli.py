"""Click CLI: resolve recipients, generate options, build giver maps and check numbering."""

import logging
import sys
from pathlib import Path

import click
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from config.config_loader import AppConfig, load_config, settings_path_from_env
from feedback_logic.errors import FeedbackLogicError
from feedback_logic.files import RosterFile, load_roster, parse_question_file, scan_question_dir
from feedback_logic.giver_map import GiverRecipientMapBuilder
from feedback_logic.models import Giver, Question
from feedback_logic.numbering import QuestionNumberer, are_question_numbers_consistent
from feedback_logic.options import DynamicOptionGenerator
from feedback_logic.output import print_giver_map, print_numbering, print_options, print_recipients
from feedback_logic.recipients import RecipientResolver
from feedback_logic.roster import SnapshotRosterProvider
from feedback_logic.store import InMemoryQuestionStore

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    sys.exit(1)


def _load_inputs(roster_path: str, question_path: str) -> tuple[RosterFile, Question]:
    try:
        return load_roster(Path(roster_path)), parse_question_file(Path(question_path))
    except (FileNotFoundError, KeyError, TypeError, yaml.YAMLError, FeedbackLogicError) as exc:
        _fail(f"Could not load inputs: {exc}")


def _find_giver(roster_file: RosterFile, email: str) -> Giver:
    """Students take precedence when an email is both student and instructor."""
    roster = roster_file.roster
    student = next((s for s in roster.students if s.email == email), None)
    if student is not None:
        return Giver.for_student(student)
    instructor = next((i for i in roster.instructors if i.email == email), None)
    if instructor is not None:
        return Giver.for_instructor(instructor)
    _fail(f"{email} is neither a student nor an instructor of {roster.course_id}")


@click.group()
@click.option("--settings", "settings_path", default=None, type=click.Path(),
              help="Settings YAML (default: $FEEDBACK_LOGIC_SETTINGS or config/settings.yaml)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, settings_path: str | None, verbose: bool) -> None:
    """Feedback audience resolution and question numbering tools.

    \b
    Examples:
      python -m feedback_logic.cli recipients roster.yaml q1.md --giver alice@uni.edu
      python -m feedback_logic.cli options roster.yaml q2.md --giver alice@uni.edu
      python -m feedback_logic.cli giver-map roster.yaml q1.md
      python -m feedback_logic.cli check-numbers ./questions
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(Path(settings_path) if settings_path else settings_path_from_env())
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        sys.exit(1)
    ctx.obj = config


@main.command()
@click.argument("roster_path", type=click.Path(exists=True))
@click.argument("question_path", type=click.Path(exists=True))
@click.option("--giver", "giver_email", required=True, help="Email of the respondent")
@click.pass_obj
def recipients(config: AppConfig, roster_path: str, question_path: str, giver_email: str) -> None:
    """List who GIVER may give feedback to for a question."""
    roster_file, question = _load_inputs(roster_path, question_path)
    giver = _find_giver(roster_file, giver_email)
    resolver = RecipientResolver(roster_file.privileges, config.resolution)
    try:
        resolved = resolver.resolve(question, giver, SnapshotRosterProvider(roster_file.roster))
    except FeedbackLogicError as exc:
        _fail(str(exc))
    print_recipients(
        question, giver_email, resolved,
        max_rows=config.output.max_rows, show_labels=config.output.show_labels,
    )


@main.command()
@click.argument("roster_path", type=click.Path(exists=True))
@click.argument("question_path", type=click.Path(exists=True))
@click.option("--giver", "giver_email", required=True, help="Email of the respondent")
def options(roster_path: str, question_path: str, giver_email: str) -> None:
    """Show the generated options of an MCQ/MSQ question for GIVER."""
    roster_file, question = _load_inputs(roster_path, question_path)
    giver = _find_giver(roster_file, giver_email)
    generator = DynamicOptionGenerator(SnapshotRosterProvider(roster_file.roster))
    try:
        populated = generator.populate_options(
            question, giver.email, None if giver.is_instructor else giver.team
        )
    except FeedbackLogicError as exc:
        _fail(str(exc))
    print_options(populated)


@main.command("giver-map")
@click.argument("roster_path", type=click.Path(exists=True))
@click.argument("question_path", type=click.Path(exists=True))
@click.pass_obj
def giver_map(config: AppConfig, roster_path: str, question_path: str) -> None:
    """Show every possible giver of a question with its recipients."""
    roster_file, question = _load_inputs(roster_path, question_path)
    builder = GiverRecipientMapBuilder(
        RecipientResolver(roster_file.privileges, config.resolution),
        roster_file.sessions,
    )
    try:
        built = builder.build_map(question, roster_file.roster)
    except FeedbackLogicError as exc:
        _fail(str(exc))
    print_giver_map(question, built, max_rows=config.output.max_rows)


@main.command("check-numbers")
@click.argument("question_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--session", "session_filter", default=None, help="Only check this session")
@click.pass_obj
def check_numbers(config: AppConfig, question_dir: str, session_filter: str | None) -> None:
    """Check that each session's question files are numbered 1..N."""
    store = InMemoryQuestionStore()
    sessions: set[tuple[str, str]] = set()
    for path in scan_question_dir(Path(question_dir)):
        try:
            question = parse_question_file(path)
        except FeedbackLogicError as exc:
            logger.error("Skipping %s: %s", path.name, exc)
            continue
        if session_filter is not None and question.session_name != session_filter:
            continue
        store.create(question)
        sessions.add((question.course_id, question.session_name))

    if not sessions:
        click.echo("No questions found.")
        return

    numberer = QuestionNumberer(store, config.numbering)
    all_consistent = True
    for course_id, session_name in sorted(sessions):
        questions = numberer.questions_for_session(session_name, course_id)
        consistent = are_question_numbers_consistent(questions)
        all_consistent = all_consistent and consistent
        print_numbering(f"{course_id} / {session_name}", questions, consistent)

    if not all_consistent:
        sys.exit(1)


if __name__ == "__main__":
    main()
