"""Roster YAML files and question markdown files with YAML frontmatter."""

import logging
from dataclasses import dataclass
from pathlib import Path

import frontmatter
import yaml

from feedback_logic.errors import QuestionConfigurationError
from feedback_logic.models import (
    DEFAULT_SECTION,
    MAX_POSSIBLE_RECIPIENTS,
    ChoiceDetails,
    CourseRoster,
    Instructor,
    ParticipantType,
    Question,
    QuestionType,
    Student,
)
from feedback_logic.privileges import SectionPrivileges
from feedback_logic.roster import build_course_roster
from feedback_logic.sessions import StaticSessionProvider

logger = logging.getLogger(__name__)


@dataclass
class RosterFile:
    roster: CourseRoster
    privileges: SectionPrivileges
    sessions: StaticSessionProvider


def load_roster(path: Path) -> RosterFile:
    """Load a course roster, instructor section grants and session creators.

    Expected layout::

        course_id: CS101
        students: [{email, name, team, section}]
        instructors: [{email, name, displayed_to_students}]
        privileges: {instructor_email: {section: [session, ...] | null}}
        sessions: {session_name: creator_email}
    """
    if not path.exists():
        raise FileNotFoundError(f"Roster file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    course_id = str(raw["course_id"])
    students = [
        Student(
            email=s["email"],
            name=s["name"],
            team=str(s["team"]),
            section=str(s.get("section", DEFAULT_SECTION)),
        )
        for s in raw.get("students", [])
    ]
    instructors = [
        Instructor(
            email=i["email"],
            name=i["name"],
            is_displayed_to_students=bool(i.get("displayed_to_students", True)),
        )
        for i in raw.get("instructors", [])
    ]

    grants: dict[str, dict[str, set[str] | None]] = {}
    for email, sections in (raw.get("privileges") or {}).items():
        grants[email] = {
            str(section): None if sessions is None else set(sessions)
            for section, sessions in (sections or {}).items()
        }

    creators = {(course_id, str(name)): email for name, email in (raw.get("sessions") or {}).items()}

    logger.info(
        "Loaded roster %s: %d students, %d instructors", course_id, len(students), len(instructors)
    )
    return RosterFile(
        roster=build_course_roster(course_id, students, instructors),
        privileges=SectionPrivileges(grants),
        sessions=StaticSessionProvider(creators),
    )


def _participant_type(value: object, question_id: str, key: str) -> ParticipantType:
    try:
        return ParticipantType(str(value).upper())
    except ValueError:
        raise QuestionConfigurationError(question_id, f"invalid {key}: {value!r}") from None


def _integer(value: object, question_id: str, key: str) -> int:
    if isinstance(value, bool):
        raise QuestionConfigurationError(question_id, f"invalid {key}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise QuestionConfigurationError(question_id, f"invalid {key}: {value!r}") from None


def parse_question_file(file_path: Path) -> Question:
    """Parse a question markdown file. The body is the question text.

    Frontmatter keys: session, course, number, giver, recipient, and optionally
    type, entities, choices, generate_options_for. The file stem is the question id.
    """
    question_id = file_path.stem
    try:
        post = frontmatter.load(str(file_path))
    except yaml.YAMLError as exc:
        raise QuestionConfigurationError(question_id, f"invalid frontmatter: {exc}") from exc
    meta = dict(post.metadata)

    missing = [k for k in ("session", "course", "number", "giver", "recipient") if k not in meta]
    if missing:
        raise QuestionConfigurationError(question_id, f"missing frontmatter: {', '.join(missing)}")

    try:
        question_type = QuestionType(str(meta.get("type", "TEXT")).upper())
    except ValueError:
        raise QuestionConfigurationError(question_id, f"invalid type: {meta['type']!r}") from None

    details = None
    if "choices" in meta or "generate_options_for" in meta:
        details = ChoiceDetails(
            choices=[str(c) for c in meta.get("choices") or []],
            generate_options_for=_participant_type(
                meta.get("generate_options_for", "NONE"), question_id, "generate_options_for"
            ),
        )

    return Question(
        question_id=question_id,
        session_name=str(meta["session"]),
        course_id=str(meta["course"]),
        question_number=_integer(meta["number"], question_id, "number"),
        giver_type=_participant_type(meta["giver"], question_id, "giver"),
        recipient_type=_participant_type(meta["recipient"], question_id, "recipient"),
        question_type=question_type,
        number_of_entities_to_give_feedback_to=_integer(
            meta.get("entities", MAX_POSSIBLE_RECIPIENTS), question_id, "entities"
        ),
        text=post.content.strip(),
        details=details,
    )


def scan_question_dir(question_dir: Path) -> list[Path]:
    """Return all .md files in question_dir, sorted by name."""
    return sorted(question_dir.glob("*.md"))
