"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from config.config_loader import AppConfig, NumberingConfig, OutputConfig, ResolutionConfig
from feedback_logic.errors import EntityNotFoundError
from feedback_logic.models import (
    ChoiceDetails,
    CourseRoster,
    Instructor,
    ParticipantType,
    Question,
    QuestionType,
    Student,
)
from feedback_logic.numbering import QuestionNumberer
from feedback_logic.privileges import SectionPrivileges
from feedback_logic.recipients import RecipientResolver
from feedback_logic.roster import LiveRosterProvider, RosterSource, SnapshotRosterProvider, build_course_roster
from feedback_logic.store import InMemoryQuestionStore

COURSE_ID = "CS101"
SESSION = "Midterm Peer Review"

ALICE = Student("alice@uni.edu", "Alice", "Team A", "S1")
BOB = Student("bob@uni.edu", "Bob", "Team A", "S1")
CAROL = Student("carol@uni.edu", "Carol", "Team B", "S1")
DAVE = Student("dave@uni.edu", "Dave", "Team C", "S2")
ERIN = Student("erin@uni.edu", "Erin", "Team C", "S2")

IAN = Instructor("ian@uni.edu", "Ian")
HANA = Instructor("hana@uni.edu", "Hana", is_displayed_to_students=False)
TARA = Instructor("tara@uni.edu", "Tara")  # tutor, section S1 only


class FakeRosterSource(RosterSource):
    """Test double RosterSource that counts fetches."""

    def __init__(self, students: list[Student], instructors: list[Instructor], course_id: str = COURSE_ID) -> None:
        self._students = students
        self._instructors = instructors
        self._course_id = course_id
        self.fetch_count = 0

    def fetch_students(self, course_id: str) -> list[Student]:
        self.fetch_count += 1
        if course_id != self._course_id:
            raise EntityNotFoundError("course", course_id)
        return list(self._students)

    def fetch_instructors(self, course_id: str) -> list[Instructor]:
        self.fetch_count += 1
        if course_id != self._course_id:
            raise EntityNotFoundError("course", course_id)
        return list(self._instructors)


class FlakyQuestionStore(InMemoryQuestionStore):
    """InMemoryQuestionStore whose writes can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_create = False
        self.number_updates_before_failure: int | None = None

    def create(self, question: Question) -> Question:
        if self.fail_create:
            raise RuntimeError("store unavailable")
        return super().create(question)

    def update_number(self, question_id: str, question_number: int) -> None:
        if self.number_updates_before_failure is not None:
            if self.number_updates_before_failure == 0:
                raise RuntimeError("store unavailable")
            self.number_updates_before_failure -= 1
        super().update_number(question_id, question_number)


def make_question(
    recipient_type: ParticipantType = ParticipantType.STUDENTS,
    giver_type: ParticipantType = ParticipantType.STUDENTS,
    number: int = 1,
    question_id: str | None = "q1",
    question_type: QuestionType = QuestionType.TEXT,
    details: ChoiceDetails | None = None,
    entities: int = -100,
    session_name: str = SESSION,
) -> Question:
    return Question(
        question_id=question_id,
        session_name=session_name,
        course_id=COURSE_ID,
        question_number=number,
        giver_type=giver_type,
        recipient_type=recipient_type,
        question_type=question_type,
        number_of_entities_to_give_feedback_to=entities,
        text=f"Question {number}",
        details=details,
    )


@pytest.fixture
def students() -> list[Student]:
    return [ALICE, BOB, CAROL, DAVE, ERIN]


@pytest.fixture
def instructors() -> list[Instructor]:
    return [IAN, HANA, TARA]


@pytest.fixture
def sample_roster(students, instructors) -> CourseRoster:
    return build_course_roster(COURSE_ID, students, instructors)


@pytest.fixture
def snapshot(sample_roster) -> SnapshotRosterProvider:
    return SnapshotRosterProvider(sample_roster)


@pytest.fixture
def roster_source(students, instructors) -> FakeRosterSource:
    return FakeRosterSource(students, instructors)


@pytest.fixture
def live(roster_source) -> LiveRosterProvider:
    return LiveRosterProvider(roster_source)


@pytest.fixture
def privileges() -> SectionPrivileges:
    return SectionPrivileges({TARA.email: {"S1": None}})


@pytest.fixture
def resolver(privileges) -> RecipientResolver:
    return RecipientResolver(privileges)


@pytest.fixture
def question_store() -> InMemoryQuestionStore:
    return InMemoryQuestionStore()


@pytest.fixture
def numberer(question_store) -> QuestionNumberer:
    return QuestionNumberer(question_store)


@pytest.fixture
def sample_app_config() -> AppConfig:
    return AppConfig(
        resolution=ResolutionConfig(),
        numbering=NumberingConfig(),
        output=OutputConfig(max_rows=50),
    )


@pytest.fixture
def roster_yaml(tmp_path: Path) -> Path:
    path = tmp_path / "roster.yaml"
    path.write_text(
        """\
course_id: CS101
students:
  - {email: alice@uni.edu, name: Alice, team: Team A, section: S1}
  - {email: bob@uni.edu, name: Bob, team: Team A, section: S1}
  - {email: carol@uni.edu, name: Carol, team: Team B, section: S1}
  - {email: dave@uni.edu, name: Dave, team: Team C, section: S2}
instructors:
  - {email: ian@uni.edu, name: Ian}
  - {email: hana@uni.edu, name: Hana, displayed_to_students: false}
  - {email: tara@uni.edu, name: Tara}
privileges:
  tara@uni.edu:
    S1: null
sessions:
  Midterm Peer Review: ian@uni.edu
""",
        encoding="utf-8",
    )
    return path
