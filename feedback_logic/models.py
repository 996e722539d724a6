"""Pure dataclasses for feedback questions, participants and rosters. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum

SELF_LABEL = "Myself"
GENERAL_QUESTION = "%GENERAL%"
INSTRUCTOR_TEAM = "Instructors"
DEFAULT_SECTION = "None"
MAX_POSSIBLE_RECIPIENTS = -100  # "resolve the recipient count dynamically"


class ParticipantType(str, Enum):
    SELF = "SELF"
    STUDENTS = "STUDENTS"
    STUDENTS_IN_SAME_SECTION = "STUDENTS_IN_SAME_SECTION"
    STUDENTS_EXCLUDING_SELF = "STUDENTS_EXCLUDING_SELF"
    INSTRUCTORS = "INSTRUCTORS"
    TEAMS = "TEAMS"
    TEAMS_IN_SAME_SECTION = "TEAMS_IN_SAME_SECTION"
    TEAMS_EXCLUDING_SELF = "TEAMS_EXCLUDING_SELF"
    OWN_TEAM = "OWN_TEAM"
    OWN_TEAM_MEMBERS = "OWN_TEAM_MEMBERS"
    OWN_TEAM_MEMBERS_INCLUDING_SELF = "OWN_TEAM_MEMBERS_INCLUDING_SELF"
    NONE = "NONE"


class QuestionType(str, Enum):
    MCQ = "MCQ"
    MSQ = "MSQ"
    TEXT = "TEXT"
    NUMSCALE = "NUMSCALE"
    RUBRIC = "RUBRIC"
    CONSTSUM = "CONSTSUM"
    CONTRIB = "CONTRIB"
    RANK_OPTIONS = "RANK_OPTIONS"
    RANK_RECIPIENTS = "RANK_RECIPIENTS"


CHOICE_QUESTION_TYPES = frozenset({QuestionType.MCQ, QuestionType.MSQ})


class GiverKind(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


@dataclass(frozen=True)
class Student:
    email: str
    name: str
    team: str
    section: str = DEFAULT_SECTION


@dataclass(frozen=True)
class Instructor:
    email: str
    name: str
    is_displayed_to_students: bool = True


@dataclass(frozen=True)
class Giver:
    kind: GiverKind
    email: str
    team: str
    section: str
    instructor: Instructor | None = None

    @property
    def is_instructor(self) -> bool:
        return self.kind is GiverKind.INSTRUCTOR

    @classmethod
    def for_student(cls, student: Student) -> "Giver":
        return cls(kind=GiverKind.STUDENT, email=student.email, team=student.team, section=student.section)

    @classmethod
    def for_instructor(cls, instructor: Instructor) -> "Giver":
        return cls(
            kind=GiverKind.INSTRUCTOR,
            email=instructor.email,
            team=INSTRUCTOR_TEAM,
            section=DEFAULT_SECTION,
            instructor=instructor,
        )


@dataclass
class ChoiceDetails:
    choices: list[str] = field(default_factory=list)
    generate_options_for: ParticipantType = ParticipantType.NONE


@dataclass
class Question:
    session_name: str
    course_id: str
    question_number: int
    giver_type: ParticipantType
    recipient_type: ParticipantType
    question_type: QuestionType = QuestionType.TEXT
    number_of_entities_to_give_feedback_to: int = MAX_POSSIBLE_RECIPIENTS
    text: str = ""
    details: ChoiceDetails | None = None
    question_id: str | None = None   # assigned by the question store


@dataclass(frozen=True)
class CourseRoster:
    """Point-in-time view of one course's students, instructors and teams."""

    course_id: str
    students: tuple[Student, ...] = ()
    instructors: tuple[Instructor, ...] = ()
    team_to_members: dict[str, tuple[Student, ...]] = field(default_factory=dict)
