"""Roster providers: one interface, backed either by a snapshot or by live lookups."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from feedback_logic.errors import EntityNotFoundError
from feedback_logic.models import CourseRoster, Instructor, Student

logger = logging.getLogger(__name__)


def build_team_to_members_table(students: Iterable[Student]) -> dict[str, tuple[Student, ...]]:
    """Group students by team, keeping roster order inside each team."""
    table: dict[str, list[Student]] = {}
    for student in students:
        table.setdefault(student.team, []).append(student)
    return {team: tuple(members) for team, members in table.items()}


def build_course_roster(
    course_id: str,
    students: Iterable[Student],
    instructors: Iterable[Instructor],
) -> CourseRoster:
    students = tuple(students)
    return CourseRoster(
        course_id=course_id,
        students=students,
        instructors=tuple(instructors),
        team_to_members=build_team_to_members_table(students),
    )


class RosterProvider(ABC):
    """Students, instructors and team composition for a course."""

    @property
    @abstractmethod
    def is_snapshot(self) -> bool:
        """True when answers come from a fixed point-in-time roster."""
        ...

    @abstractmethod
    def students_for_course(self, course_id: str) -> list[Student]:
        ...

    @abstractmethod
    def instructors_for_course(self, course_id: str) -> list[Instructor]:
        ...

    @abstractmethod
    def team_table_for_course(self, course_id: str) -> dict[str, tuple[Student, ...]]:
        ...

    def students_for_section(self, section: str, course_id: str) -> list[Student]:
        return [s for s in self.students_for_course(course_id) if s.section == section]

    def students_for_team(self, team: str, course_id: str) -> list[Student]:
        return list(self.team_table_for_course(course_id).get(team, ()))

    def teams_for_course(self, course_id: str) -> list[str]:
        return sorted(self.team_table_for_course(course_id))

    def teams_for_section(self, section: str, course_id: str) -> list[str]:
        return sorted(self.team_to_members_table(self.students_for_section(section, course_id)))

    def student_for_email(self, course_id: str, email: str) -> Student | None:
        return next((s for s in self.students_for_course(course_id) if s.email == email), None)

    def instructor_for_email(self, course_id: str, email: str) -> Instructor | None:
        return next((i for i in self.instructors_for_course(course_id) if i.email == email), None)

    @staticmethod
    def team_to_members_table(students: Iterable[Student]) -> dict[str, tuple[Student, ...]]:
        return build_team_to_members_table(students)


class SnapshotRosterProvider(RosterProvider):
    """Answers every call from one immutable CourseRoster."""

    def __init__(self, roster: CourseRoster) -> None:
        self._roster = roster

    @property
    def is_snapshot(self) -> bool:
        return True

    @property
    def roster(self) -> CourseRoster:
        return self._roster

    def _check_course(self, course_id: str) -> None:
        if course_id != self._roster.course_id:
            raise EntityNotFoundError(
                "course", course_id, f"not in roster snapshot for {self._roster.course_id}"
            )

    def students_for_course(self, course_id: str) -> list[Student]:
        self._check_course(course_id)
        return list(self._roster.students)

    def instructors_for_course(self, course_id: str) -> list[Instructor]:
        self._check_course(course_id)
        return list(self._roster.instructors)

    def team_table_for_course(self, course_id: str) -> dict[str, tuple[Student, ...]]:
        self._check_course(course_id)
        return self._roster.team_to_members


class RosterSource(ABC):
    """External data access for course membership (storage layer)."""

    @abstractmethod
    def fetch_students(self, course_id: str) -> list[Student]:
        """Return all students of the course.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        ...

    @abstractmethod
    def fetch_instructors(self, course_id: str) -> list[Instructor]:
        """Return all instructors of the course.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        ...


class LiveRosterProvider(RosterProvider):
    """Passes every call through to a RosterSource; nothing is cached."""

    def __init__(self, source: RosterSource) -> None:
        self._source = source

    @property
    def is_snapshot(self) -> bool:
        return False

    def students_for_course(self, course_id: str) -> list[Student]:
        return list(self._source.fetch_students(course_id))

    def instructors_for_course(self, course_id: str) -> list[Instructor]:
        return list(self._source.fetch_instructors(course_id))

    def team_table_for_course(self, course_id: str) -> dict[str, tuple[Student, ...]]:
        return build_team_to_members_table(self._source.fetch_students(course_id))

    def snapshot(self, course_id: str) -> CourseRoster:
        """Fetch the course once and freeze it for repeated resolution."""
        roster = build_course_roster(
            course_id,
            self._source.fetch_students(course_id),
            self._source.fetch_instructors(course_id),
        )
        logger.debug(
            "Snapshot of %s: %d students, %d instructors, %d teams",
            course_id, len(roster.students), len(roster.instructors), len(roster.team_to_members),
        )
        return roster
