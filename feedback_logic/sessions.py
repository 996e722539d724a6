"""Session collaborators and giver-type views over a session's questions."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from feedback_logic.errors import EntityNotFoundError
from feedback_logic.models import ParticipantType, Question


class SessionProvider(ABC):
    """Session metadata owned by the session service."""

    @abstractmethod
    def creator_email(self, session_name: str, course_id: str) -> str:
        """Return the creator's email.

        Raises:
            EntityNotFoundError: If the session does not exist.
        """
        ...


class StaticSessionProvider(SessionProvider):
    """Session creators from a fixed (course_id, session_name) -> email table."""

    def __init__(self, creators: dict[tuple[str, str], str]) -> None:
        self._creators = creators

    def creator_email(self, session_name: str, course_id: str) -> str:
        try:
            return self._creators[(course_id, session_name)]
        except KeyError:
            raise EntityNotFoundError("session", f"{course_id}/{session_name}") from None

    def is_creator(self, session_name: str, course_id: str, email: str) -> bool:
        return self._creators.get((course_id, session_name)) == email


def questions_for_instructors(questions: Iterable[Question], is_creator: bool) -> list[Question]:
    """Questions instructors answer; SELF questions only for the session creator."""
    return [
        q for q in questions
        if q.giver_type == ParticipantType.INSTRUCTORS
        or (q.giver_type == ParticipantType.SELF and is_creator)
    ]


def questions_for_students(questions: Iterable[Question]) -> list[Question]:
    """Questions answered by individual students or on behalf of their team."""
    return [q for q in questions if q.giver_type in (ParticipantType.STUDENTS, ParticipantType.TEAMS)]


def session_has_questions(questions: Iterable[Question], giver_type: ParticipantType | None = None) -> bool:
    """True if any question is answered by ``giver_type``, or by students/teams when omitted."""
    if giver_type is None:
        return bool(questions_for_students(questions))
    return any(q.giver_type == giver_type for q in questions)
