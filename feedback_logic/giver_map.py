"""Complete giver -> recipients graph for a question, against one roster snapshot."""

import logging

from feedback_logic.models import CourseRoster, Giver, ParticipantType, Question
from feedback_logic.recipients import RecipientResolver
from feedback_logic.roster import SnapshotRosterProvider
from feedback_logic.sessions import SessionProvider

logger = logging.getLogger(__name__)


class GiverRecipientMapBuilder:
    """Enumerates every possible giver of a question and resolves each one."""

    def __init__(self, resolver: RecipientResolver, sessions: SessionProvider) -> None:
        self._resolver = resolver
        self._sessions = sessions

    def possible_givers(self, question: Question, roster: CourseRoster) -> list[str]:
        """Giver identifiers for the question's giver type (emails, or team names)."""
        giver_type = question.giver_type
        if giver_type == ParticipantType.STUDENTS:
            return [s.email for s in roster.students]
        if giver_type == ParticipantType.INSTRUCTORS:
            return [i.email for i in roster.instructors]
        if giver_type == ParticipantType.TEAMS:
            return list(roster.team_to_members)
        if giver_type == ParticipantType.SELF:
            return [self._sessions.creator_email(question.session_name, question.course_id)]
        logger.error("Invalid giver type %r for question %s", giver_type, question.question_id)
        return []

    def _giver_for(self, question: Question, identifier: str, roster: CourseRoster) -> Giver | None:
        giver_type = question.giver_type
        if giver_type == ParticipantType.STUDENTS:
            student = next(s for s in roster.students if s.email == identifier)
            return Giver.for_student(student)
        if giver_type == ParticipantType.TEAMS:
            # Any member stands in for the whole team.
            return Giver.for_student(roster.team_to_members[identifier][0])
        instructor = next((i for i in roster.instructors if i.email == identifier), None)
        if instructor is None:
            logger.warning(
                "Giver %s of question %s is not an instructor of %s, skipping",
                identifier, question.question_id, roster.course_id,
            )
            return None
        return Giver.for_instructor(instructor)

    def build_map(self, question: Question, roster: CourseRoster) -> dict[str, set[str]]:
        """Map every possible giver to the identifiers it may give feedback to.

        Every giver is resolved against the same snapshot; the roster is never
        re-fetched per giver.
        """
        snapshot = SnapshotRosterProvider(roster)
        giver_map: dict[str, set[str]] = {}
        for identifier in self.possible_givers(question, roster):
            giver = self._giver_for(question, identifier, roster)
            if giver is None:
                continue
            recipients = self._resolver.resolve(question, giver, snapshot)
            giver_map.setdefault(identifier, set()).update(recipients)

        logger.info(
            "Built giver map for question %s: %d giver(s), %d edge(s)",
            question.question_id, len(giver_map), sum(len(r) for r in giver_map.values()),
        )
        return giver_map
