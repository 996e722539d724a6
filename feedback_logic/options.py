"""Generated answer options for choice questions (MCQ/MSQ "generate options for")."""

import logging
from collections.abc import Iterable
from dataclasses import replace

from feedback_logic.errors import EntityNotFoundError, QuestionConfigurationError, UnknownParticipantTypeError
from feedback_logic.models import CHOICE_QUESTION_TYPES, ChoiceDetails, ParticipantType, Question
from feedback_logic.participants import Kind, Participant, Scope, select_participants, selection_rule
from feedback_logic.roster import RosterProvider

logger = logging.getLogger(__name__)

# Selectors a choice question may generate options for.
_GENERATABLE = frozenset({
    ParticipantType.STUDENTS,
    ParticipantType.STUDENTS_IN_SAME_SECTION,
    ParticipantType.STUDENTS_EXCLUDING_SELF,
    ParticipantType.TEAMS,
    ParticipantType.TEAMS_IN_SAME_SECTION,
    ParticipantType.TEAMS_EXCLUDING_SELF,
    ParticipantType.OWN_TEAM_MEMBERS,
    ParticipantType.OWN_TEAM_MEMBERS_INCLUDING_SELF,
    ParticipantType.INSTRUCTORS,
})


def _label(participant: Participant, kind: Kind, scope: Scope) -> str:
    if kind is Kind.STUDENT and scope is not Scope.TEAM:
        return f"{participant.name} ({participant.team})"
    return participant.name


class DynamicOptionGenerator:
    """Builds the option list of a choice question from the course roster."""

    def __init__(self, roster: RosterProvider) -> None:
        self._roster = roster

    def populate_options(self, question: Question, giver_email: str, giver_team: str | None) -> Question:
        """Return a copy of ``question`` with its generated options filled in.

        Args:
            question: An MCQ or MSQ question.
            giver_email: Email of the participant answering the question.
            giver_team: Team of the participant; None for instructors.

        Returns:
            A new Question; the input and its details are left untouched.

        Raises:
            QuestionConfigurationError: If the question is not a choice question.
            UnknownParticipantTypeError: If the selector cannot generate options.
            EntityNotFoundError: If the course or the giver cannot be found.
        """
        if question.question_type not in CHOICE_QUESTION_TYPES:
            raise QuestionConfigurationError(
                question.question_id,
                f"cannot generate options for {question.question_type} questions",
            )
        details = question.details or ChoiceDetails()
        selector = details.generate_options_for

        if selector == ParticipantType.NONE:
            return question
        if selector not in _GENERATABLE:
            raise UnknownParticipantTypeError(question.question_id, selector)

        rule = selection_rule(selector)
        if rule.scope is Scope.TEAM and giver_team is None:
            logger.debug("No team for %s, skipping team member options", giver_email)
            return question

        section = None
        if rule.scope is Scope.SECTION:
            student = self._roster.student_for_email(question.course_id, giver_email)
            if student is None:
                raise EntityNotFoundError("student", giver_email, f"not enrolled in {question.course_id}")
            section = student.section

        participants = select_participants(
            rule,
            self._roster,
            question.course_id,
            email=giver_email,
            team=giver_team,
            section=section,
        )
        generated = [_label(p, rule.kind, rule.scope) for p in participants]
        options = sorted([*details.choices, *generated])

        logger.debug(
            "Generated %d %s option(s) for question %s",
            len(generated), rule.kind.value, question.question_id,
        )
        return replace(question, details=replace(details, choices=options))

    def populate_all(
        self, questions: Iterable[Question], giver_email: str, giver_team: str | None
    ) -> list[Question]:
        """Populate every choice question in ``questions``; other types pass through."""
        return [
            self.populate_options(q, giver_email, giver_team)
            if q.question_type in CHOICE_QUESTION_TYPES else q
            for q in questions
        ]
