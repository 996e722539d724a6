"""Recipient resolution: who may receive a giver's answer to a question."""

import logging

from config.config_loader import ResolutionConfig
from feedback_logic.errors import UnknownParticipantTypeError
from feedback_logic.models import (
    GENERAL_QUESTION,
    MAX_POSSIBLE_RECIPIENTS,
    SELF_LABEL,
    Giver,
    ParticipantType,
    Question,
)
from feedback_logic.participants import Kind, Participant, Scope, select_participants, selection_rule
from feedback_logic.privileges import PrivilegeProvider
from feedback_logic.roster import RosterProvider

logger = logging.getLogger(__name__)


class RecipientResolver:
    """Computes the recipient set of a question for one giver.

    Stateless apart from its collaborators; safe to share between requests.
    """

    def __init__(self, privileges: PrivilegeProvider, config: ResolutionConfig | None = None) -> None:
        self._privileges = privileges
        self._config = config or ResolutionConfig()

    def resolve(self, question: Question, giver: Giver, roster: RosterProvider) -> dict[str, str]:
        """Return recipient identifier -> display name for ``giver``.

        The giver's own identifier is only present for SELF on an individual
        giver and for OWN_TEAM_MEMBERS_INCLUDING_SELF.
        """
        recipient_type = question.recipient_type

        if recipient_type == ParticipantType.SELF:
            if question.giver_type == ParticipantType.TEAMS:
                return {giver.team: giver.team}
            return {giver.email: SELF_LABEL}

        if recipient_type == ParticipantType.NONE:
            return {GENERAL_QUESTION: GENERAL_QUESTION}

        rule = selection_rule(recipient_type)
        if rule is None:
            if self._config.strict_recipient_types:
                raise UnknownParticipantTypeError(question.question_id, recipient_type)
            logger.warning(
                "Question %s has unrecognised recipient type %r, resolving to no recipients",
                question.question_id, recipient_type,
            )
            return {}

        candidates = select_participants(
            rule.for_targeting(),
            roster,
            question.course_id,
            email=giver.email,
            team=giver.team,
            section=giver.section,
        )

        if rule.kind is Kind.INSTRUCTOR:
            if not giver.is_instructor:
                candidates = [c for c in candidates if c.displayed_to_students]
        elif rule.scope is not Scope.TEAM and self._applies_privileges(giver, roster):
            candidates = self._filter_by_privilege(candidates, giver, question.session_name)

        return {c.identifier: c.name for c in candidates}

    def _applies_privileges(self, giver: Giver, roster: RosterProvider) -> bool:
        if not giver.is_instructor or giver.instructor is None:
            return False
        return roster.is_snapshot or self._config.privileges_without_snapshot

    def _filter_by_privilege(
        self, candidates: list[Participant], giver: Giver, session_name: str
    ) -> list[Participant]:
        allowed = [
            c for c in candidates
            if self._privileges.is_allowed_for_section(giver.instructor, c.section, session_name)
        ]
        if len(allowed) < len(candidates):
            logger.debug(
                "Instructor %s lacks section privileges for %d of %d recipient(s) in %s",
                giver.email, len(candidates) - len(allowed), len(candidates), session_name,
            )
        return allowed

    def required_response_count(self, question: Question, giver: Giver, roster: RosterProvider) -> int:
        """Number of responses the giver owes, resolving the unlimited sentinel."""
        needed = question.number_of_entities_to_give_feedback_to
        if needed == MAX_POSSIBLE_RECIPIENTS:
            needed = len(self.resolve(question, giver, roster))
        return needed

    def is_fully_answered(
        self, question: Question, giver: Giver, roster: RosterProvider, responses_given: int
    ) -> bool:
        return responses_given >= self.required_response_count(question, giver, roster)
