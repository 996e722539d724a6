"""Participant-type lookup table and the selection routine shared by recipients and options.

Each participant-type tag maps to a SelectionRule describing *who* is picked
(kind), *from where* (scope) and *who is dropped* (exclusion). The table holds
the tag's literal meaning; targeting callers tighten it with
``SelectionRule.for_targeting`` so a giver is never its own peer recipient.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum

from feedback_logic.models import ParticipantType
from feedback_logic.roster import RosterProvider

logger = logging.getLogger(__name__)


class Kind(str, Enum):
    STUDENT = "student"
    TEAM = "team"
    INSTRUCTOR = "instructor"


class Scope(str, Enum):
    COURSE = "course"
    SECTION = "section"
    TEAM = "team"


class Exclusion(str, Enum):
    NONE = "none"
    SELF = "self"
    SELF_TEAM = "self-team"


@dataclass(frozen=True)
class SelectionRule:
    kind: Kind
    scope: Scope
    exclusion: Exclusion = Exclusion.NONE

    def for_targeting(self) -> "SelectionRule":
        """Course- and section-wide selections never target the giver's own identity."""
        if self.scope is Scope.TEAM:
            return self
        exclusion = Exclusion.SELF_TEAM if self.kind is Kind.TEAM else Exclusion.SELF
        return replace(self, exclusion=exclusion)


@dataclass(frozen=True)
class Participant:
    identifier: str                    # email, or team name for teams
    name: str
    section: str
    team: str | None = None
    displayed_to_students: bool = True


SELECTION_RULES: dict[ParticipantType, SelectionRule] = {
    ParticipantType.STUDENTS: SelectionRule(Kind.STUDENT, Scope.COURSE),
    ParticipantType.STUDENTS_IN_SAME_SECTION: SelectionRule(Kind.STUDENT, Scope.SECTION),
    ParticipantType.STUDENTS_EXCLUDING_SELF: SelectionRule(Kind.STUDENT, Scope.COURSE, Exclusion.SELF),
    ParticipantType.INSTRUCTORS: SelectionRule(Kind.INSTRUCTOR, Scope.COURSE),
    ParticipantType.TEAMS: SelectionRule(Kind.TEAM, Scope.COURSE),
    ParticipantType.TEAMS_IN_SAME_SECTION: SelectionRule(Kind.TEAM, Scope.SECTION),
    ParticipantType.TEAMS_EXCLUDING_SELF: SelectionRule(Kind.TEAM, Scope.COURSE, Exclusion.SELF_TEAM),
    ParticipantType.OWN_TEAM: SelectionRule(Kind.TEAM, Scope.TEAM),
    ParticipantType.OWN_TEAM_MEMBERS: SelectionRule(Kind.STUDENT, Scope.TEAM, Exclusion.SELF),
    ParticipantType.OWN_TEAM_MEMBERS_INCLUDING_SELF: SelectionRule(Kind.STUDENT, Scope.TEAM),
}


def selection_rule(tag: object) -> SelectionRule | None:
    """Return the rule for a tag, or None when the tag has no table entry."""
    try:
        return SELECTION_RULES.get(ParticipantType(tag))
    except ValueError:
        return None


def _students(rule: SelectionRule, roster: RosterProvider, course_id: str,
              team: str, section: str | None) -> list[Participant]:
    if rule.scope is Scope.TEAM:
        students = roster.students_for_team(team, course_id)
    elif rule.scope is Scope.SECTION:
        students = roster.students_for_section(section, course_id)
    else:
        students = roster.students_for_course(course_id)
    return [Participant(s.email, s.name, s.section, team=s.team) for s in students]


def _teams(rule: SelectionRule, roster: RosterProvider, course_id: str,
           team: str, section: str | None) -> list[Participant]:
    if rule.scope is Scope.TEAM:
        # Own team: the giver's team is the only candidate, roster not consulted.
        return [Participant(team, team, section or "", team=team)]
    if rule.scope is Scope.SECTION:
        table = roster.team_to_members_table(roster.students_for_section(section, course_id))
    else:
        table = roster.team_table_for_course(course_id)
    # A team belongs to the section of its first listed member.
    return [
        Participant(name, name, members[0].section, team=name)
        for name, members in table.items()
        if members
    ]


def _instructors(roster: RosterProvider, course_id: str) -> list[Participant]:
    return [
        Participant(i.email, i.name, "", displayed_to_students=i.is_displayed_to_students)
        for i in roster.instructors_for_course(course_id)
    ]


def select_participants(
    rule: SelectionRule,
    roster: RosterProvider,
    course_id: str,
    *,
    email: str,
    team: str | None,
    section: str | None,
) -> list[Participant]:
    """Evaluate a selection rule for one giver.

    Args:
        rule: What to select; see SELECTION_RULES.
        roster: Source of course membership.
        course_id: Course the question belongs to.
        email: Giver email, used by the SELF exclusion.
        team: Giver team, used by TEAM scope and the SELF_TEAM exclusion.
        section: Giver section, only read for SECTION scope.

    Returns:
        Matching participants in roster order.

    Raises:
        EntityNotFoundError: If the roster does not know the course.
    """
    if rule.kind is Kind.STUDENT:
        selected = _students(rule, roster, course_id, team, section)
    elif rule.kind is Kind.TEAM:
        selected = _teams(rule, roster, course_id, team, section)
    else:
        selected = _instructors(roster, course_id)

    if rule.exclusion is Exclusion.SELF:
        selected = [p for p in selected if p.identifier != email]
    elif rule.exclusion is Exclusion.SELF_TEAM:
        selected = [p for p in selected if p.identifier != team]

    logger.debug("Selected %d %s participant(s) for %s in %s", len(selected), rule.kind.value, email, course_id)
    return selected
