"""Instructor section privileges for submitting feedback sessions."""

from abc import ABC, abstractmethod

from feedback_logic.models import Instructor


class PrivilegeProvider(ABC):
    """Answers whether an instructor may submit a session on behalf of a section."""

    @abstractmethod
    def is_allowed_for_section(self, instructor: Instructor, section: str, session_name: str) -> bool:
        ...


class SectionPrivileges(PrivilegeProvider):
    """Privileges from a static grant table.

    ``grants`` maps instructor email -> section -> session names the grant
    covers (``None`` means every session). Instructors without an entry hold
    course-wide privileges.
    """

    def __init__(self, grants: dict[str, dict[str, set[str] | None]] | None = None) -> None:
        self._grants = grants or {}

    def is_allowed_for_section(self, instructor: Instructor, section: str, session_name: str) -> bool:
        sections = self._grants.get(instructor.email)
        if sections is None:
            return True
        if section not in sections:
            return False
        sessions = sections[section]
        return sessions is None or session_name in sessions
