"""Dense 1..N question numbering within a feedback session.

Every mutation reads the session, computes a shift plan and applies it while
holding that session's lock, so no reader going through the numberer sees a
half-shifted session. Plans are plain ``{question_id: new_number}`` dicts.
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from config.config_loader import NumberingConfig
from feedback_logic.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    InvalidQuestionNumberError,
    QuestionConfigurationError,
)
from feedback_logic.models import Question
from feedback_logic.store import QuestionStore

logger = logging.getLogger(__name__)


def are_question_numbers_consistent(questions: Iterable[Question]) -> bool:
    """True when the question numbers are exactly {1, ..., count} with no duplicates."""
    numbers = [q.question_number for q in questions]
    return sorted(numbers) == list(range(1, len(numbers) + 1))


def plan_insert(questions: Iterable[Question], number: int) -> dict[str, int]:
    """Shift every question at or after ``number`` up by one to open a slot."""
    return {q.question_id: q.question_number + 1 for q in questions if q.question_number >= number}


def plan_move(questions: Iterable[Question], question_id: str, old: int, new: int) -> dict[str, int]:
    """Rotate the closed range between ``old`` and ``new`` around the moved question."""
    plan: dict[str, int] = {}
    for q in questions:
        if q.question_id == question_id:
            continue
        if new < old and new <= q.question_number <= old - 1:
            plan[q.question_id] = q.question_number + 1
        elif new > old and old + 1 <= q.question_number <= new:
            plan[q.question_id] = q.question_number - 1
    return plan


def plan_delete(questions: Iterable[Question], question_id: str, number: int) -> dict[str, int]:
    """Close the gap left by removing the question numbered ``number``."""
    return {
        q.question_id: q.question_number - 1
        for q in questions
        if q.question_id != question_id and q.question_number > number
    }


@dataclass
class _SessionLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0  # holder plus waiters


class QuestionNumberer:
    """Creates, moves and deletes questions while keeping numbering dense.

    A failed store write inside a mutation restores the session to what it
    was before the mutation started, then re-raises.
    """

    def __init__(self, store: QuestionStore, config: NumberingConfig | None = None) -> None:
        self._store = store
        self._config = config or NumberingConfig()
        # Entries live only while some thread holds or waits on the session.
        self._locks: dict[tuple[str, str], _SessionLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _session_lock(self, session_name: str, course_id: str) -> Iterator[None]:
        key = (course_id, session_name)
        with self._locks_guard:
            entry = self._locks.setdefault(key, _SessionLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[key]

    @contextmanager
    def _rollback_on_error(self, before: list[Question], session_name: str, course_id: str) -> Iterator[None]:
        try:
            yield
        except Exception:
            logger.error("Write to %s: %s failed, restoring previous question numbers", course_id, session_name)
            self._restore(before, session_name, course_id)
            raise

    def _restore(self, before: list[Question], session_name: str, course_id: str) -> None:
        kept = {q.question_id for q in before}
        for q in self._store.fetch_for_session(session_name, course_id):
            if q.question_id not in kept:
                self._store.delete(q.question_id)
        for q in before:
            if self._store.fetch_by_id(q.question_id) is None:
                self._store.create(q)
            else:
                self._store.update(q)

    def _apply(self, plan: dict[str, int]) -> None:
        for question_id, number in plan.items():
            self._store.update_number(question_id, number)

    def _sorted_session(self, session_name: str, course_id: str) -> list[Question]:
        questions = self._store.fetch_for_session(session_name, course_id)
        return sorted(questions, key=lambda q: q.question_number)

    def questions_for_session(self, session_name: str, course_id: str) -> list[Question]:
        """Return the session's questions by number, logging inconsistent numbering.

        Inconsistent numbering is reported, not repaired: the list is returned as stored.
        """
        with self._session_lock(session_name, course_id):
            questions = self._sorted_session(session_name, course_id)
        if self._config.verify_on_read and not are_question_numbers_consistent(questions):
            logger.error(
                "%s: %s has invalid question numbers %s",
                course_id, session_name, [q.question_number for q in questions],
            )
        return questions

    def create_question(self, question: Question) -> Question:
        """Insert ``question`` at its question_number, shifting later questions up.

        Raises:
            DuplicateEntityError: If a question with the same id already exists.
            InvalidQuestionNumberError: If the number is outside 1..count+1.
        """
        with self._session_lock(question.session_name, question.course_id):
            if question.question_id is not None and self._store.fetch_by_id(question.question_id) is not None:
                raise DuplicateEntityError("question", question.question_id)
            existing = self._sorted_session(question.session_name, question.course_id)
            number = question.question_number
            if not 1 <= number <= len(existing) + 1:
                raise InvalidQuestionNumberError(
                    question.question_id,
                    f"number {number} outside 1..{len(existing) + 1} for session {question.session_name}",
                )
            with self._rollback_on_error(existing, question.session_name, question.course_id):
                created = self._store.create(question)
                self._apply(plan_insert(existing, number))

        logger.info(
            "Created question %s at %d in %s/%s",
            created.question_id, number, question.course_id, question.session_name,
        )
        return created

    def update_question(self, question: Question) -> Question:
        """Persist changes to an existing question, renumbering others if it moved.

        Raises:
            EntityNotFoundError: If the question does not exist.
            QuestionConfigurationError: If the update moves it to another session.
            InvalidQuestionNumberError: If the new number is outside 1..count.
        """
        current = self._store.fetch_by_id(question.question_id)
        if current is None:
            raise EntityNotFoundError("question", str(question.question_id))

        with self._session_lock(current.session_name, current.course_id):
            current = self._store.fetch_by_id(question.question_id)
            if current is None:
                raise EntityNotFoundError("question", str(question.question_id))
            if (question.session_name, question.course_id) != (current.session_name, current.course_id):
                raise QuestionConfigurationError(question.question_id, "questions cannot change session")

            existing = self._sorted_session(current.session_name, current.course_id)
            old, new = current.question_number, question.question_number
            plan: dict[str, int] = {}
            if old != new:
                if not 1 <= new <= len(existing):
                    raise InvalidQuestionNumberError(
                        question.question_id, f"number {new} outside 1..{len(existing)}",
                    )
                plan = plan_move(existing, question.question_id, old, new)

            with self._rollback_on_error(existing, current.session_name, current.course_id):
                updated = self._store.update(question)
                self._apply(plan)

        if plan:
            logger.info(
                "Moved question %s from %d to %d, renumbered %d other(s)",
                question.question_id, old, new, len(plan),
            )
        return updated

    def delete_question(self, question_id: str) -> None:
        """Delete a question and close the gap. Unknown ids are ignored."""
        target = self._store.fetch_by_id(question_id)
        if target is None:
            logger.debug("Question %s already gone, nothing to delete", question_id)
            return

        with self._session_lock(target.session_name, target.course_id):
            target = self._store.fetch_by_id(question_id)
            if target is None:
                return
            existing = self._sorted_session(target.session_name, target.course_id)
            plan = plan_delete(existing, question_id, target.question_number)
            with self._rollback_on_error(existing, target.session_name, target.course_id):
                self._store.delete(question_id)
                self._apply(plan)

        logger.info(
            "Deleted question %s (was %d), shifted %d question(s) down",
            question_id, target.question_number, len(plan),
        )
