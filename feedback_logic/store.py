"""Question persistence interface and an in-memory implementation."""

import uuid
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import replace

from feedback_logic.errors import DuplicateEntityError, EntityNotFoundError
from feedback_logic.models import Question


class QuestionStore(ABC):
    """Persistence for question records. Question numbers are managed by the numberer."""

    @abstractmethod
    def create(self, question: Question) -> Question:
        """Persist a new question and return it with its assigned id.

        Raises:
            DuplicateEntityError: If ``question.question_id`` is already stored.
        """
        ...

    @abstractmethod
    def fetch_by_id(self, question_id: str) -> Question | None:
        ...

    @abstractmethod
    def fetch_for_session(self, session_name: str, course_id: str) -> list[Question]:
        """Return all questions of a session in storage order."""
        ...

    @abstractmethod
    def update(self, question: Question) -> Question:
        """Overwrite a stored question.

        Raises:
            EntityNotFoundError: If no question has ``question.question_id``.
        """
        ...

    @abstractmethod
    def update_number(self, question_id: str, question_number: int) -> None:
        """Raises EntityNotFoundError if the question does not exist."""
        ...

    @abstractmethod
    def delete(self, question_id: str) -> None:
        ...


class InMemoryQuestionStore(QuestionStore):
    """Dict-backed store; deep-copies records in and out so callers never alias stored ones."""

    def __init__(self) -> None:
        self._questions: dict[str, Question] = {}

    def create(self, question: Question) -> Question:
        if question.question_id is not None and question.question_id in self._questions:
            raise DuplicateEntityError("question", question.question_id)
        stored = replace(deepcopy(question), question_id=question.question_id or uuid.uuid4().hex)
        self._questions[stored.question_id] = stored
        return deepcopy(stored)

    def fetch_by_id(self, question_id: str) -> Question | None:
        question = self._questions.get(question_id)
        return deepcopy(question) if question else None

    def fetch_for_session(self, session_name: str, course_id: str) -> list[Question]:
        return [
            deepcopy(q) for q in self._questions.values()
            if q.session_name == session_name and q.course_id == course_id
        ]

    def update(self, question: Question) -> Question:
        if question.question_id not in self._questions:
            raise EntityNotFoundError("question", str(question.question_id))
        self._questions[question.question_id] = deepcopy(question)
        return deepcopy(question)

    def update_number(self, question_id: str, question_number: int) -> None:
        if question_id not in self._questions:
            raise EntityNotFoundError("question", question_id)
        self._questions[question_id] = replace(self._questions[question_id], question_number=question_number)

    def delete(self, question_id: str) -> None:
        self._questions.pop(question_id, None)
