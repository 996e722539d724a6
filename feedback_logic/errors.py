"""Exceptions raised by audience resolution, option generation and numbering."""


class FeedbackLogicError(Exception):
    """Base for all errors raised by this package."""


class EntityNotFoundError(FeedbackLogicError):
    """Raised when a referenced course, question or participant does not exist."""

    def __init__(self, kind: str, identifier: str, message: str = "does not exist") -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"[{kind} {identifier}] {message}")


class DuplicateEntityError(FeedbackLogicError):
    """Raised when creating a record whose identifier is already taken."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"[{kind} {identifier}] already exists")


class QuestionConfigurationError(FeedbackLogicError):
    """Raised when a question is configured in a way upstream validation should have rejected."""

    def __init__(self, question_id: str | None, message: str) -> None:
        self.question_id = question_id
        super().__init__(f"[question {question_id or '<new>'}] {message}")


class UnknownParticipantTypeError(QuestionConfigurationError):
    """Raised when a participant-type tag has no meaning for the caller."""

    def __init__(self, question_id: str | None, tag: object) -> None:
        self.tag = tag
        super().__init__(question_id, f"unsupported participant type: {tag}")


class InvalidQuestionNumberError(FeedbackLogicError):
    """Raised when a requested question number would break dense numbering."""

    def __init__(self, question_id: str | None, message: str) -> None:
        self.question_id = question_id
        super().__init__(f"[question {question_id or '<new>'}] {message}")
