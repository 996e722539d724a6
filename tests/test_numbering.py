"""Tests for feedback_logic/numbering.py."""

import logging
import random
import threading

import pytest

from config.config_loader import NumberingConfig
from feedback_logic.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    InvalidQuestionNumberError,
    QuestionConfigurationError,
)
from feedback_logic.numbering import (
    QuestionNumberer,
    are_question_numbers_consistent,
    plan_delete,
    plan_insert,
    plan_move,
)
from tests.conftest import COURSE_ID, SESSION, FlakyQuestionStore, make_question


def _seed(numberer: QuestionNumberer, count: int) -> list[str]:
    """Create questions 1..count and return their ids in number order."""
    return [
        numberer.create_question(make_question(number=n, question_id=f"q{n}")).question_id
        for n in range(1, count + 1)
    ]


def _numbers_by_id(numberer: QuestionNumberer) -> dict[str, int]:
    return {q.question_id: q.question_number for q in numberer.questions_for_session(SESSION, COURSE_ID)}


# --- Pure plans ---

def test_consistency_check():
    assert are_question_numbers_consistent([make_question(number=n) for n in (2, 1, 3)])
    assert not are_question_numbers_consistent([make_question(number=n) for n in (1, 3)])
    assert not are_question_numbers_consistent([make_question(number=n) for n in (1, 1, 2)])
    assert are_question_numbers_consistent([])


def test_plan_insert_shifts_tail():
    questions = [make_question(number=n, question_id=f"q{n}") for n in (1, 2, 3)]
    assert plan_insert(questions, 2) == {"q2": 3, "q3": 4}
    assert plan_insert(questions, 4) == {}


def test_plan_move_up_rotates_range():
    questions = [make_question(number=n, question_id=f"q{n}") for n in range(1, 6)]
    assert plan_move(questions, "q4", 4, 1) == {"q1": 2, "q2": 3, "q3": 4}


def test_plan_move_down_rotates_range():
    questions = [make_question(number=n, question_id=f"q{n}") for n in range(1, 6)]
    assert plan_move(questions, "q2", 2, 4) == {"q3": 2, "q4": 3}


def test_plan_delete_closes_gap():
    questions = [make_question(number=n, question_id=f"q{n}") for n in (1, 2, 3)]
    assert plan_delete(questions, "q2", 2) == {"q3": 2}


# --- Create ---

def test_create_appends(numberer):
    _seed(numberer, 3)
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2, "q3": 3}


def test_create_in_middle_shifts_later(numberer):
    _seed(numberer, 3)
    numberer.create_question(make_question(number=2, question_id="new"))
    assert _numbers_by_id(numberer) == {"q1": 1, "new": 2, "q2": 3, "q3": 4}


def test_create_assigns_id(numberer):
    created = numberer.create_question(make_question(question_id=None))
    assert created.question_id


@pytest.mark.parametrize("number", [0, 5])
def test_create_out_of_range_rejected(numberer, number):
    _seed(numberer, 3)
    with pytest.raises(InvalidQuestionNumberError):
        numberer.create_question(make_question(number=number, question_id="bad"))
    assert len(_numbers_by_id(numberer)) == 3


# --- Update / reorder ---

def test_move_question_up(numberer):
    _seed(numberer, 5)
    moved = make_question(number=1, question_id="q4")
    numberer.update_question(moved)
    assert _numbers_by_id(numberer) == {"q4": 1, "q1": 2, "q2": 3, "q3": 4, "q5": 5}


def test_move_question_down(numberer):
    _seed(numberer, 5)
    numberer.update_question(make_question(number=5, question_id="q1"))
    assert _numbers_by_id(numberer) == {"q2": 1, "q3": 2, "q4": 3, "q5": 4, "q1": 5}


def test_update_without_move_keeps_numbers(numberer, question_store):
    _seed(numberer, 3)
    changed = make_question(number=2, question_id="q2")
    changed.text = "Reworded"
    numberer.update_question(changed)
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2, "q3": 3}
    assert question_store.fetch_by_id("q2").text == "Reworded"


def test_update_missing_question(numberer):
    with pytest.raises(EntityNotFoundError):
        numberer.update_question(make_question(question_id="nope"))


def test_update_out_of_range_rejected(numberer):
    _seed(numberer, 3)
    with pytest.raises(InvalidQuestionNumberError):
        numberer.update_question(make_question(number=4, question_id="q1"))
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2, "q3": 3}


def test_update_cannot_change_session(numberer):
    _seed(numberer, 2)
    with pytest.raises(QuestionConfigurationError):
        numberer.update_question(make_question(number=1, question_id="q1", session_name="Final"))


# --- Delete ---

def test_delete_closes_gap(numberer):
    _seed(numberer, 3)
    numberer.delete_question("q2")
    assert _numbers_by_id(numberer) == {"q1": 1, "q3": 2}


def test_delete_last(numberer):
    _seed(numberer, 3)
    numberer.delete_question("q3")
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2}


def test_delete_unknown_is_noop(numberer):
    _seed(numberer, 2)
    numberer.delete_question("nope")
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2}


# --- Failed writes roll back ---

@pytest.fixture
def flaky_store() -> FlakyQuestionStore:
    return FlakyQuestionStore()


@pytest.fixture
def flaky_numberer(flaky_store) -> QuestionNumberer:
    numberer = QuestionNumberer(flaky_store)
    _seed(numberer, 3)
    return numberer


def test_failed_create_keeps_numbers(flaky_numberer, flaky_store):
    flaky_store.fail_create = True
    with pytest.raises(RuntimeError):
        flaky_numberer.create_question(make_question(number=1, question_id="new"))
    assert _numbers_by_id(flaky_numberer) == {"q1": 1, "q2": 2, "q3": 3}


def test_failed_shift_during_create_removes_new_question(flaky_numberer, flaky_store):
    flaky_store.number_updates_before_failure = 1
    with pytest.raises(RuntimeError):
        flaky_numberer.create_question(make_question(number=1, question_id="new"))
    assert _numbers_by_id(flaky_numberer) == {"q1": 1, "q2": 2, "q3": 3}


def test_failed_shift_during_move_restores_order(flaky_numberer, flaky_store):
    flaky_store.number_updates_before_failure = 1
    moved = make_question(number=1, question_id="q3")
    moved.text = "Reworded"
    with pytest.raises(RuntimeError):
        flaky_numberer.update_question(moved)
    assert _numbers_by_id(flaky_numberer) == {"q1": 1, "q2": 2, "q3": 3}
    assert flaky_store.fetch_by_id("q3").text == "Question 3"


def test_failed_shift_during_delete_restores_question(flaky_numberer, flaky_store):
    flaky_store.number_updates_before_failure = 1
    with pytest.raises(RuntimeError):
        flaky_numberer.delete_question("q1")
    assert _numbers_by_id(flaky_numberer) == {"q1": 1, "q2": 2, "q3": 3}
    assert flaky_store.fetch_by_id("q1").text == "Question 1"


def test_create_with_taken_id_rejected(numberer):
    _seed(numberer, 3)
    with pytest.raises(DuplicateEntityError):
        numberer.create_question(make_question(number=1, question_id="q2"))
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2, "q3": 3}


# --- Read-path consistency check ---

def test_inconsistent_session_is_logged_not_repaired(numberer, question_store, caplog):
    question_store.create(make_question(number=1, question_id="a"))
    question_store.create(make_question(number=3, question_id="b"))
    with caplog.at_level(logging.ERROR):
        questions = numberer.questions_for_session(SESSION, COURSE_ID)
    assert [q.question_number for q in questions] == [1, 3]
    assert any("invalid question numbers" in msg for msg in caplog.messages)


def test_single_misnumbered_question_is_logged(numberer, question_store, caplog):
    question_store.create(make_question(number=3, question_id="a"))
    with caplog.at_level(logging.ERROR):
        numberer.questions_for_session(SESSION, COURSE_ID)
    assert any("invalid question numbers [3]" in msg for msg in caplog.messages)


def test_verify_on_read_disabled(question_store, caplog):
    numberer = QuestionNumberer(question_store, NumberingConfig(verify_on_read=False))
    question_store.create(make_question(number=2, question_id="a"))
    question_store.create(make_question(number=5, question_id="b"))
    with caplog.at_level(logging.ERROR):
        numberer.questions_for_session(SESSION, COURSE_ID)
    assert not caplog.messages


def test_session_locks_released_when_idle(numberer):
    _seed(numberer, 3)
    numberer.update_question(make_question(number=1, question_id="q3"))
    numberer.delete_question("q2")
    numberer.questions_for_session(SESSION, COURSE_ID)
    assert numberer._locks == {}


def test_sessions_are_independent(numberer):
    _seed(numberer, 2)
    numberer.create_question(make_question(number=1, question_id="other", session_name="Final"))
    assert _numbers_by_id(numberer) == {"q1": 1, "q2": 2}


# --- Invariant under random operation sequences ---

@pytest.mark.parametrize("seed", range(5))
def test_random_operations_keep_numbering_dense(numberer, seed):
    rng = random.Random(seed)
    next_id = 0
    for _ in range(60):
        current = numberer.questions_for_session(SESSION, COURSE_ID)
        op = rng.choice(["create", "move", "delete"]) if current else "create"
        if op == "create":
            next_id += 1
            numberer.create_question(
                make_question(number=rng.randint(1, len(current) + 1), question_id=f"r{next_id}")
            )
        elif op == "move":
            target = rng.choice(current)
            target.question_number = rng.randint(1, len(current))
            numberer.update_question(target)
        else:
            numberer.delete_question(rng.choice(current).question_id)
        assert are_question_numbers_consistent(numberer.questions_for_session(SESSION, COURSE_ID))


def test_concurrent_creates_stay_dense(numberer):
    errors: list[Exception] = []

    def worker(prefix: str) -> None:
        try:
            for i in range(20):
                numberer.create_question(make_question(number=1, question_id=f"{prefix}{i}"))
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    questions = numberer.questions_for_session(SESSION, COURSE_ID)
    assert len(questions) == 80
    assert are_question_numbers_consistent(questions)
