from datetime import date, timedelta

import pytest
from fastapi import HTTPException

import quiz as quiz_service
from conftest import add_questions
from models import Quiz

TODAY = date(2024, 5, 10)
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def user(storage):
    user = storage.upsert_user("learner@example.com", password_hash="x")
    storage.commit()
    return user


def answer_all(storage, user, quiz, correct_count, today=TODAY):
    result = None
    for n, question_id in enumerate(quiz.questions):
        option = "A" if n < correct_count else "D"
        result = quiz_service.submit_answer(storage, user, quiz.id, question_id, option, today)
    return result


@pytest.mark.parametrize("score,points", [(0, 0), (1, 10), (5, 50), (6, 90)])
def test_points_for_score(score, points):
    assert quiz_service.points_for_score(score) == points


def test_perfect_bonus_follows_quiz_length():
    assert quiz_service.points_for_score(6, 10) == 60
    assert quiz_service.points_for_score(10, 10) == 130


def test_next_streak_after_yesterday_increments():
    assert quiz_service.next_streak(YESTERDAY, 4, TODAY) == 5


def test_next_streak_same_day_unchanged():
    assert quiz_service.next_streak(TODAY, 4, TODAY) == 4


@pytest.mark.parametrize("last", [None, TODAY - timedelta(days=2), date(2023, 1, 1)])
def test_next_streak_resets_after_gap(last):
    assert quiz_service.next_streak(last, 9, TODAY) == 1


def test_today_quiz_samples_distinct_questions(storage, user):
    pool = add_questions(storage, 10)
    storage.commit()

    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    assert len(quiz.questions) == 6
    assert len(set(quiz.questions)) == 6
    assert set(quiz.questions) <= set(pool)
    assert quiz.score == 0
    assert quiz.completed is False
    assert quiz.total_questions == 6
    assert quiz.date == TODAY


def test_today_quiz_is_stable_within_a_day(storage, user):
    add_questions(storage, 12)
    storage.commit()

    first = quiz_service.get_or_create_today_quiz(storage, user, TODAY)
    second = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    assert second.id == first.id
    assert second.questions == first.questions


def test_new_day_gets_new_quiz(storage, user):
    add_questions(storage, 6)
    storage.commit()

    first = quiz_service.get_or_create_today_quiz(storage, user, YESTERDAY)
    second = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    assert second.id != first.id
    assert len(storage.get_user_quiz_history(user.id)) == 2


def test_small_pool_uses_every_question(storage, user):
    pool = add_questions(storage, 2)
    storage.commit()

    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    assert sorted(quiz.questions) == sorted(pool)
    assert quiz.total_questions == 6


def test_empty_pool_is_not_found(storage, user):
    with pytest.raises(HTTPException) as exc:
        quiz_service.get_or_create_today_quiz(storage, user, TODAY)
    assert exc.value.status_code == 404
    assert storage.get_today_quiz(user.id, TODAY) is None


def test_concurrent_creation_returns_existing_quiz(storage, user, db, monkeypatch):
    add_questions(storage, 10)
    storage.commit()
    existing = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    lookup = storage.get_today_quiz
    calls = []

    def miss_first_lookup(user_id, quiz_date):
        calls.append(quiz_date)
        if len(calls) == 1:
            return None
        return lookup(user_id, quiz_date)

    monkeypatch.setattr(storage, "get_today_quiz", miss_first_lookup)

    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    assert quiz.id == existing.id
    assert len(calls) == 2
    assert db.query(Quiz).filter(Quiz.user_id == user.id).count() == 1


def test_question_data_follows_quiz_order_and_drops_missing(storage, user):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    storage.delete_content_item(quiz.questions[2])
    storage.commit()

    items = quiz_service.load_question_data(storage, quiz)
    expected = [qid for n, qid in enumerate(quiz.questions) if n != 2]
    assert [item.id for item in items] == expected


def test_completed_exactly_at_total_questions(storage, user):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    for question_id in quiz.questions[:5]:
        result = quiz_service.submit_answer(storage, user, quiz.id, question_id, "A", TODAY)
        assert result["completed"] is False

    result = quiz_service.submit_answer(storage, user, quiz.id, quiz.questions[5], "A", TODAY)
    assert result["completed"] is True
    assert result["score"] == 6


def test_perfect_quiz_awards_bonus(storage, user, db):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    answer_all(storage, user, quiz, correct_count=6)

    db.refresh(user)
    assert user.points == 90


def test_partial_quiz_awards_ten_per_correct(storage, user, db):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    result = answer_all(storage, user, quiz, correct_count=4)

    assert result == {"correct": False, "explanation": result["explanation"], "completed": True, "score": 4}
    db.refresh(user)
    assert user.points == 40


def test_rewards_are_applied_once(storage, user, db):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)
    answer_all(storage, user, quiz, correct_count=3)

    # duplicate submission after completion still records an attempt
    result = quiz_service.submit_answer(storage, user, quiz.id, quiz.questions[0], "A", TODAY)

    assert result["completed"] is True
    assert result["score"] == 4
    assert len(storage.get_quiz_attempts(quiz.id)) == 7
    db.refresh(user)
    assert user.points == 30
    assert user.streak == 1


def test_duplicate_submissions_count_towards_completion(storage, user):
    add_questions(storage, 1)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    results = [
        quiz_service.submit_answer(storage, user, quiz.id, quiz.questions[0], "A", TODAY)
        for _ in range(6)
    ]

    assert [r["completed"] for r in results] == [False] * 5 + [True]
    assert results[-1]["score"] == 6


def test_streak_continues_from_yesterday(storage, user, db):
    user.streak = 3
    user.last_quiz_date = YESTERDAY
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    answer_all(storage, user, quiz, correct_count=2)

    db.refresh(user)
    assert user.streak == 4
    assert user.last_quiz_date == TODAY


def test_streak_resets_after_gap(storage, user, db):
    user.streak = 8
    user.last_quiz_date = TODAY - timedelta(days=3)
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    answer_all(storage, user, quiz, correct_count=2)

    db.refresh(user)
    assert user.streak == 1


def test_first_completion_starts_streak(storage, user, db):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)

    answer_all(storage, user, quiz, correct_count=0)

    db.refresh(user)
    assert user.streak == 1
    assert user.points == 0


def test_unknown_quiz_is_not_found(storage, user):
    add_questions(storage, 1)
    storage.commit()

    with pytest.raises(HTTPException) as exc:
        quiz_service.submit_answer(storage, user, "missing", "missing", "A", TODAY)
    assert exc.value.status_code == 404


def test_question_outside_quiz_is_rejected(storage, user):
    add_questions(storage, 6)
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, user, TODAY)
    outsider = add_questions(storage, 1)[0]
    storage.commit()

    with pytest.raises(HTTPException) as exc:
        quiz_service.submit_answer(storage, user, quiz.id, outsider, "A", TODAY)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Question not in quiz"
    assert storage.get_quiz_attempts(quiz.id) == []


def test_other_users_quiz_is_not_found(storage, user):
    add_questions(storage, 6)
    other = storage.upsert_user("other@example.com", password_hash="x")
    storage.commit()
    quiz = quiz_service.get_or_create_today_quiz(storage, other, TODAY)

    with pytest.raises(HTTPException) as exc:
        quiz_service.submit_answer(storage, user, quiz.id, quiz.questions[0], "A", TODAY)
    assert exc.value.detail == "Quiz not found"
