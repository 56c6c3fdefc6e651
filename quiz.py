import os
import random
import logging
from datetime import date, timedelta
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from models import ContentItem, Quiz, User
from storage import DatabaseStorage

logger = logging.getLogger(__name__)

DEFAULT_QUIZ_SIZE = 6
QUIZ_SIZE = int(os.getenv("QUIZ_SIZE", str(DEFAULT_QUIZ_SIZE)))
POINTS_PER_CORRECT = 10
PERFECT_BONUS = 30


def points_for_score(score: int, total_questions: int = DEFAULT_QUIZ_SIZE) -> int:
    """10 points per correct answer, plus 30 when every question was answered correctly"""
    bonus = PERFECT_BONUS if score == total_questions else 0
    return score * POINTS_PER_CORRECT + bonus


def next_streak(last_quiz_date: Optional[date], streak: int, today: date) -> int:
    if last_quiz_date == today:
        return streak
    if last_quiz_date == today - timedelta(days=1):
        return (streak or 0) + 1
    return 1


def get_or_create_today_quiz(storage: DatabaseStorage, user: User, today: date) -> Quiz:
    """Return the user's quiz for today, drawing a new one on first access"""
    quiz = storage.get_today_quiz(user.id, today)
    if quiz is not None:
        return quiz

    pool = storage.get_question_ids()
    if not pool:
        raise HTTPException(404, "No questions available")

    selected = random.sample(pool, min(QUIZ_SIZE, len(pool)))
    try:
        quiz = storage.create_quiz(user.id, today, selected, QUIZ_SIZE)
        storage.commit()
    except IntegrityError:
        # another request created today's quiz first
        storage.db.rollback()
        quiz = storage.get_today_quiz(user.id, today)
        if quiz is None:
            raise
        return quiz

    logger.info(f"Created quiz {quiz.id} for user {user.id} on {today} with {len(selected)} questions")
    return quiz


def load_question_data(storage: DatabaseStorage, quiz: Quiz) -> List[ContentItem]:
    """Content records for the quiz in quiz order; dangling ids are dropped"""
    by_id = {item.id: item for item in storage.get_content_items_by_ids(list(quiz.questions))}
    return [by_id[qid] for qid in quiz.questions if qid in by_id]


def apply_completion_rewards(storage: DatabaseStorage, user: User, quiz: Quiz, today: date):
    points = points_for_score(quiz.score, quiz.total_questions)
    streak = next_streak(user.last_quiz_date, user.streak, today)

    storage.update_user_points(user.id, points)
    storage.update_user_streak(user.id, streak, today)

    logger.info(
        f"Quiz {quiz.id} completed by user {user.id}: score {quiz.score}, "
        f"+{points} points, streak {streak}"
    )


def submit_answer(storage: DatabaseStorage, user: User, quiz_id: str, question_id: str,
                  selected_option: str, today: date) -> dict:
    """Record one answer and update the quiz.

    The quiz row stays locked until the commit at the end, so the score and
    the completion transition are computed from a consistent attempt count
    even when answers for the same quiz arrive concurrently.
    """
    quiz = storage.get_quiz(quiz_id, for_update=True)
    if quiz is None or quiz.user_id != user.id:
        raise HTTPException(404, "Quiz not found")

    question = storage.get_content_item(question_id)
    if question is None or question.type != "question":
        raise HTTPException(404, "Question not found")
    if question_id not in quiz.questions:
        raise HTTPException(400, "Question not in quiz")

    correct = question.correct_answer == selected_option
    storage.create_attempt(user.id, quiz.id, question.id, selected_option, correct)

    attempts = storage.get_quiz_attempts(quiz.id)
    was_completed = quiz.completed
    quiz.score = sum(1 for attempt in attempts if attempt.correct)
    quiz.completed = len(attempts) >= quiz.total_questions

    if quiz.completed and not was_completed:
        apply_completion_rewards(storage, user, quiz, today)

    storage.commit()

    return {
        "correct": correct,
        "explanation": question.explanation,
        "completed": quiz.completed,
        "score": quiz.score,
    }
