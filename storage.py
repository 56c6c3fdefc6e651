from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from models import User, Topic, ContentItem, Quiz, Attempt, Badge, UserBadge, Leaderboard


class DatabaseStorage:
    """Data access for one request, bound to that request's session.

    Methods only flush. The caller ends the transaction with commit().
    """

    def __init__(self, db: Session):
        self.db = db

    def commit(self):
        self.db.commit()

    # ========== USERS ==========

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def upsert_user(self, email: str, **fields) -> User:
        user = self.get_user_by_email(email)
        if user is None:
            user = User(email=email, **fields)
            self.db.add(user)
        else:
            for key, value in fields.items():
                if value is not None:
                    setattr(user, key, value)
        self.db.flush()
        return user

    def update_user_points(self, user_id: str, points: int):
        self.db.query(User).filter(User.id == user_id).update(
            {User.points: User.points + points}
        )
        self.db.flush()

    def update_user_streak(self, user_id: str, streak: int, quiz_date: date):
        self.db.query(User).filter(User.id == user_id).update(
            {User.streak: streak, User.last_quiz_date: quiz_date}
        )
        self.db.flush()

    # ========== TOPICS ==========

    def get_topics(self) -> List[Topic]:
        return self.db.query(Topic).order_by(Topic.name).all()

    def create_topic(self, name: str, description: Optional[str] = None) -> Topic:
        topic = Topic(name=name, description=description)
        self.db.add(topic)
        self.db.flush()
        return topic

    def get_topic(self, topic_id: str) -> Optional[Topic]:
        return self.db.get(Topic, topic_id)

    # ========== CONTENT ==========

    def get_content_items(self, topic_id: Optional[str] = None, type: Optional[str] = None) -> List[ContentItem]:
        query = self.db.query(ContentItem)
        if topic_id:
            query = query.filter(ContentItem.topic_id == topic_id)
        if type:
            query = query.filter(ContentItem.type == type)
        return query.order_by(ContentItem.created_at, ContentItem.id).all()

    def get_content_item(self, item_id: str) -> Optional[ContentItem]:
        return self.db.get(ContentItem, item_id)

    def get_content_items_by_ids(self, ids: List[str]) -> List[ContentItem]:
        if not ids:
            return []
        return self.db.query(ContentItem).filter(ContentItem.id.in_(ids)).all()

    def get_question_ids(self) -> List[str]:
        rows = self.db.query(ContentItem.id).filter(ContentItem.type == "question").order_by(ContentItem.id).all()
        return [row.id for row in rows]

    def create_content_item(self, **fields) -> ContentItem:
        item = ContentItem(**fields)
        self.db.add(item)
        self.db.flush()
        return item

    def update_content_item(self, item_id: str, updates: dict) -> Optional[ContentItem]:
        item = self.get_content_item(item_id)
        if item is None:
            return None
        for key, value in updates.items():
            setattr(item, key, value)
        self.db.flush()
        return item

    def delete_content_item(self, item_id: str) -> bool:
        deleted = self.db.query(ContentItem).filter(ContentItem.id == item_id).delete()
        self.db.flush()
        return deleted > 0

    def get_today_lesson(self, user_id: str) -> Optional[ContentItem]:
        # not personalised yet: the first lesson in the catalogue
        return (
            self.db.query(ContentItem)
            .filter(ContentItem.type == "lesson")
            .order_by(ContentItem.created_at, ContentItem.id)
            .first()
        )

    # ========== QUIZZES ==========

    def get_today_quiz(self, user_id: str, today: date) -> Optional[Quiz]:
        return self.db.query(Quiz).filter(Quiz.user_id == user_id, Quiz.date == today).first()

    def get_quiz(self, quiz_id: str, for_update: bool = False) -> Optional[Quiz]:
        query = self.db.query(Quiz).filter(Quiz.id == quiz_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create_quiz(self, user_id: str, quiz_date: date, questions: List[str], total_questions: int) -> Quiz:
        quiz = Quiz(
            user_id=user_id,
            date=quiz_date,
            questions=questions,
            score=0,
            total_questions=total_questions,
            completed=False,
        )
        self.db.add(quiz)
        self.db.flush()
        return quiz

    def get_user_quiz_history(self, user_id: str) -> List[Quiz]:
        return self.db.query(Quiz).filter(Quiz.user_id == user_id).order_by(Quiz.date.desc()).all()

    # ========== ATTEMPTS ==========

    def create_attempt(self, user_id: str, quiz_id: str, question_id: str, selected_option: str, correct: bool) -> Attempt:
        attempt = Attempt(
            user_id=user_id,
            quiz_id=quiz_id,
            question_id=question_id,
            selected_option=selected_option,
            correct=correct,
        )
        self.db.add(attempt)
        self.db.flush()
        return attempt

    def get_quiz_attempts(self, quiz_id: str) -> List[Attempt]:
        return self.db.query(Attempt).filter(Attempt.quiz_id == quiz_id).all()

    # ========== BADGES ==========

    def get_badges(self) -> List[Badge]:
        return self.db.query(Badge).order_by(Badge.name).all()

    def get_badge(self, badge_id: str) -> Optional[Badge]:
        return self.db.get(Badge, badge_id)

    def create_badge(self, name: str, description=None, criteria=None, icon=None) -> Badge:
        badge = Badge(name=name, description=description, criteria=criteria)
        if icon:
            badge.icon = icon
        self.db.add(badge)
        self.db.flush()
        return badge

    def get_user_badges(self, user_id: str) -> List[UserBadge]:
        return self.db.query(UserBadge).filter(UserBadge.user_id == user_id).order_by(UserBadge.earned_at).all()

    def award_badge(self, user_id: str, badge_id: str) -> UserBadge:
        existing = (
            self.db.query(UserBadge)
            .filter(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
            .first()
        )
        if existing:
            return existing
        user_badge = UserBadge(user_id=user_id, badge_id=badge_id)
        self.db.add(user_badge)
        self.db.flush()
        return user_badge

    # ========== LEADERBOARD ==========

    def get_leaderboard(self, period: str, limit: int = 10) -> List[Leaderboard]:
        return (
            self.db.query(Leaderboard)
            .filter(Leaderboard.period == period)
            .order_by(Leaderboard.points.desc())
            .limit(limit)
            .all()
        )

    def add_leaderboard_entry(self, user_id: str, period: str, points: int, period_start: date, rank=None) -> Leaderboard:
        entry = Leaderboard(user_id=user_id, period=period, points=points, rank=rank, period_start=period_start)
        self.db.add(entry)
        self.db.flush()
        return entry
