import uuid

from sqlalchemy import (
    Column, String, Integer, Boolean, Text, Date, DateTime, JSON, ForeignKey, UniqueConstraint,
)
from sqlalchemy.sql import func
from database import Base


def new_id():
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True)
    first_name = Column(String)
    last_name = Column(String)
    profile_image_url = Column(String)
    password_hash = Column(String)

    role = Column(String, nullable=False, default="learner")
    skill_level = Column(String, default="beginner")
    topics = Column(JSON, default=list)

    points = Column(Integer, nullable=False, default=0)
    streak = Column(Integer, nullable=False, default=0)
    last_quiz_date = Column(Date)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_admin(self):
        return self.role == "admin"


class Topic(Base):
    __tablename__ = "topics"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text)

    created_at = Column(DateTime, server_default=func.now())


class ContentItem(Base):
    __tablename__ = "content_items"

    id = Column(String, primary_key=True, default=new_id)
    # 'lesson' or 'question'
    type = Column(String, nullable=False, index=True)
    topic_id = Column(String, ForeignKey("topics.id"), index=True)
    difficulty = Column(String, nullable=False, default="beginner")

    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    code_snippet = Column(Text)
    explanation = Column(Text)

    # questions only: option strings and the letter of the right one
    options = Column(JSON)
    correct_answer = Column(String)

    tags = Column(JSON, default=list)
    source = Column(String, default="admin")
    reviewed = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_quizzes_user_date"),)

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    date = Column(Date, nullable=False)

    questions = Column(JSON, nullable=False)
    score = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=6)
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())


class Attempt(Base):
    __tablename__ = "attempts"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"))
    question_id = Column(String, ForeignKey("content_items.id"))
    quiz_id = Column(String, ForeignKey("quizzes.id"), index=True)

    selected_option = Column(String)
    correct = Column(Boolean, nullable=False)

    created_at = Column(DateTime, server_default=func.now())


class Badge(Base):
    __tablename__ = "badges"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text)
    criteria = Column(Text)
    icon = Column(String, default="🏆")

    created_at = Column(DateTime, server_default=func.now())


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    badge_id = Column(String, ForeignKey("badges.id"))

    earned_at = Column(DateTime, server_default=func.now())


class Leaderboard(Base):
    __tablename__ = "leaderboards"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"))
    # 'weekly' or 'monthly'
    period = Column(String, nullable=False, index=True)
    points = Column(Integer, nullable=False)
    rank = Column(Integer)
    period_start = Column(Date, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
