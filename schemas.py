"""
Request and response models for the Daily Dev Quiz API.

Fields are snake_case in Python and camelCase on the wire
(e.g. correct_answer <-> "correctAnswer").
"""
import datetime as dt
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserRole(str, Enum):
    LEARNER = "learner"
    ADMIN = "admin"


class ContentType(str, Enum):
    LESSON = "lesson"
    QUESTION = "question"


class LeaderboardPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


Difficulty = Literal["beginner", "intermediate", "advanced"]
ContentSource = Literal["admin", "ai", "web"]


# ========== REQUESTS ==========

class LoginRequest(ApiModel):
    email: str = Field(..., pattern=r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_image_url: Optional[str] = None


class TopicCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class ContentItemCreate(ApiModel):
    type: ContentType
    topic_id: Optional[str] = None
    difficulty: Difficulty = "beginner"
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    code_snippet: Optional[str] = None
    explanation: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = Field(None, max_length=10)
    tags: List[str] = Field(default_factory=list)
    source: ContentSource = "admin"
    reviewed: bool = False


class ContentItemUpdate(ApiModel):
    """Partial update; only the fields present in the body are applied"""
    type: Optional[ContentType] = None
    topic_id: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    title: Optional[str] = Field(None, min_length=1)
    body: Optional[str] = Field(None, min_length=1)
    code_snippet: Optional[str] = None
    explanation: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = Field(None, max_length=10)
    tags: Optional[List[str]] = None
    source: Optional[ContentSource] = None
    reviewed: Optional[bool] = None

    @model_validator(mode="after")
    def required_columns_not_null(self):
        for name in ("type", "title", "body", "difficulty"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class BadgeCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    criteria: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=16)


class AnswerSubmit(ApiModel):
    question_id: str = Field(..., min_length=1)
    selected_option: str = Field(..., min_length=1, max_length=10)


class LeaderboardEntryCreate(ApiModel):
    user_id: str
    period: LeaderboardPeriod
    points: int = Field(..., ge=0)
    rank: Optional[int] = Field(None, ge=1)
    period_start: dt.date


# ========== RESPONSES ==========

class UserOut(ApiModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    skill_level: Optional[str] = None
    topics: Optional[List[str]] = None
    points: int
    streak: int
    last_quiz_date: Optional[dt.date] = None
    created_at: Optional[dt.datetime] = None


class TopicOut(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class ContentItemOut(ApiModel):
    id: str
    type: ContentType
    topic_id: Optional[str] = None
    difficulty: str
    title: str
    body: str
    code_snippet: Optional[str] = None
    explanation: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    reviewed: Optional[bool] = None
    created_at: Optional[dt.datetime] = None


class QuizOut(ApiModel):
    id: str
    user_id: str
    date: dt.date
    questions: List[str]
    score: int
    total_questions: int
    completed: bool
    created_at: Optional[dt.datetime] = None


class TodayQuizOut(QuizOut):
    question_data: List[ContentItemOut]


class SubmitResult(ApiModel):
    correct: bool
    explanation: Optional[str] = None
    completed: bool
    score: int


class BadgeOut(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    criteria: Optional[str] = None
    icon: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class UserBadgeOut(ApiModel):
    id: str
    user_id: str
    badge_id: str
    earned_at: Optional[dt.datetime] = None


class LeaderboardEntryOut(ApiModel):
    id: str
    user_id: str
    period: LeaderboardPeriod
    points: int
    rank: Optional[int] = None
    period_start: dt.date
    created_at: Optional[dt.datetime] = None


class AnalyticsOut(ApiModel):
    total_users: int
    daily_active_users: int
    quiz_completion_rate: int
    average_score: float


class MessageOut(ApiModel):
    message: str
