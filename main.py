import os
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

import auth
import quiz as quiz_service
from database import engine, get_db, init_database
from models import User
from schemas import (
    AnalyticsOut, AnswerSubmit, BadgeCreate, BadgeOut, ContentItemCreate, ContentItemOut,
    ContentItemUpdate, ContentType, LeaderboardEntryCreate, LeaderboardEntryOut, LeaderboardPeriod,
    LoginRequest, MessageOut, QuizOut, SubmitResult, TodayQuizOut, TopicCreate, TopicOut,
    UserBadgeOut, UserOut,
)
from storage import DatabaseStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

APP_VERSION = "1.0.0"
DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]


def today() -> date:
    return date.today()


def get_storage(db: Session = Depends(get_db)) -> DatabaseStorage:
    return DatabaseStorage(db)


# ========== LIFECYCLE ==========
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Daily Dev Quiz API...")
    if auth.SESSION_SECRET == auth.DEFAULT_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set, using the development default")
    init_database()
    yield
    logger.info("Shutting down Daily Dev Quiz API...")
    engine.dispose()


app = FastAPI(
    title="Daily Dev Quiz API",
    description="Daily microlearning quizzes with points, streaks, badges and leaderboards",
    version=APP_VERSION,
    lifespan=lifespan
)

# ========== MIDDLEWARE ==========
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=auth.SESSION_SECRET, same_site="lax")


# ========== ERRORS ==========
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"message": "Internal server error"}, status_code=500)


def create_unique(storage: DatabaseStorage, what: str, create):
    try:
        created = create()
        storage.commit()
        return created
    except IntegrityError:
        storage.db.rollback()
        raise HTTPException(409, f"{what} with this name already exists")


# ========== API ENDPOINTS ==========

@app.get("/")
async def root():
    return {
        "message": "Daily Dev Quiz API",
        "version": APP_VERSION,
    }


# ========== AUTHENTICATION ==========
@app.post("/api/auth/login", response_model=UserOut)
def login_user(payload: LoginRequest, request: Request, storage: DatabaseStorage = Depends(get_storage)):
    user = auth.login(
        storage,
        payload.email,
        payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        profile_image_url=payload.profile_image_url,
    )
    auth.start_session(request, user)
    return user


@app.post("/api/auth/logout", response_model=MessageOut)
def logout_user(request: Request):
    auth.end_session(request)
    return {"message": "Logged out"}


@app.get("/api/auth/user", response_model=UserOut)
def get_auth_user(user: User = Depends(auth.get_current_user)):
    return user


# ========== TOPICS ==========
@app.get("/api/topics", response_model=List[TopicOut])
def list_topics(storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_topics()


@app.post("/api/topics", response_model=TopicOut)
def create_topic(payload: TopicCreate, admin: User = Depends(auth.require_admin),
                 storage: DatabaseStorage = Depends(get_storage)):
    topic = create_unique(storage, "Topic", lambda: storage.create_topic(payload.name, payload.description))
    logger.info(f"Admin {admin.id} created topic {topic.name!r}")
    return topic


# ========== CONTENT ==========
@app.get("/api/content", response_model=List[ContentItemOut])
def list_content(topic_id: Optional[str] = Query(None, alias="topicId"),
                 type: Optional[ContentType] = Query(None),
                 storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_content_items(topic_id, type.value if type else None)


@app.post("/api/content", response_model=ContentItemOut)
def create_content(payload: ContentItemCreate, admin: User = Depends(auth.require_admin),
                   storage: DatabaseStorage = Depends(get_storage)):
    if payload.topic_id and storage.get_topic(payload.topic_id) is None:
        raise HTTPException(404, "Topic not found")

    item = storage.create_content_item(**payload.model_dump(mode="json"))
    storage.commit()
    logger.info(f"Admin {admin.id} created {item.type} {item.id}")
    return item


@app.put("/api/content/{item_id}", response_model=ContentItemOut)
def update_content(item_id: str, payload: ContentItemUpdate, admin: User = Depends(auth.require_admin),
                   storage: DatabaseStorage = Depends(get_storage)):
    updates = payload.model_dump(mode="json", exclude_unset=True)
    if updates.get("topic_id") and storage.get_topic(updates["topic_id"]) is None:
        raise HTTPException(404, "Topic not found")

    item = storage.update_content_item(item_id, updates)
    if item is None:
        raise HTTPException(404, "Content not found")

    storage.commit()
    logger.info(f"Admin {admin.id} updated content {item_id}: {sorted(updates)}")
    return item


@app.delete("/api/content/{item_id}", response_model=MessageOut)
def delete_content(item_id: str, admin: User = Depends(auth.require_admin),
                   storage: DatabaseStorage = Depends(get_storage)):
    try:
        deleted = storage.delete_content_item(item_id)
        storage.commit()
    except IntegrityError:
        storage.db.rollback()
        raise HTTPException(409, "Content is referenced by quiz attempts")

    if not deleted:
        raise HTTPException(404, "Content not found")

    logger.info(f"Admin {admin.id} deleted content {item_id}")
    return {"message": "Content deleted successfully"}


# ========== QUIZ ==========
@app.get("/api/quiz/today", response_model=TodayQuizOut)
def get_today_quiz(user: User = Depends(auth.get_current_user),
                   storage: DatabaseStorage = Depends(get_storage)):
    quiz = quiz_service.get_or_create_today_quiz(storage, user, today())
    question_data = quiz_service.load_question_data(storage, quiz)
    return TodayQuizOut(
        **QuizOut.model_validate(quiz).model_dump(),
        question_data=[ContentItemOut.model_validate(item) for item in question_data],
    )


@app.post("/api/quiz/{quiz_id}/submit", response_model=SubmitResult)
def submit_quiz_answer(quiz_id: str, payload: AnswerSubmit, user: User = Depends(auth.get_current_user),
                       storage: DatabaseStorage = Depends(get_storage)):
    return quiz_service.submit_answer(
        storage, user, quiz_id, payload.question_id, payload.selected_option, today()
    )


@app.get("/api/quiz/history", response_model=List[QuizOut])
def get_quiz_history(user: User = Depends(auth.get_current_user),
                     storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_user_quiz_history(user.id)


# ========== LESSONS ==========
@app.get("/api/lesson/today", response_model=ContentItemOut)
def get_today_lesson(user: User = Depends(auth.get_current_user),
                     storage: DatabaseStorage = Depends(get_storage)):
    lesson = storage.get_today_lesson(user.id)
    if lesson is None:
        raise HTTPException(404, "No lesson available")
    return lesson


# ========== BADGES ==========
@app.get("/api/badges", response_model=List[BadgeOut])
def list_badges(storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_badges()


@app.post("/api/badges", response_model=BadgeOut)
def create_badge(payload: BadgeCreate, admin: User = Depends(auth.require_admin),
                 storage: DatabaseStorage = Depends(get_storage)):
    badge = create_unique(
        storage, "Badge",
        lambda: storage.create_badge(payload.name, payload.description, payload.criteria, payload.icon),
    )
    logger.info(f"Admin {admin.id} created badge {badge.name!r}")
    return badge


@app.get("/api/user/badges", response_model=List[UserBadgeOut])
def list_user_badges(user: User = Depends(auth.get_current_user),
                     storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_user_badges(user.id)


# ========== LEADERBOARD ==========
def parse_limit(raw: Optional[str], default: int = DEFAULT_LEADERBOARD_LIMIT) -> int:
    """Lenient limit: missing, non-numeric or non-positive values fall back to the default"""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return default
    if limit < 1:
        return default
    return min(limit, MAX_LEADERBOARD_LIMIT)


@app.get("/api/leaderboard/{period}", response_model=List[LeaderboardEntryOut])
def get_leaderboard(period: LeaderboardPeriod, limit: Optional[str] = Query(None),
                    storage: DatabaseStorage = Depends(get_storage)):
    return storage.get_leaderboard(period.value, parse_limit(limit))


# ========== ADMIN ==========
@app.get("/api/admin/analytics", response_model=AnalyticsOut)
def get_admin_analytics(admin: User = Depends(auth.require_admin)):
    # placeholder figures until real aggregates are wired in
    return AnalyticsOut(
        total_users=150,
        daily_active_users=45,
        quiz_completion_rate=78,
        average_score=4.2,
    )


@app.post("/api/admin/users/{user_id}/badges/{badge_id}", response_model=UserBadgeOut)
def award_user_badge(user_id: str, badge_id: str, admin: User = Depends(auth.require_admin),
                     storage: DatabaseStorage = Depends(get_storage)):
    if storage.get_user(user_id) is None:
        raise HTTPException(404, "User not found")
    if storage.get_badge(badge_id) is None:
        raise HTTPException(404, "Badge not found")

    user_badge = storage.award_badge(user_id, badge_id)
    storage.commit()
    logger.info(f"Admin {admin.id} awarded badge {badge_id} to user {user_id}")
    return user_badge


@app.post("/api/admin/leaderboard", response_model=LeaderboardEntryOut)
def add_leaderboard_entry(payload: LeaderboardEntryCreate, admin: User = Depends(auth.require_admin),
                          storage: DatabaseStorage = Depends(get_storage)):
    if storage.get_user(payload.user_id) is None:
        raise HTTPException(404, "User not found")

    entry = storage.add_leaderboard_entry(
        payload.user_id, payload.period.value, payload.points, payload.period_start, payload.rank
    )
    storage.commit()
    return entry


# ========== HEALTH ==========
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    services = {"database": "unknown"}

    try:
        db.execute(text("SELECT 1"))
        services["database"] = "healthy"
    except Exception as e:
        logger.error(f"Health check database query failed: {e}")
        services["database"] = "unhealthy"

    return {
        "status": "healthy" if all(s != "unhealthy" for s in services.values()) else "degraded",
        "timestamp": datetime.now().isoformat(),
        "services": services,
        "version": APP_VERSION,
    }


# ========== SERVER ==========
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
        log_level="info"
    )
