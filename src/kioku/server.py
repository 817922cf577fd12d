import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from kioku.application.allocator import allocate
from kioku.application.due_filter import due_items
from kioku.application.queue_builder import build_session
from kioku.application.scheduler import apply_review
from kioku.application.schemas import GoalRecord, ItemRecord, SignalRecord
from kioku.consts import VERSION
from kioku.domain.errors import InvalidRating

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("kioku.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"kioku server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("kioku server shutting down...")


app = FastAPI(
    title="kioku",
    description="Stateless spaced-repetition scheduling service.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


def _utc(v: datetime) -> datetime:
    return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class DueRequest(BaseModel):
    items: list[ItemRecord]
    now: datetime

    @field_validator("now", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _utc(v)


@app.post("/due", response_model=list[ItemRecord])
async def list_due(req: DueRequest):
    """Items due at `now`, oldest first."""
    result = due_items([i.to_domain() for i in req.items], req.now)
    return [ItemRecord.from_domain(i) for i in result]


class ReviewRequest(BaseModel):
    item: ItemRecord
    quality: int = Field(ge=0, le=5)
    reviewed_at: datetime

    @field_validator("reviewed_at", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _utc(v)


@app.post("/review", response_model=ItemRecord)
async def review_item(req: ReviewRequest):
    """
    Apply one answer and return the rescheduled item.

    The caller persists the result and records the review event.
    """
    try:
        updated = apply_review(req.item.to_domain(), req.quality, req.reviewed_at)
    except InvalidRating as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ItemRecord.from_domain(updated)


class AllocateRequest(BaseModel):
    goals: list[GoalRecord]
    items: list[ItemRecord] = Field(default_factory=list)
    now: datetime

    @field_validator("now", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _utc(v)


class GoalQuota(BaseModel):
    goal_id: str
    quota: int
    share: float
    days_left: int
    total_items: int
    mastered_items: int
    due_items: int
    remaining_items: int
    mastery_ratio: float


class AllocateResponse(BaseModel):
    total: int
    goals: list[GoalQuota]


@app.post("/allocate", response_model=AllocateResponse)
async def allocate_quotas(req: AllocateRequest):
    """Daily quota per goal."""
    goals = [g.to_domain() for g in req.goals]
    plan = allocate(goals, [i.to_domain() for i in req.items], req.now)

    rows = []
    for goal in goals:
        snap = plan.snapshots[goal.id]
        rows.append(
            GoalQuota(
                goal_id=goal.id,
                quota=plan.quota_for(goal.id),
                share=plan.shares[goal.id],
                days_left=snap.days_left,
                total_items=snap.total_items,
                mastered_items=snap.mastered_items,
                due_items=snap.due_items,
                remaining_items=snap.remaining_items,
                mastery_ratio=snap.mastery_ratio,
            )
        )
    return AllocateResponse(total=plan.total, goals=rows)


class QueueRequest(BaseModel):
    goals: list[GoalRecord] = Field(default_factory=list)
    items: list[ItemRecord]
    # None means the weak-point feed is unavailable
    signals: list[SignalRecord] | None = None
    now: datetime
    limit: int | None = Field(default=None, ge=1)

    @field_validator("now", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _utc(v)


class QueueResponse(BaseModel):
    items: list[ItemRecord]
    quota_total: int


@app.post("/queue", response_model=QueueResponse)
async def build_study_queue(req: QueueRequest):
    """Interleaved, tier-ordered session queue across all goals."""
    signals = [s.to_domain() for s in req.signals] if req.signals is not None else None
    session = build_session(
        [i.to_domain() for i in req.items],
        [g.to_domain() for g in req.goals],
        req.now,
        signals=signals,
        limit=req.limit,
    )
    logger.info(f"Queue requested: {len(session.items)} cards, quota total {session.quota_total}")
    return QueueResponse(
        items=[ItemRecord.from_domain(i) for i in session.items],
        quota_total=session.quota_total,
    )
