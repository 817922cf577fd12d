"""
Boundary records for study data.

External data (study files, HTTP bodies) is validated here before it becomes
a domain value. Naive datetimes are read as UTC.
"""

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kioku.domain import constants as c
from kioku.domain.models import Goal, PrioritySignal, ReviewEvent, SchedulableItem


def _as_utc(v: Any) -> Any:
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class ItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    next_review_at: datetime
    goal_id: str | None = None
    subject: str | None = None
    interval: float = Field(default=0.0, ge=0)
    repetition: int = Field(default=0, ge=0)
    ease_factor: float = Field(default=c.DEFAULT_EASE_FACTOR, ge=c.MIN_EASE_FACTOR)
    lapse_interval: float | None = Field(default=None, ge=0)

    @field_validator("next_review_at", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def to_domain(self) -> SchedulableItem:
        return SchedulableItem(**self.model_dump())

    @classmethod
    def from_domain(cls, item: SchedulableItem) -> "ItemRecord":
        return cls(
            id=item.id,
            next_review_at=item.next_review_at,
            goal_id=item.goal_id,
            subject=item.subject,
            interval=item.interval,
            repetition=item.repetition,
            ease_factor=item.ease_factor,
            lapse_interval=item.lapse_interval,
        )


class GoalRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    deadline: date
    weight: float = Field(default=c.DEFAULT_GOAL_WEIGHT, gt=0)
    priority_subjects: list[str] = Field(default_factory=list)

    def to_domain(self) -> Goal:
        return Goal(
            id=self.id,
            name=self.name or self.id,
            deadline=self.deadline,
            weight=self.weight,
            priority_subjects=frozenset(self.priority_subjects),
        )

    @classmethod
    def from_domain(cls, goal: Goal) -> "GoalRecord":
        return cls(
            id=goal.id,
            name=goal.name,
            deadline=goal.deadline,
            weight=goal.weight,
            priority_subjects=sorted(goal.priority_subjects),
        )


class SignalRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    goal_name: str
    subject: str
    priority_score: float = Field(ge=0)

    def to_domain(self) -> PrioritySignal:
        return PrioritySignal(
            goal_name=self.goal_name,
            subject=self.subject,
            priority_score=self.priority_score,
        )

    @classmethod
    def from_domain(cls, signal: PrioritySignal) -> "SignalRecord":
        return cls(
            goal_name=signal.goal_name,
            subject=signal.subject,
            priority_score=signal.priority_score,
        )


class ReviewEventRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str
    quality: int = Field(ge=0, le=5)
    reviewed_at: datetime
    goal_id: str | None = None
    subject: str | None = None

    @field_validator("reviewed_at", mode="after")
    @classmethod
    def ensure_tz(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def to_domain(self) -> ReviewEvent:
        return ReviewEvent(**self.model_dump())

    @classmethod
    def from_domain(cls, event: ReviewEvent) -> "ReviewEventRecord":
        return cls(
            item_id=event.item_id,
            quality=event.quality,
            reviewed_at=event.reviewed_at,
            goal_id=event.goal_id,
            subject=event.subject,
        )


class StudyFileRecord(BaseModel):
    """Top-level shape of a study file."""

    model_config = ConfigDict(extra="ignore")

    goals: list[GoalRecord] = Field(default_factory=list)
    items: list[ItemRecord] = Field(default_factory=list)
    signals: list[SignalRecord] = Field(default_factory=list)
    events: list[ReviewEventRecord] = Field(default_factory=list)
