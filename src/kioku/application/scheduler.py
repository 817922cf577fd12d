"""
Review state machine: SM-2 with Anki-style learning steps.

Intervals below 1 are sub-day fractions:
    1 minute   = 1/1440
    10 minutes = 10/1440

Learning step 0 (1 min) -> step 1 (10 min) -> graduate (1 day, or 4 days on
Easy). Graduated cards grow by their ease factor. A graduated card that
fails remembers its pre-lapse interval and recovers half of it when it
re-graduates.

This is a pure computation module with no I/O. The review instant is always
passed in; nothing here reads the clock.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum

from kioku.domain import constants as c
from kioku.domain.errors import InvalidRating
from kioku.domain.models import Quality, ReviewResult, SchedulableItem

logger = logging.getLogger(__name__)

QUALITY_LABELS = {
    Quality.BLACKOUT: "Blackout",
    Quality.AGAIN: "Again",
    Quality.HARD_FAIL: "Hard-fail",
    Quality.HARD: "Hard",
    Quality.GOOD: "Good",
    Quality.EASY: "Easy",
}


class LearningPhase(Enum):
    LEARNING_STEP_0 = "learning_step_0"
    LEARNING_STEP_1 = "learning_step_1"
    YOUNG = "young"
    MATURE = "mature"


def _round(value: float) -> int:
    """Round half up (2.5 -> 3), unlike Python's banker's rounding."""
    return math.floor(value + 0.5)


def validate_quality(quality: object) -> Quality:
    """
    Coerce a raw rating into a Quality.

    Raises:
        InvalidRating: If the rating is not an integer in [0, 5].
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidRating(quality)
    if not Quality.BLACKOUT <= quality <= Quality.EASY:
        raise InvalidRating(quality)
    return Quality(quality)


def is_success(quality: int) -> bool:
    return validate_quality(quality) >= Quality.HARD


def quality_label(quality: int) -> str:
    return QUALITY_LABELS[validate_quality(quality)]


def classify(repetition: int, interval: float) -> LearningPhase:
    """
    Classify a scheduling state into its learning phase.

    Anything with no graduations or a sub-day interval is still learning.
    """
    if repetition == 0 or interval < 1:
        if interval < c.STEP_ZERO_CUTOFF:
            return LearningPhase.LEARNING_STEP_0
        return LearningPhase.LEARNING_STEP_1
    if repetition == 1:
        return LearningPhase.YOUNG
    return LearningPhase.MATURE


def adjust_ease(ease_factor: float, quality: int) -> float:
    """Classic SM-2 ease adjustment, floored at 1.3."""
    miss = 5 - quality
    return max(c.MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def advance(quality: int, repetition: int, ease_factor: float, interval: float) -> ReviewResult:
    """
    Calculate the next scheduling state for one answer.

    Args:
        quality: Rating 0-5.
        repetition: Consecutive successful graduations so far.
        ease_factor: Current ease factor.
        interval: Current interval in days (fractional when sub-day).

    Returns:
        ReviewResult with the new interval, repetition and ease factor.

    Raises:
        InvalidRating: If quality is outside [0, 5].
    """
    quality = validate_quality(quality)

    if quality < Quality.HARD_FAIL:
        return ReviewResult(
            interval=c.ONE_MINUTE,
            repetition=0,
            ease_factor=max(c.MIN_EASE_FACTOR, ease_factor - c.AGAIN_EASE_PENALTY),
        )

    if quality == Quality.HARD_FAIL:
        return ReviewResult(
            interval=c.TEN_MINUTES,
            repetition=0,
            ease_factor=max(c.MIN_EASE_FACTOR, ease_factor - c.HARD_FAIL_EASE_PENALTY),
        )

    new_ease = adjust_ease(ease_factor, quality)
    phase = classify(repetition, interval)

    new_interval: float
    if phase is LearningPhase.LEARNING_STEP_0:
        if quality == Quality.HARD:
            new_interval, new_repetition = c.ONE_MINUTE, 0
        elif quality == Quality.EASY:
            new_interval, new_repetition = c.EASY_INTERVAL, 1
        else:
            new_interval, new_repetition = c.TEN_MINUTES, 0
    elif phase is LearningPhase.LEARNING_STEP_1:
        if quality == Quality.HARD:
            new_interval, new_repetition = c.TEN_MINUTES, 0
        elif quality == Quality.EASY:
            new_interval, new_repetition = c.EASY_INTERVAL, 1
        else:
            new_interval, new_repetition = c.GRADUATING_INTERVAL, 1
    elif phase is LearningPhase.YOUNG:
        # First review after graduation, e.g. 4d * 2.5 * 3 = 30d on Easy
        if quality == Quality.HARD:
            new_interval = max(1, interval)
        elif quality == Quality.EASY:
            new_interval = max(interval + 1, _round(interval * new_ease * c.YOUNG_EASY_BONUS))
        else:
            new_interval = max(c.YOUNG_GOOD_MIN_INTERVAL, _round(interval * new_ease))
        new_repetition = repetition + 1
    else:
        if quality == Quality.HARD:
            new_interval = max(interval, _round(interval * c.MATURE_HARD_MULTIPLIER))
        elif quality == Quality.EASY:
            new_interval = max(interval + 1, _round(interval * new_ease * c.MATURE_EASY_BONUS))
        else:
            new_interval = max(interval + 1, _round(interval * new_ease))
        new_repetition = repetition + 1

    # Stored intervals already past the ceiling are held, not shrunk
    new_interval = min(new_interval, max(c.MAX_INTERVAL, interval))
    return ReviewResult(interval=new_interval, repetition=new_repetition, ease_factor=new_ease)


def next_review_time(interval: float, reviewed_at: datetime) -> datetime:
    """
    Convert an interval into a concrete due time.

    Sub-day intervals are added as whole minutes; longer ones as whole days,
    capped at MAX_INTERVAL.
    """
    if interval < 1:
        return reviewed_at + timedelta(minutes=_round(interval * c.MINUTES_PER_DAY))
    return reviewed_at + timedelta(days=min(int(interval), c.MAX_INTERVAL))


def apply_review(item: SchedulableItem, quality: int, reviewed_at: datetime) -> SchedulableItem:
    """
    Apply one answer to an item and return the updated item.

    Handles lapse bookkeeping around `advance`: a graduated item that fails
    records its interval, and on re-graduation it gets back at least half of
    that interval instead of restarting from the graduating interval.

    Raises:
        InvalidRating: If quality is outside [0, 5].
    """
    result = advance(quality, item.repetition, item.ease_factor, item.interval)

    new_interval = result.interval
    lapse_interval = item.lapse_interval

    if quality < Quality.HARD and item.interval >= 1 and item.repetition >= 1:
        lapse_interval = item.interval

    if lapse_interval is not None and new_interval >= 1 and result.repetition >= 1:
        recovery = max(1, _round(lapse_interval * c.LAPSE_NEW_INTERVAL_PERCENT))
        new_interval = max(recovery, new_interval)
        lapse_interval = None

    updated = replace(
        item,
        interval=new_interval,
        repetition=result.repetition,
        ease_factor=result.ease_factor,
        lapse_interval=lapse_interval,
        next_review_at=next_review_time(new_interval, reviewed_at),
    )
    logger.debug(
        "Reviewed %s with %s: interval %.4f -> %.4f, repetition %d -> %d",
        item.id,
        quality_label(quality),
        item.interval,
        updated.interval,
        item.repetition,
        updated.repetition,
    )
    return updated


def initial_ease_factor(correct_rate: float | None = None) -> float:
    """
    Starting ease factor from prior difficulty data.

    Args:
        correct_rate: Historical percentage of correct answers, if known.
    """
    if correct_rate is None:
        return c.DEFAULT_EASE_FACTOR
    for threshold, ease in c.INITIAL_EASE_BY_CORRECT_RATE:
        if correct_rate >= threshold:
            return ease
    return c.INITIAL_EASE_FLOOR


def new_item(
    item_id: str,
    now: datetime,
    goal_id: str | None = None,
    subject: str | None = None,
    correct_rate: float | None = None,
) -> SchedulableItem:
    """Create a new item, immediately due."""
    return SchedulableItem(
        id=item_id,
        next_review_at=now,
        goal_id=goal_id,
        subject=subject,
        interval=0.0,
        repetition=0,
        ease_factor=initial_ease_factor(correct_rate),
    )
