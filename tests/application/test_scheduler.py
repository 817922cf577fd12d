"""Tests for the review state machine."""

import itertools
from datetime import timedelta

import pytest

from kioku.application.scheduler import (
    LearningPhase,
    advance,
    apply_review,
    classify,
    initial_ease_factor,
    is_success,
    new_item,
    next_review_time,
    quality_label,
)
from kioku.domain.constants import MAX_INTERVAL, MIN_EASE_FACTOR, ONE_MINUTE, TEN_MINUTES
from kioku.domain.errors import InvalidRating
from kioku.domain.models import Quality, SchedulableItem


def make_item(now, **kwargs) -> SchedulableItem:
    return SchedulableItem(id="c1", next_review_at=now, **kwargs)


class TestAdvance:
    """Single transitions of `advance`."""

    def test_new_item_good_advances_to_step_one(self):
        result = advance(4, repetition=0, ease_factor=2.5, interval=0)

        assert result.interval == pytest.approx(10 / 1440)
        assert result.repetition == 0
        assert result.ease_factor == pytest.approx(2.5)

    def test_step_one_easy_graduates_directly(self):
        result = advance(5, repetition=0, ease_factor=2.5, interval=10 / 1440)

        assert result.interval == 4
        assert result.repetition == 1

    def test_young_good_uses_ease_with_floor(self):
        result = advance(4, repetition=1, ease_factor=2.5, interval=4)

        assert result.ease_factor == pytest.approx(2.5)
        assert result.interval == 10
        assert result.repetition == 2

    def test_young_good_floor_of_four_days(self):
        result = advance(4, repetition=1, ease_factor=1.3, interval=1)
        assert result.interval == 4

    def test_young_easy_bonus(self):
        # 4 * 2.6 * 3 = 31.2
        result = advance(5, repetition=1, ease_factor=2.5, interval=4)
        assert result.interval == 31
        assert result.ease_factor == pytest.approx(2.6)

    def test_young_hard_holds_interval(self):
        result = advance(3, repetition=1, ease_factor=2.5, interval=4)

        assert result.interval == 4
        assert result.repetition == 2
        assert result.ease_factor == pytest.approx(2.36)

    def test_step_zero_branches(self):
        assert advance(3, 0, 2.5, 0).interval == ONE_MINUTE
        assert advance(3, 0, 2.5, 0).repetition == 0
        assert advance(4, 0, 2.5, ONE_MINUTE).interval == TEN_MINUTES
        easy = advance(5, 0, 2.5, ONE_MINUTE)
        assert (easy.interval, easy.repetition) == (4, 1)

    def test_step_one_branches(self):
        hard = advance(3, 0, 2.5, TEN_MINUTES)
        assert (hard.interval, hard.repetition) == (TEN_MINUTES, 0)
        good = advance(4, 0, 2.5, TEN_MINUTES)
        assert (good.interval, good.repetition) == (1, 1)

    def test_zero_repetition_with_day_interval_is_still_learning(self):
        result = advance(4, repetition=0, ease_factor=2.5, interval=3)
        assert (result.interval, result.repetition) == (1, 1)

    def test_mature_branches(self):
        assert advance(3, 2, 2.5, 10).interval == 12
        assert advance(4, 2, 2.5, 10).interval == 25
        # 10 * 2.6 * 1.3 = 33.8
        assert advance(5, 2, 2.5, 10).interval == 34
        assert advance(4, 5, 2.5, 10).repetition == 6

    def test_rounding_is_half_up(self):
        # 5 * 2.5 = 12.5; banker's rounding would give 12
        assert advance(4, 3, 2.5, 5).interval == 13

    def test_again_resets(self):
        result = advance(1, repetition=5, ease_factor=2.5, interval=30)

        assert result.interval == ONE_MINUTE
        assert result.repetition == 0
        assert result.ease_factor == pytest.approx(2.3)

    def test_blackout_is_treated_as_again(self):
        assert advance(0, 5, 2.5, 30) == advance(1, 5, 2.5, 30)

    def test_hard_fail_softer_reset(self):
        result = advance(2, repetition=3, ease_factor=2.5, interval=20)

        assert result.interval == TEN_MINUTES
        assert result.repetition == 0
        assert result.ease_factor == pytest.approx(2.4)

    def test_ease_never_below_floor(self):
        assert advance(1, 3, 1.35, 10).ease_factor == MIN_EASE_FACTOR
        assert advance(2, 3, 1.3, 10).ease_factor == MIN_EASE_FACTOR
        assert advance(3, 3, 1.3, 10).ease_factor == MIN_EASE_FACTOR

    @pytest.mark.parametrize("quality", [-1, 6, 10, True, 3.0, "4", None])
    def test_invalid_rating(self, quality):
        with pytest.raises(InvalidRating) as exc:
            advance(quality, 0, 2.5, 0)
        assert exc.value.quality == quality

    def test_quality_enum_accepted(self):
        assert advance(Quality.GOOD, 2, 2.5, 10).interval == 25


class TestApplyReview:
    """Lapse bookkeeping and due-time conversion around `advance`."""

    def test_lapse_and_recovery(self, now):
        mature = make_item(now, interval=10, repetition=3, ease_factor=2.5)

        lapsed = apply_review(mature, 1, now)
        assert lapsed.lapse_interval == 10
        assert lapsed.interval == ONE_MINUTE
        assert lapsed.repetition == 0
        assert lapsed.ease_factor == pytest.approx(2.3)
        assert lapsed.next_review_at == now + timedelta(minutes=1)

        later = now + timedelta(minutes=2)
        recovered = apply_review(lapsed, 5, later)
        assert recovered.interval == 5  # max(4, round(10 * 0.5))
        assert recovered.repetition == 1
        assert recovered.lapse_interval is None
        assert recovered.next_review_at == later + timedelta(days=5)

    def test_lapse_kept_while_relearning(self, now):
        lapsed = apply_review(make_item(now, interval=30, repetition=4), 1, now)
        still_learning = apply_review(lapsed, 3, now)

        assert still_learning.lapse_interval == 30
        assert still_learning.interval == ONE_MINUTE

    def test_young_lapse_recovers_on_good_graduation(self, now):
        young = make_item(now, interval=4, repetition=1)

        lapsed = apply_review(young, 2, now)
        assert lapsed.lapse_interval == 4
        assert lapsed.interval == TEN_MINUTES

        recovered = apply_review(lapsed, 4, now)
        assert recovered.interval == 2  # max(1 day, round(4 * 0.5))
        assert recovered.lapse_interval is None

    def test_recovery_never_lowers_graduation(self, now):
        lapsed = apply_review(make_item(now, interval=2, repetition=2), 1, now)
        recovered = apply_review(lapsed, 5, now)
        assert recovered.interval == 4

    def test_learning_failure_records_no_lapse(self, now):
        learning = make_item(now, interval=TEN_MINUTES, repetition=0)
        assert apply_review(learning, 1, now).lapse_interval is None

    def test_sub_day_interval_becomes_minutes(self, now):
        item = apply_review(make_item(now), 4, now)
        assert item.next_review_at == now + timedelta(minutes=10)

    def test_returns_new_value(self, now):
        item = make_item(now)
        updated = apply_review(item, 5, now)

        assert item.interval == 0
        assert updated is not item
        assert updated.id == item.id

    def test_invalid_rating_leaves_item_alone(self, now):
        with pytest.raises(InvalidRating):
            apply_review(make_item(now), 9, now)


def test_next_review_time_whole_days(now):
    assert next_review_time(4, now) == now + timedelta(days=4)
    assert next_review_time(2.7, now) == now + timedelta(days=2)
    assert next_review_time(TEN_MINUTES, now) == now + timedelta(minutes=10)


def test_invariants_hold_for_every_answer_sequence(now):
    """Every reachable state keeps ease >= 1.3 and interval >= 1 minute."""
    start = new_item("c1", now)

    for answers in itertools.product(range(6), repeat=4):
        item = start
        reviewed_at = now
        for quality in answers:
            item = apply_review(item, quality, reviewed_at)

            assert item.ease_factor >= MIN_EASE_FACTOR
            assert item.interval >= ONE_MINUTE
            assert item.repetition >= 0
            assert item.next_review_at > reviewed_at

            reviewed_at = item.next_review_at


@pytest.mark.parametrize("repetition", [2, 3, 8])
@pytest.mark.parametrize("interval", [1, 2, 5, 13, 90, 400])
@pytest.mark.parametrize("ease", [1.3, 1.7, 2.5, 3.1])
def test_mature_good_or_easy_never_shrinks_interval(repetition, interval, ease):
    for quality in (Quality.GOOD, Quality.EASY):
        assert advance(quality, repetition, ease, interval).interval > interval


def test_repeated_easy_answers_stay_within_max_interval(now):
    item = new_item("c1", now)

    for _ in range(30):
        reviewed_at = item.next_review_at
        item = apply_review(item, Quality.EASY, reviewed_at)

        assert item.interval <= MAX_INTERVAL
        assert item.next_review_at - reviewed_at <= timedelta(days=MAX_INTERVAL)

    assert item.interval == MAX_INTERVAL
    assert item.repetition == 30


def test_interval_past_ceiling_is_held():
    assert advance(Quality.EASY, 5, 2.5, MAX_INTERVAL * 2).interval == MAX_INTERVAL * 2
    assert advance(Quality.GOOD, 5, 2.5, MAX_INTERVAL - 1).interval == MAX_INTERVAL


def test_next_review_time_is_capped(now):
    assert next_review_time(10**9, now) == now + timedelta(days=MAX_INTERVAL)


class TestClassify:
    def test_phases(self):
        assert classify(0, 0) is LearningPhase.LEARNING_STEP_0
        assert classify(0, ONE_MINUTE) is LearningPhase.LEARNING_STEP_0
        assert classify(0, 5 / 1440) is LearningPhase.LEARNING_STEP_1
        assert classify(0, TEN_MINUTES) is LearningPhase.LEARNING_STEP_1
        assert classify(1, 4) is LearningPhase.YOUNG
        assert classify(2, 10) is LearningPhase.MATURE
        assert classify(3, TEN_MINUTES) is LearningPhase.LEARNING_STEP_1


class TestNewItem:
    @pytest.mark.parametrize(
        "rate,expected",
        [(None, 2.5), (95, 2.7), (80, 2.7), (79.9, 2.5), (60, 2.5), (45, 2.3), (39, 2.0), (0, 2.0)],
    )
    def test_initial_ease_factor(self, rate, expected):
        assert initial_ease_factor(rate) == expected

    def test_new_item_is_due_immediately(self, now):
        item = new_item("c9", now, goal_id="boki", subject="tax", correct_rate=85)

        assert item.next_review_at == now
        assert item.interval == 0
        assert item.repetition == 0
        assert item.ease_factor == 2.7
        assert item.goal_id == "boki"


def test_quality_labels_and_success():
    assert quality_label(0) == "Blackout"
    assert quality_label(2) == "Hard-fail"
    assert quality_label(Quality.EASY) == "Easy"
    assert not is_success(2)
    assert is_success(3)
    with pytest.raises(InvalidRating):
        quality_label(7)
