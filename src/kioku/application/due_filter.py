"""Due-set filtering: which items are ready to be shown right now."""

from collections.abc import Iterable
from datetime import datetime

from kioku.domain.models import SchedulableItem


def is_due(item: SchedulableItem, now: datetime) -> bool:
    """Check if an item is due for review at `now`."""
    return item.next_review_at <= now


def due_items(items: Iterable[SchedulableItem], now: datetime) -> list[SchedulableItem]:
    """
    Select the items due at `now`, oldest-overdue first.

    Sorting is stable, so items sharing a due time keep their input order.
    """
    return sorted((item for item in items if is_due(item, now)), key=lambda i: i.next_review_at)
