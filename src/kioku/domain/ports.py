"""
Ports (interfaces) for study data storage.

These define the contract that infrastructure adapters must implement.
The scheduling engine never touches them; only the outer layers (CLI,
factory) load and save through a repository.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import Goal, PrioritySignal, ReviewEvent, SchedulableItem


@dataclass
class StudyData:
    """Everything a study session needs, as loaded from storage."""

    goals: list[Goal] = field(default_factory=list)
    items: list[SchedulableItem] = field(default_factory=list)
    signals: list[PrioritySignal] = field(default_factory=list)
    events: list[ReviewEvent] = field(default_factory=list)

    def find_item(self, item_id: str) -> SchedulableItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class StudyRepository(ABC):
    """
    Port for loading and saving study data.

    Implementations:
        - StudyFileRepository: A single YAML or JSON file.
    """

    @abstractmethod
    def load(self) -> StudyData:
        """
        Load goals, items, weak-point signals and review history.

        Returns:
            StudyData; empty when nothing has been stored yet.
        """
        pass

    @abstractmethod
    def save_items(self, items: Iterable[SchedulableItem]) -> None:
        """
        Persist updated items, replacing stored items with the same id.
        """
        pass

    @abstractmethod
    def append_event(self, event: ReviewEvent) -> None:
        """
        Append one review event to the history.
        """
        pass

    @abstractmethod
    def record_review(self, item: SchedulableItem, event: ReviewEvent) -> None:
        """
        Persist a reviewed item together with its history event.

        Either both are stored or neither is.
        """
        pass
