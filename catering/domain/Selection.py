"""Selection state for the currently viewed package and the structured toggle outcomes."""
from __future__ import annotations
from typing import Dict, Set


class SelectionRejected:
    """Refused toggle: the category already holds `limit` selected dishes.

    Returned to the caller, never raised.
    """

    accepted = False

    def __init__(self, category: str, limit: int, dish_id: str = ""):
        self.category = category
        self.limit = limit
        self.dish_id = dish_id

    @property
    def message(self) -> str:
        noun = "dish" if self.limit == 1 else "dishes"
        return f"You can only select {self.limit} {noun} from {self.category}"

    def __eq__(self, other):
        if not isinstance(other, SelectionRejected):
            return NotImplemented
        return (self.category, self.limit) == (other.category, other.limit)

    def __repr__(self) -> str:
        return f"SelectionRejected(category={self.category!r}, limit={self.limit})"

    def to_dict(self):
        return {"category": self.category, "limit": self.limit, "dish_id": self.dish_id,
                "message": self.message}


class SelectionAccepted:
    accepted = True

    def __init__(self, dish_id: str, selected: bool):
        self.dish_id = dish_id
        self.selected = selected

    def __repr__(self) -> str:
        return f"SelectionAccepted(dish_id={self.dish_id!r}, selected={self.selected})"

    def to_dict(self):
        return {"dish_id": self.dish_id, "selected": self.selected}


class SelectionState:
    """Ephemeral set of selected dish ids plus running per-category counts."""

    def __init__(self):
        self._selected: Set[str] = set()
        self._order: list = []
        self.counts: Dict[str, int] = {}

    def __contains__(self, dish_id: str) -> bool:
        return dish_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def selected(self) -> tuple:
        """Selected ids in the order they were picked."""
        return tuple(self._order)

    def add(self, dish_id: str, category_key: str) -> None:
        if dish_id in self._selected:
            return
        self._selected.add(dish_id)
        self._order.append(dish_id)
        self.counts[category_key] = self.counts.get(category_key, 0) + 1

    def remove(self, dish_id: str, category_key: str) -> None:
        if dish_id not in self._selected:
            return
        self._selected.discard(dish_id)
        self._order.remove(dish_id)
        self.counts[category_key] = max(0, self.counts.get(category_key, 0) - 1)

    def count(self, category_key: str) -> int:
        return self.counts.get(category_key, 0)
