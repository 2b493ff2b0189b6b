"""Selection validator: decides which dish toggles are legal for a package.

Policies:
  FIXED              -> toggles are no-ops; every item dish is always selected.
  CUSTOMIZABLE       -> free toggling, no category constraint.
  FIXED_WITH_LIMITS  -> toggling on is refused once the dish's category holds
                        `num_dishes_to_select` selections; toggling off always works.

A refused toggle returns SelectionRejected and leaves the state untouched.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Union
from catering.domain.Dish import Category
from catering.domain.Package import Package, CustomizationPolicy
from catering.domain.Selection import SelectionAccepted, SelectionRejected, SelectionState
from catering.domain.errors import ConfigurationError, ValidationError
from catering.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from catering.events.event_helpers import publish_limits_missing, publish_selection_rejected
from catering.logic.catalog.model import (
    category_count_key, group_items_by_category, limit_for, limits_configuration_error,
)

logger = logging.getLogger(__name__)

ToggleOutcome = Union[SelectionAccepted, SelectionRejected]


class SelectionValidator:
    def __init__(self, package: Package, selected: Optional[Iterable[str]] = None,
                 event_bus: Optional[EventBus] = None):
        self.package = package
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self.groups = group_items_by_category(package)
        # dish id -> canonical (first-occurrence) category of its group
        self._dish_category: Dict[str, Category] = {}
        for category, items in self.groups.items():
            for item in items:
                self._dish_category[item.dish.id] = category
        self.configuration_error: Optional[ConfigurationError] = limits_configuration_error(package)
        if self.configuration_error is not None:
            logger.warning(str(self.configuration_error))
            publish_limits_missing(package.id, str(self.configuration_error), bus=self._event_bus)
        self.state = SelectionState()
        if package.policy is not CustomizationPolicy.FIXED:
            for dish_id in selected or ():
                category = self.category_of(dish_id)
                key = category_count_key(category)
                limit = self.limit(category)
                if limit is not None and dish_id not in self.state and self.state.count(key) >= limit:
                    logger.info("Dropping preselected dish %s: %s already holds %s", dish_id, category, limit)
                    continue
                self.state.add(dish_id, key)

    # --- Observer helpers -------------------------------------------------
    def set_event_bus(self, bus: EventBus):
        self._event_bus = bus
        return self

    # --- Queries ----------------------------------------------------------
    @property
    def warnings(self) -> List[ConfigurationError]:
        return [self.configuration_error] if self.configuration_error else []

    @property
    def limits_enforced(self) -> bool:
        return (self.package.policy is CustomizationPolicy.FIXED_WITH_LIMITS
                and self.configuration_error is None)

    def category_of(self, dish_id: str) -> Category:
        category = self._dish_category.get(dish_id)
        if category is None:
            raise ValidationError(
                f"Dish '{dish_id}' is not part of package '{self.package.id}' or has no category"
            )
        return category

    def selected_dish_ids(self) -> List[str]:
        """Effective selection: all item dishes for FIXED packages, the toggled set otherwise."""
        if self.package.policy is CustomizationPolicy.FIXED:
            return list(dict.fromkeys(self.package.dish_ids))
        return list(self.state.selected)

    def is_selected(self, dish_id: str) -> bool:
        if self.package.policy is CustomizationPolicy.FIXED:
            return dish_id in self._dish_category
        return dish_id in self.state

    def selected_count(self, category: Category) -> int:
        if self.package.policy is CustomizationPolicy.FIXED:
            group = self._group_for(category)
            return len(self.groups[group]) if group is not None else 0
        group = self._group_for(category)
        if group is None:
            return 0
        return self.state.count(category_count_key(group))

    def limit(self, category: Category) -> Optional[int]:
        if not self.limits_enforced:
            return None
        return limit_for(self.package, category)

    def can_select_more(self, category: Category) -> bool:
        limit = self.limit(category)
        if limit is None:
            return True
        return self.selected_count(category) < limit

    def _group_for(self, category: Category) -> Optional[Category]:
        for group in self.groups:
            if group.matches(category):
                return group
        return None

    # --- Transitions ------------------------------------------------------
    def toggle(self, dish_id: str) -> ToggleOutcome:
        """Flip a dish between Unselected and Selected if the policy allows it."""
        category = self.category_of(dish_id)
        if self.package.policy is CustomizationPolicy.FIXED:
            return SelectionAccepted(dish_id, True)
        key = category_count_key(category)
        if dish_id in self.state:
            self.state.remove(dish_id, key)
            return SelectionAccepted(dish_id, False)
        limit = self.limit(category)
        if limit is not None and self.state.count(key) >= limit:
            rejected = SelectionRejected(category.name, limit, dish_id)
            logger.info("Selection rejected for package %s: %s", self.package.id, rejected.message)
            publish_selection_rejected(self.package.id, dish_id, category.name, limit, bus=self._event_bus)
            return rejected
        self.state.add(dish_id, key)
        return SelectionAccepted(dish_id, True)

    def check_complete(self) -> List[str]:
        """Problems that block add-to-cart; empty list means the selection is complete."""
        policy = self.package.policy
        if policy is CustomizationPolicy.FIXED:
            return []
        problems: List[str] = []
        if self.limits_enforced:
            for selection in self.package.category_selections:
                group = self._group_for(selection.category)
                available = len(self.groups[group]) if group is not None else 0
                count = self.selected_count(selection.category)
                name = selection.category.name
                if count == 0 and available > 0:
                    problems.append(f"Please select at least one dish from {name} category")
                if count > selection.num_dishes_to_select:
                    problems.append(
                        f"You can only select up to {selection.num_dishes_to_select} "
                        f"dish{'' if selection.num_dishes_to_select == 1 else 'es'} from {name} category"
                    )
        elif len(self.state) == 0:
            problems.append("Please select at least one dish")
        return problems
