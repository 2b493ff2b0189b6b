"""Read-only helpers over a Package: category grouping, per-category limits, listing splits."""
from __future__ import annotations
from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple
from catering.domain.Dish import Category
from catering.domain.Package import Package, PackageItem, CustomizationPolicy
from catering.domain.errors import ConfigurationError

__all__ = [
    "group_items_by_category", "limit_for", "limits_configuration_error",
    "category_count_key", "partition_by_policy",
]


def category_count_key(category: Category) -> str:
    """Stable key for per-category counters: id when known, lowercase name otherwise."""
    return category.id or category.key


def _find_group(groups: "OrderedDict[Category, List[PackageItem]]", category: Category) -> Optional[Category]:
    for existing in groups:
        if existing.matches(category):
            return existing
    return None


def group_items_by_category(package: Package) -> "OrderedDict[Category, List[PackageItem]]":
    """Group package items by dish category in first-occurrence order.

    Categories are joined by id when both sides carry one and by
    case-insensitive name otherwise, so "Starters" and "starters" share a group.
    """
    groups: "OrderedDict[Category, List[PackageItem]]" = OrderedDict()
    for item in package.items:
        key = _find_group(groups, item.category)
        if key is None:
            key = item.category
            groups[key] = []
        groups[key].append(item)
    return groups


def limit_for(package: Package, category: Category) -> Optional[int]:
    """Configured num_dishes_to_select for the category, or None when unlimited."""
    if package.policy is not CustomizationPolicy.FIXED_WITH_LIMITS:
        return None
    # id join first; name matching is the compatibility fallback
    if category.id:
        for selection in package.category_selections:
            if selection.category.id and selection.category.id == category.id:
                return selection.num_dishes_to_select
    for selection in package.category_selections:
        if category.id and selection.category.id:
            continue
        if selection.category.key == category.key:
            return selection.num_dishes_to_select
    return None


def limits_configuration_error(package: Package) -> Optional[ConfigurationError]:
    """Report a FIXED_WITH_LIMITS package that has no CategorySelection rows."""
    if package.policy is CustomizationPolicy.FIXED_WITH_LIMITS and not package.category_selections:
        return ConfigurationError(
            package.id,
            f"Package '{package.name or package.id}' limits selections per category "
            f"but no category limits are configured; selection is unrestricted",
        )
    return None


def partition_by_policy(packages: Iterable[Package]) -> Tuple[List[Package], List[Package]]:
    """Split a caterer listing into (fixed, customizable) packages, order preserved."""
    fixed: List[Package] = []
    customizable: List[Package] = []
    for pkg in packages:
        if pkg.policy is CustomizationPolicy.FIXED:
            fixed.append(pkg)
        else:
            customizable.append(pkg)
    return fixed, customizable
