"""Stateless pricing and selection endpoints used by the package detail and caterer menu pages."""
from fastapi import APIRouter, HTTPException

from catering.domain.Dish import money_to_json
from catering.domain.errors import ValidationError
from catering.logic.catalog.model import group_items_by_category
from catering.logic.pricing.calculator import quote
from catering.logic.selection.validator import SelectionValidator
from catering.utilities.validators import QuoteInput, SelectionInput, ToggleInput

router = APIRouter(prefix="/api/packages", tags=["packages"])


def _selection_view(validator: SelectionValidator) -> dict:
    categories = []
    for category, items in group_items_by_category(validator.package).items():
        categories.append({
            "category": category.name,
            "selected": validator.selected_count(category),
            "limit": validator.limit(category),
            "available": len(items),
        })
    return {
        "policy": validator.package.policy.value,
        "selected": validator.selected_dish_ids(),
        "categories": categories,
        "warnings": [w.to_dict() for w in validator.warnings],
    }


def _validator(payload: SelectionInput) -> SelectionValidator:
    try:
        return SelectionValidator(payload.package.to_domain(), payload.selected)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/quote")
def quote_price(payload: QuoteInput):
    """Total for a guest count: round(price_per_person * guests) + flat add-ons."""
    try:
        result = quote(payload.basis(), payload.guests, [a.to_domain() for a in payload.add_ons])
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {k: money_to_json(v) for k, v in result.items()}


@router.post("/selection/toggle")
def toggle_dish(payload: ToggleInput):
    validator = _validator(payload)
    try:
        outcome = validator.toggle(payload.dish_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    view = _selection_view(validator)
    view["accepted"] = outcome.accepted
    view["rejected"] = None if outcome.accepted else outcome.to_dict()
    return view


@router.post("/selection/check")
def check_selection(payload: SelectionInput):
    validator = _validator(payload)
    problems = validator.check_complete()
    view = _selection_view(validator)
    view["complete"] = not problems
    view["problems"] = problems
    return view
