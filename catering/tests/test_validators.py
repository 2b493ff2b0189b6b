import unittest
from decimal import Decimal
from catering.domain.CartLine import AddOn
from catering.domain.errors import ValidationError
from catering.utilities.validators import (
    CartLineInput, QuoteInput, parse_cart_line, parse_cart_lines, parse_package, unwrap_envelope, unwrap_list,
)


class TestEnvelopes(unittest.TestCase):

    def test_unwrap_shapes(self):
        self.assertEqual(unwrap_list([1, 2]), [1, 2])
        self.assertEqual(unwrap_list({"data": [1]}), [1])
        self.assertEqual(unwrap_list({"success": True, "data": {"data": [3], "count": 1}}), [3])
        self.assertEqual(unwrap_list(None), [])
        self.assertEqual(unwrap_envelope({"data": {"id": "x"}}), {"id": "x"})

    def test_unsuccessful_envelope_raises(self):
        with self.assertRaises(ValidationError):
            unwrap_envelope({"success": False, "message": "Unauthorized"})
        with self.assertRaises(ValidationError):
            unwrap_list({"data": {"id": "x"}})


class TestPackageParsing(unittest.TestCase):

    def test_policy_spellings(self):
        base = {"id": "p", "people_count": 10, "total_price": 100}
        self.assertEqual(parse_package(dict(base, policy="fixed")).policy.value, "FIXED")
        self.assertEqual(parse_package(dict(base, policy="Customisable")).policy.value, "CUSTOMIZABLE")
        self.assertEqual(parse_package(dict(base, policy="fixed with limits")).policy.value, "FIXED_WITH_LIMITS")
        self.assertEqual(parse_package(base).policy.value, "FIXED")

    def test_invalid_packages(self):
        for raw in ({"id": "p", "total_price": 100},
                    {"id": "p", "people_count": 0},
                    {"id": "p", "people_count": 5, "total_price": -1},
                    {"id": "p", "people_count": 5, "policy": "BUFFET"}):
            with self.assertRaises(ValidationError):
                parse_package(raw)

    def test_selections_without_limit_are_dropped(self):
        package = parse_package({
            "id": "p", "people_count": 10, "policy": "FIXED_WITH_LIMITS",
            "category_selections": [{"category": {"name": "Starters"}, "num_dishes_to_select": None}],
        })
        self.assertEqual(package.category_selections, ())


class TestCartLineParsing(unittest.TestCase):

    def test_storefront_cart_item(self):
        line = parse_cart_line({"success": True, "data": {
            "id": 15,
            "package": {"id": 7, "name": "Majlis Feast", "minimum_people": 50, "total_price": 5000},
            "guests": None,
            "price_at_time": "5040.00",
            "dish_ids": [11, 12],
            "add_ons": [{"add_on": {"id": 99, "name": "Cake", "price": 20}, "quantity": 2}],
            "date": "2026-12-01T18:00:00.000Z",
        }})
        self.assertEqual(line.id, "15")
        self.assertEqual(line.package_id, "7")
        self.assertEqual(line.guests, 50)
        self.assertEqual(line.price_at_time, Decimal("5040"))
        self.assertEqual(line.selected_dish_ids, ("11", "12"))
        self.assertEqual(line.add_ons, [AddOn("99", 20, 2)])
        self.assertEqual(line.event_date, "2026-12-01T18:00:00.000Z")

    def test_line_without_package_is_rejected(self):
        with self.assertRaises(ValidationError):
            parse_cart_line({"id": "x", "guests": 3})
        with self.assertRaises(ValidationError):
            parse_cart_lines({"data": [{"id": "x", "package": {"id": "p"}, "guests": -1}]})


class TestInputs(unittest.TestCase):

    def test_quote_basis(self):
        self.assertEqual(QuoteInput(total_price=5000, people_count=50, guests=1).basis(), Decimal("100"))
        self.assertEqual(QuoteInput(price_per_person="33.335", guests=3).basis(), Decimal("33.335"))
        with self.assertRaises(ValueError):
            QuoteInput(total_price=5000, guests=3)

    def test_cart_line_input_accepts_date_alias(self):
        self.assertEqual(CartLineInput.model_validate({"date": "2026-12-01"}).event_date, "2026-12-01")
        self.assertEqual(CartLineInput(event_date="2026-12-01").event_date, "2026-12-01")


if __name__ == '__main__':
    unittest.main()
