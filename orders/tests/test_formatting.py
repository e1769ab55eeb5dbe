from decimal import Decimal

from django.test import SimpleTestCase

from orders.formatting import (
    calculate_percentage,
    format_euro,
    format_euro_amount,
    format_order_number,
    parse_euro,
    truncate_text,
)
from orders.templatetags.printtrack import euro


class FormatEuroTests(SimpleTestCase):
    def test_thousands_separator_and_two_decimals(self) -> None:
        self.assertEqual(format_euro(Decimal("1234.5")), "€1,234.50")

    def test_rounds_half_up_to_cents(self) -> None:
        self.assertEqual(format_euro("0.125"), "€0.13")

    def test_negative_amounts_put_sign_before_symbol(self) -> None:
        self.assertEqual(format_euro(-3), "-€3.00")

    def test_without_symbol(self) -> None:
        self.assertEqual(format_euro_amount(15), "15.00")

    def test_none_formats_as_zero(self) -> None:
        self.assertEqual(format_euro(None), "€0.00")

    def test_non_finite_amounts_format_as_zero(self) -> None:
        self.assertEqual(format_euro("NaN"), "€0.00")
        self.assertEqual(format_euro(Decimal("Infinity")), "€0.00")
        self.assertEqual(format_euro(float("-inf")), "€0.00")

    def test_euro_filter_survives_nan(self) -> None:
        self.assertEqual(euro("NaN"), "€0.00")


class ParseEuroTests(SimpleTestCase):
    def test_strips_symbol_and_separators(self) -> None:
        self.assertEqual(parse_euro("€1,234.45"), Decimal("1234.45"))

    def test_garbage_parses_to_zero(self) -> None:
        self.assertEqual(parse_euro("n/a"), Decimal("0"))
        self.assertEqual(parse_euro(""), Decimal("0"))


class MiscFormattingTests(SimpleTestCase):
    def test_percentage_of_zero_total(self) -> None:
        self.assertEqual(calculate_percentage(5, 0), 0.0)
        self.assertEqual(calculate_percentage(1, 4), 25.0)

    def test_order_number_padding(self) -> None:
        self.assertEqual(format_order_number(123), "PO000123")
        self.assertEqual(format_order_number(7, prefix="INV", padding=3), "INV007")

    def test_truncate_text(self) -> None:
        self.assertEqual(truncate_text("short", 10), "short")
        self.assertEqual(truncate_text("Business cards for the launch", 14), "Business cards...")
