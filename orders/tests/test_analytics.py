from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from orders.services import analytics


def _order(statuses, priority="NORMAL", total="0", due=None):
    return {
        "statuses": [{"status": label, "isActive": True} for label in statuses],
        "priority": priority,
        "totalPrice": total,
        "dueDate": due,
    }


class FilterTests(SimpleTestCase):
    def setUp(self):
        self.orders = [
            _order(["ENQUIRY"]),
            _order(["IN_PRODUCTION", "PAYMENT_RECEIVED"], priority="URGENT"),
            _order(["DELIVERED"]),
            _order(["CANCELLED"], priority="URGENT"),
        ]

    def test_active_excludes_closed_orders(self):
        active = analytics.filter_orders(self.orders, "active")

        self.assertEqual(
            [analytics.main_status_of(order) for order in active], ["ENQUIRY", "IN_PRODUCTION"]
        )

    def test_counts_per_tab(self):
        self.assertEqual(
            analytics.filter_counts(self.orders),
            {"all": 4, "active": 2, "completed": 1, "cancelled": 1, "urgent": 2},
        )

    def test_unknown_filter_returns_everything(self):
        self.assertEqual(len(analytics.filter_orders(self.orders, "bogus")), 4)


class OrderStatsTests(SimpleTestCase):
    def test_headline_figures(self):
        orders = [
            _order(["QUOTE_SENT"], total="120.50"),
            _order(["IN_DESIGN"], priority="URGENT", total="80"),
            _order(["DELIVERED"], total="15.25"),
            _order(["CANCELLED"], total="0"),
        ]

        stats = analytics.order_stats(orders)

        self.assertEqual(stats["total_orders"], 4)
        self.assertEqual(stats["total_revenue"], Decimal("215.75"))
        self.assertEqual(stats["in_progress"], 1)
        self.assertEqual(stats["completed"], 1)
        self.assertEqual(stats["cancelled"], 1)
        self.assertEqual(stats["urgent"], 1)

    def test_empty_order_list(self):
        stats = analytics.order_stats([])

        self.assertEqual(stats["total_orders"], 0)
        self.assertEqual(stats["total_revenue"], Decimal("0"))

    def test_status_distribution_follows_priority_order(self):
        orders = [_order(["ENQUIRY"]), _order(["CANCELLED"]), _order(["ENQUIRY"]), _order([])]

        rows = analytics.status_distribution(orders)

        self.assertEqual([row["key"] for row in rows], ["CANCELLED", "ENQUIRY"])
        self.assertEqual(rows[1]["count"], 3)
        self.assertEqual(rows[1]["percentage"], 75.0)


class CalendarTests(SimpleTestCase):
    def test_month_grid_starts_on_sunday(self):
        days = analytics.calendar_days(2026, 10)

        self.assertEqual(len(days), 42)
        self.assertEqual(days[0], date(2026, 9, 27))
        self.assertEqual(days[0].weekday(), 6)

    def test_month_starting_on_sunday_has_no_leading_days(self):
        self.assertEqual(analytics.calendar_days(2026, 2)[0], date(2026, 2, 1))

    def test_orders_land_on_their_due_day(self):
        orders = [
            _order(["ENQUIRY"], due="2026-10-05"),
            _order(["ENQUIRY"], due="2026-10-05"),
            _order(["ENQUIRY"], due="2026-10-05"),
            _order(["ENQUIRY"]),
        ]

        weeks = analytics.build_calendar(orders, 2026, 10, today=date(2026, 10, 17))
        days = {cell.day: cell for week in weeks for cell in week}

        self.assertEqual(len(weeks), 6)
        self.assertEqual(days[date(2026, 10, 5)].count, 3)
        self.assertEqual(days[date(2026, 10, 5)].load, "medium")
        self.assertTrue(days[date(2026, 10, 17)].is_today)
        self.assertFalse(days[date(2026, 9, 27)].in_month)

    def test_load_levels(self):
        self.assertEqual(
            [analytics.day_load_level(count) for count in (0, 1, 2, 3, 4, 5)],
            ["none", "low", "low", "medium", "medium", "high"],
        )

    def test_shift_month_wraps_years(self):
        self.assertEqual(analytics.shift_month(2026, 1, -1), (2025, 12))
        self.assertEqual(analytics.shift_month(2026, 12, 1), (2027, 1))
