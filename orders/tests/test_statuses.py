from types import SimpleNamespace

from django.test import SimpleTestCase

from orders.statuses import (
    STATUS_PRIORITY,
    StatusLabel,
    resolve_main_status,
    status_icon,
    status_label,
)


class ResolveMainStatusTests(SimpleTestCase):
    def test_empty_set_falls_back_to_enquiry(self) -> None:
        self.assertEqual(resolve_main_status([]), "ENQUIRY")

    def test_highest_priority_label_wins(self) -> None:
        result = resolve_main_status(["ENQUIRY", "IN_PRODUCTION", "PAYMENT_RECEIVED"])

        self.assertEqual(result, "IN_PRODUCTION")

    def test_cancelled_beats_everything(self) -> None:
        result = resolve_main_status(["DELIVERED", "CANCELLED", "IN_DESIGN"])

        self.assertEqual(result, "CANCELLED")

    def test_on_hold_ranks_below_enquiry(self) -> None:
        self.assertEqual(resolve_main_status(["ON_HOLD", "ENQUIRY"]), "ENQUIRY")
        self.assertEqual(resolve_main_status(["ON_HOLD"]), "ON_HOLD")

    def test_unprioritized_labels_use_input_order(self) -> None:
        result = resolve_main_status(["PAYMENT_PENDING", "MATERIALS_ORDERED"])

        self.assertEqual(result, "PAYMENT_PENDING")

    def test_inactive_rows_are_ignored(self) -> None:
        rows = [
            SimpleNamespace(status="DELIVERED", is_active=False),
            SimpleNamespace(status="QUOTE_SENT", is_active=True),
        ]

        self.assertEqual(resolve_main_status(rows), "QUOTE_SENT")

    def test_serialized_status_dicts_are_accepted(self) -> None:
        statuses = [
            {"status": "IN_DESIGN", "isActive": True},
            {"status": "CANCELLED", "isActive": False},
        ]

        self.assertEqual(resolve_main_status(statuses), "IN_DESIGN")

    def test_result_is_always_a_member_of_the_input(self) -> None:
        for label in StatusLabel.values:
            with self.subTest(label=label):
                self.assertIn(resolve_main_status([label, "PAYMENT_PENDING"]), {label, "PAYMENT_PENDING"})

    def test_priority_order_is_fixed(self) -> None:
        self.assertEqual(
            list(STATUS_PRIORITY),
            [
                "CANCELLED", "DELIVERED", "OUT_FOR_DELIVERY", "READY_FOR_DELIVERY",
                "IN_PRODUCTION", "QUALITY_CHECK", "PAYMENT_RECEIVED", "MATERIALS_IN_STOCK",
                "DESIGN_APPROVED", "IN_DESIGN", "DESIGN_PROOFING", "DESIGN_BRIEF",
                "QUOTE_APPROVED", "QUOTE_SENT", "ENQUIRY", "ON_HOLD",
            ],
        )


class StatusDisplayTests(SimpleTestCase):
    def test_known_label_and_icon(self) -> None:
        self.assertEqual(status_label("MATERIALS_IN_STOCK"), "Stock in Hand")
        self.assertEqual(status_icon("OUT_FOR_DELIVERY"), "🚚")

    def test_unknown_status_passes_through(self) -> None:
        self.assertEqual(status_label("SOMETHING_ELSE"), "SOMETHING_ELSE")
        self.assertEqual(status_icon("SOMETHING_ELSE"), "📋")
