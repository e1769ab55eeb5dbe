from django.test import TestCase, override_settings
from django.urls import reverse

from orders.access import SESSION_KEY
from orders.services.order_service import create_order


@override_settings(PRINTTRACK_ACCESS_PASSWORD="letmein")
class AccessGateTests(TestCase):
    def test_locked_page_redirects_to_gate(self):
        response = self.client.get(reverse("order-list"))

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response["Location"].startswith(reverse("access-gate")))
        self.assertIn("next=%2Forders%2F", response["Location"])

    def test_gate_page_renders(self):
        response = self.client.get(reverse("access-gate"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "PrintTrack Access")

    def test_wrong_password_is_rejected(self):
        response = self.client.post(reverse("access-gate"), {"password": "nope"})

        self.assertEqual(response.status_code, 401)
        self.assertContains(response, "Incorrect password", status_code=401)
        self.assertNotIn(SESSION_KEY, self.client.session)

    def test_correct_password_unlocks_and_follows_next(self):
        response = self.client.post(
            reverse("access-gate"), {"password": "letmein", "next": reverse("order-list")}
        )

        self.assertRedirects(response, reverse("order-list"))
        self.assertTrue(self.client.session[SESSION_KEY])

    def test_external_next_url_is_ignored(self):
        response = self.client.post(
            reverse("access-gate"), {"password": "letmein", "next": "https://evil.example/"}
        )

        self.assertRedirects(response, reverse("dashboard"))

    def test_leaving_locks_the_session(self):
        self.client.post(reverse("access-gate"), {"password": "letmein"})

        self.client.get(reverse("access-leave"))

        self.assertEqual(self.client.get(reverse("dashboard")).status_code, 302)

    def test_api_stays_open_unless_gated(self):
        self.assertEqual(self.client.get(reverse("orders-api")).status_code, 200)


@override_settings(PRINTTRACK_ACCESS_PASSWORD="")
class PageRenderTests(TestCase):
    def setUp(self):
        self.order = create_order(
            customer={"name": "Aoife Walsh", "email": "aoife@example.ie"},
            fields={"title": "Wedding invitations", "priority": "URGENT", "due_date": "2026-10-20"},
            products=[{"name": "Invitations", "quantity": 80, "price": "1.25"}],
        )

    def test_dashboard_shows_figures_and_calendar(self):
        response = self.client.get(reverse("dashboard"), {"month": "2026-10", "date": "2026-10-20"})

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Create New Job")
        self.assertContains(response, 'id="stat-total"')
        self.assertEqual(response.context["month_param"], "2026-10")
        self.assertEqual(response.context["prev_month_param"], "2026-09")
        self.assertEqual(
            [order.pk for order in response.context["selected_orders"]], [self.order.pk]
        )

    def test_dashboard_ignores_malformed_month(self):
        response = self.client.get(reverse("dashboard"), {"month": "garbage", "date": "nope"})

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.context["selected_day"])

    def test_order_list_filter_tabs(self):
        response = self.client.get(reverse("order-list"), {"filter": "urgent"})

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Wedding invitations")
        self.assertEqual(response.context["current_filter"], "urgent")

    def test_empty_filter_shows_placeholder(self):
        response = self.client.get(reverse("order-list"), {"filter": "completed"})

        self.assertContains(response, "No completed orders")

    def test_detail_and_edit_pages(self):
        detail = self.client.get(reverse("order-detail", args=[self.order.pk]))
        edit = self.client.get(reverse("order-edit", args=[self.order.pk]))

        self.assertContains(detail, self.order.order_number)
        self.assertContains(edit, 'id="order-data"')

    def test_add_page_lists_catalog(self):
        response = self.client.get(reverse("order-add"))

        self.assertContains(response, "Create New Job")

    def test_missing_order_page_is_404(self):
        self.assertEqual(self.client.get(reverse("order-detail", args=[9999])).status_code, 404)
        self.assertEqual(self.client.get(reverse("order-edit", args=[9999])).status_code, 404)
