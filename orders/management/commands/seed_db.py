import random
from datetime import timedelta
from typing import Any, Dict, List

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from faker import Faker

from orders.catalog import PRINTING_PRODUCTS, as_product_payload
from orders.models import Customer, Order, OrderNumberSequence
from orders.services.order_service import cancel_order, create_order, update_order
from orders.statuses import StatusLabel

# Status sets a job typically carries at each stage of its life.
STAGE_STATUSES: List[List[str]] = [
    [StatusLabel.ENQUIRY],
    [StatusLabel.QUOTE_SENT],
    [StatusLabel.QUOTE_APPROVED, StatusLabel.DESIGN_BRIEF],
    [StatusLabel.IN_DESIGN, StatusLabel.PAYMENT_PENDING],
    [StatusLabel.DESIGN_PROOFING, StatusLabel.MATERIALS_ORDERED],
    [StatusLabel.DESIGN_APPROVED, StatusLabel.MATERIALS_IN_STOCK, StatusLabel.PAYMENT_RECEIVED],
    [StatusLabel.IN_PRODUCTION, StatusLabel.PAYMENT_RECEIVED],
    [StatusLabel.QUALITY_CHECK],
    [StatusLabel.READY_FOR_DELIVERY, StatusLabel.PAYMENT_RECEIVED],
    [StatusLabel.OUT_FOR_DELIVERY],
    [StatusLabel.DELIVERED],
    [StatusLabel.ON_HOLD, StatusLabel.PAYMENT_PENDING],
]
CANCEL_RATE = 0.08
PRIORITY_WEIGHTS = {
    Order.Priority.LOW: 2,
    Order.Priority.NORMAL: 6,
    Order.Priority.HIGH: 2,
    Order.Priority.URGENT: 1,
}


class Command(BaseCommand):
    help = "Populate the database with synthetic print jobs, created through the order service."

    DEFAULT_COUNTS = {"customers": 40, "orders": 150}

    def add_arguments(self, parser):
        parser.add_argument(
            "--customers",
            type=int,
            default=self.DEFAULT_COUNTS["customers"],
            help="Size of the customer pool to draw orders from (default: %(default)s).",
        )
        parser.add_argument(
            "--orders",
            type=int,
            default=self.DEFAULT_COUNTS["orders"],
            help="Ensure at least this many orders exist (default: %(default)s).",
        )
        parser.add_argument(
            "--purge",
            action="store_true",
            help="Delete existing orders and customers before seeding.",
        )

    def handle(self, *args, **options):
        faker = Faker()
        customer_target = max(1, options["customers"])
        order_target = max(1, options["orders"])

        with transaction.atomic():
            if options["purge"]:
                self._purge_existing()

            customers = self._customer_pool(faker, customer_target)
            new_orders = self._ensure_orders(faker, customers, order_target)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeding complete: {new_orders} new orders across {len(customers)} customers."
            )
        )

    def _purge_existing(self) -> None:
        self.stdout.write("Purging existing orders and customers...")
        Order.objects.all().delete()
        Customer.objects.all().delete()
        OrderNumberSequence.objects.all().delete()

    def _customer_pool(self, faker: Faker, target: int) -> List[Dict[str, Any]]:
        pool = [
            {
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
                "company": customer.company,
            }
            for customer in Customer.objects.all()[:target]
        ]
        emails = {entry["email"] for entry in pool}
        while len(pool) < target:
            email = faker.unique.email()
            if email in emails:
                continue
            emails.add(email)
            pool.append(
                {
                    "name": faker.name(),
                    "email": email,
                    "phone": faker.phone_number(),
                    "company": faker.company() if random.random() < 0.7 else None,
                }
            )
        faker.unique.clear()
        return pool

    def _random_products(self) -> List[Dict[str, Any]]:
        picks = random.sample(PRINTING_PRODUCTS, k=random.randint(1, 3))
        return [
            as_product_payload(product, quantity=random.choice([1, 50, 100, 250, 500, 1000]))
            for product in picks
        ]

    def _ensure_orders(self, faker: Faker, customers: List[Dict[str, Any]], target: int) -> int:
        if not customers:
            raise CommandError("A customer pool is required before creating orders.")

        current = Order.objects.count()
        to_create = max(0, target - current)
        priorities = list(PRIORITY_WEIGHTS)
        weights = list(PRIORITY_WEIGHTS.values())
        now = timezone.now()

        for _ in range(to_create):
            due_date = None
            if random.random() < 0.85:
                due_date = now + timedelta(days=random.randint(-30, 45))
            order = create_order(
                customer=random.choice(customers),
                fields={
                    "title": faker.catch_phrase(),
                    "description": faker.sentence(nb_words=12),
                    "priority": random.choices(priorities, weights=weights)[0],
                    "due_date": due_date,
                },
                products=self._random_products(),
            )

            stage = random.choice(STAGE_STATUSES)
            if stage != [StatusLabel.ENQUIRY]:
                update_order(
                    order.pk,
                    statuses_to_remove=[StatusLabel.ENQUIRY],
                    statuses_to_add=stage,
                )
            if random.random() < CANCEL_RATE:
                cancel_order(order.pk)

        return to_create
