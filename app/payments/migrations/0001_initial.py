import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("marketplace", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Purchase",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("ACHADINHO_TURBO", "Achadinho Turbo"),
                            ("CARROSSEL_PRACA", "Carrossel Praça"),
                            ("PLANO", "Plano"),
                        ],
                        db_index=True,
                        help_text="Entitlement bought",
                        max_length=32,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Amount charged in BRL",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("PIX", "PIX"), ("STRIPE", "Stripe")],
                        help_text="How the purchase was paid",
                        max_length=10,
                    ),
                ),
                (
                    "stripe_checkout_session_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe Checkout Session ID (cs_xxx) - unique for idempotency",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("FAILED", "Failed")],
                        db_index=True,
                        default="PENDING",
                        help_text="Payment status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "submission_status",
                    django_fsm.FSMField(
                        choices=[
                            ("AVAILABLE", "Available"),
                            ("PENDING_APPROVAL", "Pending approval"),
                            ("USED", "Used"),
                        ],
                        db_index=True,
                        default="AVAILABLE",
                        help_text="Entitlement consumption status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Seller who bought the entitlement",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        help_text="Product the entitlement applies to",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchases",
                        to="marketplace.product",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["owner", "type", "submission_status"],
                        name="payments_pu_owner_i_3b8f1c_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PixCharge",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "txid",
                    models.CharField(
                        help_text="PIX transaction id (26-35 alphanumeric characters)",
                        max_length=35,
                        unique=True,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Charged amount in BRL", max_digits=10
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("CONFIRMED", "Confirmed"),
                            ("EXPIRED", "Expired"),
                        ],
                        db_index=True,
                        default="PENDING",
                        help_text="Charge status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "location_id",
                    models.PositiveBigIntegerField(
                        blank=True, help_text="Gateway location id (loc.id)", null=True
                    ),
                ),
                (
                    "qr_code",
                    models.TextField(blank=True, help_text="PIX copy-and-paste payload"),
                ),
                (
                    "expires_at",
                    models.DateTimeField(db_index=True, help_text="Charge expiration"),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "purchase",
                    models.OneToOneField(
                        help_text="Purchase paid by this charge",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pix_charge",
                        to="payments.purchase",
                    ),
                ),
            ],
            options={
                "verbose_name": "PIX Charge",
                "verbose_name_plural": "PIX Charges",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PixPayment",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "txid",
                    models.CharField(
                        help_text="PIX transaction id - unique constraint for idempotency",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Amount paid in BRL", max_digits=12
                    ),
                ),
                (
                    "end_to_end_id",
                    models.CharField(
                        blank=True,
                        help_text="End-to-end id assigned by the central bank",
                        max_length=64,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Payment timestamp reported by the gateway",
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("COMPLETED", "Completed")],
                        default="COMPLETED",
                        editable=False,
                        max_length=20,
                    ),
                ),
                (
                    "raw_payload",
                    models.JSONField(default=dict, help_text="Webhook entry as received"),
                ),
            ],
            options={
                "verbose_name": "PIX Payment",
                "verbose_name_plural": "PIX Payments",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(db_index=True, help_text="Stripe event type", max_length=100),
                ),
                ("payload", models.JSONField(help_text="Full event payload from Stripe")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of processing attempts"
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "retry_count"], name="payments_we_status_5c2e7a_idx"
                    )
                ],
            },
        ),
    ]
