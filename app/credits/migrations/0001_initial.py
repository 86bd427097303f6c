import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

import credits.models.order


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CreditAccount",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
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
                    "balance",
                    models.IntegerField(
                        default=0,
                        help_text="Current balance; negative only through admin adjustments",
                    ),
                ),
                (
                    "total_purchased",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Lifetime credits added by purchases, bonuses and admins",
                    ),
                ),
                (
                    "total_used",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Lifetime credits spent, reduced by refunds",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="Owner of this credit account",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Credit Account",
                "verbose_name_plural": "Credit Accounts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["-balance"], name="credit_account_balance_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditOrder",
            fields=[
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
                    "order_id",
                    models.CharField(
                        default=credits.models.order.generate_order_id,
                        editable=False,
                        max_length=40,
                        unique=True,
                    ),
                ),
                ("credits", models.PositiveIntegerField()),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Amount in smallest currency unit (paise for INR)"
                    ),
                ),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("package_id", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("package_name", models.CharField(blank=True, default="", max_length=50)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("initiated", "Initiated"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="initiated",
                        help_text="Current state of the order (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("gateway", models.CharField(default="stripe", max_length=20)),
                (
                    "gateway_reference",
                    models.CharField(
                        blank=True,
                        help_text="Stripe PaymentIntent ID (pi_xxx)",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                ("client_secret", models.CharField(blank=True, default="", max_length=255)),
                ("failure_reason", models.TextField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="credits.creditaccount",
                    ),
                ),
            ],
            options={
                "verbose_name": "Credit Order",
                "verbose_name_plural": "Credit Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["account", "status"], name="credit_order_account_status"
                    ),
                    models.Index(
                        fields=["status", "created_at"], name="credit_order_status_created"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("credits__gt", 0)),
                        name="credit_order_credits_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="credit_order_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditTransaction",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "amount",
                    models.IntegerField(
                        help_text="Signed change in credits (positive adds, negative removes)"
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("usage", "Usage"),
                            ("refund", "Refund"),
                            ("admin_adjustment", "Admin Adjustment"),
                            ("signup_bonus", "Signup Bonus"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("balance_before", models.IntegerField()),
                ("balance_after", models.IntegerField()),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("order", "Order"),
                            ("application", "Application"),
                            ("admin", "Admin"),
                            ("signup", "Signup"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("reference_id", models.CharField(blank=True, max_length=64, null=True)),
                ("reason", models.TextField(blank=True, default="")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "idempotency_key",
                    models.CharField(
                        help_text="Unique key to prevent duplicate transactions",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="credits.creditaccount",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="credits.creditorder",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin who performed this transaction",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="performed_credit_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Credit Transaction",
                "verbose_name_plural": "Credit Transactions",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["account", "-created_at"], name="credit_txn_account_created"
                    ),
                    models.Index(fields=["kind", "created_at"], name="credit_txn_kind_created"),
                    models.Index(
                        fields=["reference_type", "reference_id"], name="credit_txn_reference"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount", 0), _negated=True),
                        name="credit_transaction_amount_nonzero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "balance_after",
                                models.F("balance_before") + models.F("amount"),
                            )
                        ),
                        name="credit_transaction_balance_consistent",
                    ),
                ],
            },
        ),
    ]
