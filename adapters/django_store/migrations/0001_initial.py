import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CashShiftRecord",
            fields=[
                (
                    "shift_id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("shift_number", models.CharField(db_index=True, max_length=32)),
                ("register_id", models.CharField(max_length=64)),
                ("user_id", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("OPEN", "Open"),
                            ("CLOSED", "Closed"),
                            ("PENDING_REVIEW", "Pending Review"),
                        ],
                        default="OPEN",
                        max_length=20,
                    ),
                ),
                ("opening_cash", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "closing_expected_cash",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True,
                    ),
                ),
                (
                    "counted_cash",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True,
                    ),
                ),
                (
                    "cash_difference",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True,
                    ),
                ),
                ("opened_at", models.DateTimeField()),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Optimistic concurrency token; bumped on every transition.",
                    ),
                ),
            ],
            options={
                "db_table": "tsc_cash_shift",
                "ordering": ["opened_at", "shift_id"],
                "indexes": [
                    models.Index(
                        fields=["register_id", "status"],
                        name="idx_shift_register_status",
                    ),
                    models.Index(
                        fields=["user_id", "status"],
                        name="idx_shift_user_status",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status="OPEN"),
                        fields=("register_id",),
                        name="uq_shift_register_open",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CashMovementRecord",
            fields=[
                (
                    "movement_id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                (
                    "position",
                    models.PositiveIntegerField(
                        help_text="0-based order within the shift; 0 is the OPENING entry.",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[("IN", "In"), ("OUT", "Out")], max_length=3,
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("OPENING", "Opening"),
                            ("CLOSING", "Closing"),
                            ("SALE", "Sale"),
                            ("MANUAL_IN", "Manual In"),
                            ("MANUAL_OUT", "Manual Out"),
                        ],
                        max_length=20,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("running_balance", models.DecimalField(decimal_places=2, max_digits=14)),
                ("occurred_at", models.DateTimeField()),
                ("sale_ref", models.CharField(blank=True, max_length=255, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                (
                    "shift",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="settlement_store.cashshiftrecord",
                    ),
                ),
            ],
            options={
                "db_table": "tsc_cash_movement",
                "ordering": ["shift_id", "position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("shift", "position"),
                        name="uq_movement_shift_position",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PromotionRuleRecord",
            fields=[
                (
                    "rule_id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("type", models.CharField(max_length=20)),
                ("buy_qty", models.PositiveIntegerField(blank=True, null=True)),
                ("pay_qty", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "discount_percent",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=5, null=True,
                    ),
                ),
                (
                    "fixed_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True,
                    ),
                ),
                ("product_ids", models.JSONField(default=list)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "days_of_week",
                    models.CharField(
                        default="0,1,2,3,4,5,6",
                        help_text="Comma-separated, 0 = Sunday.",
                        max_length=20,
                    ),
                ),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("payment_method", models.CharField(blank=True, max_length=32, null=True)),
                ("active", models.BooleanField(default=True)),
                ("sequence", models.PositiveIntegerField(db_index=True)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "tsc_promotion_rule",
                "ordering": ["sequence", "rule_id"],
                "indexes": [
                    models.Index(
                        fields=["active", "deleted_at", "end_date"],
                        name="idx_rule_active_window",
                    ),
                ],
            },
        ),
    ]
