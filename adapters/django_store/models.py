"""
TSC Settlement Store — Models
===============================
RULES (NON-NEGOTIABLE):
- Cash movements are INSERT only: never updated, never deleted.
- At most one OPEN shift per register (partial unique constraint).
- Promotion rules are soft-deleted via deleted_at.

This file contains NO business logic.
"""

from django.db import models


class ShiftStatusChoice(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"
    PENDING_REVIEW = "PENDING_REVIEW", "Pending Review"


class MovementTypeChoice(models.TextChoices):
    IN = "IN", "In"
    OUT = "OUT", "Out"


class MovementReasonChoice(models.TextChoices):
    OPENING = "OPENING", "Opening"
    CLOSING = "CLOSING", "Closing"
    SALE = "SALE", "Sale"
    MANUAL_IN = "MANUAL_IN", "Manual In"
    MANUAL_OUT = "MANUAL_OUT", "Manual Out"


# ══════════════════════════════════════════════════════════════
# CASH SHIFT
# ══════════════════════════════════════════════════════════════

class CashShiftRecord(models.Model):
    shift_id = models.CharField(max_length=64, primary_key=True)
    shift_number = models.CharField(max_length=32, db_index=True)
    register_id = models.CharField(max_length=64)
    user_id = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=ShiftStatusChoice.choices,
        default=ShiftStatusChoice.OPEN,
    )

    opening_cash = models.DecimalField(max_digits=14, decimal_places=2)
    closing_expected_cash = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True,
    )
    counted_cash = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True,
    )
    cash_difference = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True,
    )

    opened_at = models.DateTimeField()
    closed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    version = models.PositiveIntegerField(
        default=1,
        help_text="Optimistic concurrency token; bumped on every transition.",
    )

    class Meta:
        db_table = "tsc_cash_shift"
        ordering = ["opened_at", "shift_id"]
        indexes = [
            models.Index(
                fields=["register_id", "status"],
                name="idx_shift_register_status",
            ),
            models.Index(
                fields=["user_id", "status"],
                name="idx_shift_user_status",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["register_id"],
                condition=models.Q(status="OPEN"),
                name="uq_shift_register_open",
            ),
        ]


class CashMovementRecord(models.Model):
    movement_id = models.CharField(max_length=64, primary_key=True)
    shift = models.ForeignKey(
        CashShiftRecord,
        on_delete=models.PROTECT,
        related_name="movements",
    )
    position = models.PositiveIntegerField(
        help_text="0-based order within the shift; 0 is the OPENING entry.",
    )
    type = models.CharField(max_length=3, choices=MovementTypeChoice.choices)
    reason = models.CharField(max_length=20, choices=MovementReasonChoice.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    running_balance = models.DecimalField(max_digits=14, decimal_places=2)
    occurred_at = models.DateTimeField()
    sale_ref = models.CharField(max_length=255, null=True, blank=True)
    description = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "tsc_cash_movement"
        ordering = ["shift_id", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["shift", "position"],
                name="uq_movement_shift_position",
            ),
        ]

    def save(self, *args, **kwargs):
        """GUARD: INSERT only."""
        if not self._state.adding:
            raise ValueError(
                f"Cash movement '{self.movement_id}' is immutable."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(f"Cash movement '{self.movement_id}' cannot be deleted.")


# ══════════════════════════════════════════════════════════════
# PROMOTION RULE
# ══════════════════════════════════════════════════════════════

class PromotionRuleRecord(models.Model):
    rule_id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=20)

    buy_qty = models.PositiveIntegerField(null=True, blank=True)
    pay_qty = models.PositiveIntegerField(null=True, blank=True)
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
    )
    fixed_price = models.DecimalField(
        max_digits=14, decimal_places=2, null=True, blank=True,
    )

    product_ids = models.JSONField(default=list)
    start_date = models.DateField()
    end_date = models.DateField()
    days_of_week = models.CharField(
        max_length=20,
        default="0,1,2,3,4,5,6",
        help_text="Comma-separated, 0 = Sunday.",
    )
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=32, null=True, blank=True)

    active = models.BooleanField(default=True)
    sequence = models.PositiveIntegerField(db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tsc_promotion_rule"
        ordering = ["sequence", "rule_id"]
        indexes = [
            models.Index(
                fields=["active", "deleted_at", "end_date"],
                name="idx_rule_active_window",
            ),
        ]
