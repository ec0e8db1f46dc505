"""
SharedBooks Store - Relational State
====================================
Settlements and audit log rows are write-once: updates and deletes are
refused at the model layer. Expenses and incomes are soft-deleted.
"""

from __future__ import annotations

from django.db import models

from sharedbooks.money import MONEY_PLACES


class MembershipRole(models.TextChoices):
    OWNER = "OWNER", "Owner"
    CO_OWNER = "CO_OWNER", "Co-Owner"
    ADMIN = "ADMIN", "Admin"
    ACCOUNTANT = "ACCOUNTANT", "Accountant"
    EMPLOYEE = "EMPLOYEE", "Employee"


class TransactionType(models.TextChoices):
    EXPENSE = "EXPENSE", "Expense"
    INCOME = "INCOME", "Income"


class SettlementType(models.TextChoices):
    BUSINESS_TO_MEMBER = "BUSINESS_TO_MEMBER", "Business to member"
    MEMBER_TO_BUSINESS = "MEMBER_TO_BUSINESS", "Member to business"


MONEY_FIELD_OPTIONS = {"max_digits": 14, "decimal_places": MONEY_PLACES}


class Business(models.Model):
    business_id = models.UUIDField(primary_key=True, editable=False)
    name = models.CharField(max_length=255)
    is_archived = models.BooleanField(default=False)
    archived_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sb_businesses"
        ordering = ["business_id"]

    def __str__(self) -> str:
        return f"{self.business_id} ({self.name})"


class Membership(models.Model):
    membership_id = models.UUIDField(primary_key=True, editable=False)
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="memberships",
        db_column="business_id",
    )
    user_id = models.CharField(max_length=255)
    user_name = models.CharField(max_length=255, default="", blank=True)
    user_email = models.CharField(max_length=255, default="", blank=True)
    role = models.CharField(max_length=20, choices=MembershipRole.choices)
    permission_overrides = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    joined_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "sb_memberships"
        ordering = ["business_id", "membership_id"]
        indexes = [
            models.Index(fields=["user_id"], name="idx_membership_user"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "user_id"],
                name="uq_membership_business_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.business_id} ({self.role})"


class Category(models.Model):
    category_id = models.CharField(primary_key=True, max_length=64)
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="categories",
        db_column="business_id",
    )
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=10, choices=TransactionType.choices)
    color = models.CharField(max_length=32, null=True, blank=True)

    class Meta:
        db_table = "sb_categories"
        ordering = ["business_id", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "kind", "name"],
                name="uq_category_business_kind_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.kind})"


class Expense(models.Model):
    transaction_id = models.UUIDField(primary_key=True, editable=False)
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="expenses",
        db_column="business_id",
    )
    member = models.ForeignKey(
        Membership,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expenses_paid",
        db_column="paid_by_member_id",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expenses",
        db_column="category_id",
    )
    amount = models.DecimalField(**MONEY_FIELD_OPTIONS)
    transaction_date = models.DateField()
    description = models.TextField(default="", blank=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sb_expenses"
        ordering = ["-transaction_date", "-transaction_id"]
        indexes = [
            models.Index(fields=["business", "transaction_date"], name="idx_expense_biz_date"),
            models.Index(fields=["business", "member"], name="idx_expense_biz_member"),
        ]


class Income(models.Model):
    transaction_id = models.UUIDField(primary_key=True, editable=False)
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="incomes",
        db_column="business_id",
    )
    member = models.ForeignKey(
        Membership,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incomes_received",
        db_column="received_by_member_id",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incomes",
        db_column="category_id",
    )
    amount = models.DecimalField(**MONEY_FIELD_OPTIONS)
    transaction_date = models.DateField()
    description = models.TextField(default="", blank=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sb_incomes"
        ordering = ["-transaction_date", "-transaction_id"]
        indexes = [
            models.Index(fields=["business", "transaction_date"], name="idx_income_biz_date"),
            models.Index(fields=["business", "member"], name="idx_income_biz_member"),
        ]


class Settlement(models.Model):
    settlement_id = models.UUIDField(primary_key=True, editable=False)
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="settlements",
        db_column="business_id",
    )
    member = models.ForeignKey(
        Membership,
        on_delete=models.PROTECT,
        related_name="settlements",
        db_column="member_id",
    )
    direction = models.CharField(max_length=20, choices=SettlementType.choices)
    amount = models.DecimalField(**MONEY_FIELD_OPTIONS)
    settlement_date = models.DateField()
    note = models.TextField(null=True, blank=True)
    created_by_id = models.CharField(max_length=255)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "sb_settlements"
        ordering = ["-settlement_date", "-settlement_id"]
        indexes = [
            models.Index(fields=["business", "member", "direction"], name="idx_settle_biz_member_dir"),
        ]

    # ══════════════════════════════════════════════════════════
    # IMMUTABILITY GUARDS
    # ══════════════════════════════════════════════════════════

    def save(self, *args, **kwargs):
        """INSERT only. Mistakes are offset by a new settlement."""
        if not self._state.adding:
            raise PermissionError(
                "Settlements are immutable. Record an offsetting settlement instead."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Settlements are never deleted.")

    def __str__(self) -> str:
        return f"{self.direction} {self.amount} ({self.settlement_id})"


class AuditLog(models.Model):
    entry_id = models.UUIDField(unique=True, editable=False)
    business_id = models.UUIDField()
    action = models.CharField(max_length=40)
    entity_type = models.CharField(max_length=20)
    entity_id = models.CharField(max_length=255, null=True, blank=True)
    performed_by_id = models.CharField(max_length=255)
    changes = models.JSONField(default=dict, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "sb_audit_log"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["business_id", "created_at"], name="idx_audit_biz_created"),
            models.Index(
                fields=["business_id", "entity_type", "entity_id"],
                name="idx_audit_biz_entity",
            ),
            models.Index(fields=["business_id", "performed_by_id"], name="idx_audit_biz_actor"),
        ]

    # ══════════════════════════════════════════════════════════
    # IMMUTABILITY GUARDS
    # ══════════════════════════════════════════════════════════

    def save(self, *args, **kwargs):
        """INSERT only. Audit entries are never rewritten."""
        if not self._state.adding:
            raise PermissionError("Audit log entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Audit log entries are never deleted.")

    def __str__(self) -> str:
        return f"[{self.action}] {self.entity_type}:{self.entity_id}"
