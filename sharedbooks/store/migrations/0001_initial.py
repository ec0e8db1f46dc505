from django.db import migrations, models

ROLE_CHOICES = [
    ("OWNER", "Owner"),
    ("CO_OWNER", "Co-Owner"),
    ("ADMIN", "Admin"),
    ("ACCOUNTANT", "Accountant"),
    ("EMPLOYEE", "Employee"),
]

TRANSACTION_TYPE_CHOICES = [
    ("EXPENSE", "Expense"),
    ("INCOME", "Income"),
]

SETTLEMENT_TYPE_CHOICES = [
    ("BUSINESS_TO_MEMBER", "Business to member"),
    ("MEMBER_TO_BUSINESS", "Member to business"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Business",
            fields=[
                ("business_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("is_archived", models.BooleanField(default=False)),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "sb_businesses",
                "ordering": ["business_id"],
            },
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("membership_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=255)),
                ("user_name", models.CharField(blank=True, default="", max_length=255)),
                ("user_email", models.CharField(blank=True, default="", max_length=255)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=20)),
                ("permission_overrides", models.JSONField(blank=True, default=dict)),
                ("is_active", models.BooleanField(default=True)),
                ("joined_at", models.DateTimeField(blank=True, null=True)),
                (
                    "business",
                    models.ForeignKey(
                        db_column="business_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="memberships",
                        to="sharedbooks_store.business",
                    ),
                ),
            ],
            options={
                "db_table": "sb_memberships",
                "ordering": ["business_id", "membership_id"],
                "indexes": [
                    models.Index(fields=["user_id"], name="idx_membership_user"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["business", "user_id"],
                        name="uq_membership_business_user",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("category_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("kind", models.CharField(choices=TRANSACTION_TYPE_CHOICES, max_length=10)),
                ("color", models.CharField(blank=True, max_length=32, null=True)),
                (
                    "business",
                    models.ForeignKey(
                        db_column="business_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="categories",
                        to="sharedbooks_store.business",
                    ),
                ),
            ],
            options={
                "db_table": "sb_categories",
                "ordering": ["business_id", "name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["business", "kind", "name"],
                        name="uq_category_business_kind_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("transaction_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("transaction_date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("is_deleted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "business",
                    models.ForeignKey(
                        db_column="business_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="expenses",
                        to="sharedbooks_store.business",
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        blank=True,
                        db_column="paid_by_member_id",
                        null=True,
                        on_delete=models.deletion.PROTECT,
                        related_name="expenses_paid",
                        to="sharedbooks_store.membership",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        db_column="category_id",
                        null=True,
                        on_delete=models.deletion.PROTECT,
                        related_name="expenses",
                        to="sharedbooks_store.category",
                    ),
                ),
            ],
            options={
                "db_table": "sb_expenses",
                "ordering": ["-transaction_date", "-transaction_id"],
                "indexes": [
                    models.Index(fields=["business", "transaction_date"], name="idx_expense_biz_date"),
                    models.Index(fields=["business", "member"], name="idx_expense_biz_member"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Income",
            fields=[
                ("transaction_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("transaction_date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("is_deleted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "business",
                    models.ForeignKey(
                        db_column="business_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="incomes",
                        to="sharedbooks_store.business",
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        blank=True,
                        db_column="received_by_member_id",
                        null=True,
                        on_delete=models.deletion.PROTECT,
                        related_name="incomes_received",
                        to="sharedbooks_store.membership",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        db_column="category_id",
                        null=True,
                        on_delete=models.deletion.PROTECT,
                        related_name="incomes",
                        to="sharedbooks_store.category",
                    ),
                ),
            ],
            options={
                "db_table": "sb_incomes",
                "ordering": ["-transaction_date", "-transaction_id"],
                "indexes": [
                    models.Index(fields=["business", "transaction_date"], name="idx_income_biz_date"),
                    models.Index(fields=["business", "member"], name="idx_income_biz_member"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Settlement",
            fields=[
                ("settlement_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("direction", models.CharField(choices=SETTLEMENT_TYPE_CHOICES, max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("settlement_date", models.DateField()),
                ("note", models.TextField(blank=True, null=True)),
                ("created_by_id", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField()),
                (
                    "business",
                    models.ForeignKey(
                        db_column="business_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="settlements",
                        to="sharedbooks_store.business",
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        db_column="member_id",
                        on_delete=models.deletion.PROTECT,
                        related_name="settlements",
                        to="sharedbooks_store.membership",
                    ),
                ),
            ],
            options={
                "db_table": "sb_settlements",
                "ordering": ["-settlement_date", "-settlement_id"],
                "indexes": [
                    models.Index(
                        fields=["business", "member", "direction"],
                        name="idx_settle_biz_member_dir",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_id", models.UUIDField(editable=False, unique=True)),
                ("business_id", models.UUIDField()),
                ("action", models.CharField(max_length=40)),
                ("entity_type", models.CharField(max_length=20)),
                ("entity_id", models.CharField(blank=True, max_length=255, null=True)),
                ("performed_by_id", models.CharField(max_length=255)),
                ("changes", models.JSONField(blank=True, default=dict)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField()),
            ],
            options={
                "db_table": "sb_audit_log",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["business_id", "created_at"], name="idx_audit_biz_created"),
                    models.Index(
                        fields=["business_id", "entity_type", "entity_id"],
                        name="idx_audit_biz_entity",
                    ),
                    models.Index(fields=["business_id", "performed_by_id"], name="idx_audit_biz_actor"),
                ],
            },
        ),
    ]
