import django.db.models.deletion
import inventory.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("entry", "Entry"),
                            ("exit", "Exit"),
                            ("adjustment", "Adjustment"),
                            ("transfer", "Transfer"),
                        ],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                ("quantity", models.IntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("sale", "Sale"),
                            ("return", "Return"),
                            ("damage", "Damage"),
                            ("loss", "Loss"),
                            ("theft", "Theft"),
                            ("correction", "Correction"),
                            ("transfer_in", "Transfer in"),
                            ("transfer_out", "Transfer out"),
                            ("initial_stock", "Initial stock"),
                            ("promotion", "Promotion"),
                            ("expired", "Expired"),
                            ("quality_control", "Quality control"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("description", models.CharField(blank=True, max_length=500)),
                (
                    "reference",
                    models.CharField(default=inventory.models.generate_movement_reference, max_length=64, unique=True),
                ),
                ("batch_number", models.CharField(blank=True, max_length=64)),
                ("supplier", models.JSONField(blank=True, default=dict)),
                ("customer", models.JSONField(blank=True, default=dict)),
                ("location", models.JSONField(blank=True, default=inventory.models.default_location)),
                ("created_by", models.CharField(default="system", max_length=150)),
                ("approved_by", models.CharField(blank=True, max_length=150)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="completed",
                        max_length=16,
                    ),
                ),
                ("movement_date", models.DateTimeField(db_index=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("previous_stock", models.IntegerField(blank=True, null=True)),
                ("new_stock", models.IntegerField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "ordering": ["-movement_date", "-id"],
                "indexes": [
                    models.Index(fields=["product", "-movement_date"], name="inventory_s_product_8c2f1a_idx"),
                    models.Index(fields=["type", "status"], name="inventory_s_type_4b9e7d_idx"),
                    models.Index(fields=["-created_at"], name="inventory_s_created_1f6a2c_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity", 0), _negated=True), name="stock_movement_non_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)), name="stock_movement_unit_price_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("previous_stock__gte", 0), ("previous_stock__isnull", True), _connector="OR"),
                        name="stock_movement_previous_stock_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("new_stock__gte", 0), ("new_stock__isnull", True), _connector="OR"),
                        name="stock_movement_new_stock_non_negative",
                    ),
                ],
            },
        ),
    ]
