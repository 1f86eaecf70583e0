# Generated migration for Simulation model
# row_version is the optimistic concurrency token; is_deleted marks soft deletes.

import apps.simulations.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Simulation",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=70)),
                ("start_time", models.DateTimeField()),
                ("file_name", models.CharField(max_length=260)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("NotStarted", "Not Started"),
                            ("InProgress", "In Progress"),
                            ("Completed", "Completed"),
                        ],
                        default="NotStarted",
                        max_length=20,
                    ),
                ),
                ("is_deleted", models.BooleanField(default=False)),
                (
                    "row_version",
                    models.BinaryField(
                        default=apps.simulations.models.new_row_version,
                        max_length=64,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "simulations",
                "base_manager_name": "all_objects",
            },
        ),
        migrations.AddIndex(
            model_name="simulation",
            index=models.Index(fields=["start_time", "id"], name="idx_sim_start_time"),
        ),
        migrations.AddIndex(
            model_name="simulation",
            index=models.Index(
                fields=["file_name", "status"], name="idx_sim_file_status"
            ),
        ),
        migrations.AddConstraint(
            model_name="simulation",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("status__in", ["NotStarted", "InProgress", "Completed"])
                ),
                name="valid_simulation_status",
            ),
        ),
    ]
