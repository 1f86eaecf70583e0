# Generated migration for AuditEntry model
# Audit entries are append-only immutable records of simulation changes.

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditEntry",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("simulation_id", models.BigIntegerField()),
                ("actor", models.CharField(default="anonymous", max_length=150)),
                (
                    "correlation_id",
                    models.CharField(blank=True, max_length=64, null=True),
                ),
                ("timestamp_utc", models.DateTimeField()),
                (
                    "action",
                    models.CharField(
                        choices=[("Update", "Update"), ("Delete", "Delete")],
                        max_length=10,
                    ),
                ),
                ("changes", models.JSONField(blank=True, default=list)),
                (
                    "prev_token",
                    models.CharField(blank=True, max_length=128, null=True),
                ),
                (
                    "new_token",
                    models.CharField(blank=True, max_length=128, null=True),
                ),
            ],
            options={
                "db_table": "audit_entries",
                "ordering": ["-timestamp_utc", "-id"],
            },
        ),
        migrations.AddIndex(
            model_name="auditentry",
            index=models.Index(fields=["simulation_id"], name="idx_audit_simulation"),
        ),
        migrations.AddIndex(
            model_name="auditentry",
            index=models.Index(fields=["timestamp_utc"], name="idx_audit_timestamp"),
        ),
        migrations.AddIndex(
            model_name="auditentry",
            index=models.Index(fields=["actor"], name="idx_audit_actor"),
        ),
    ]
