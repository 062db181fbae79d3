from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tenant_id",
                    models.CharField(
                        db_index=True,
                        help_text="Directory tenant id of the purchasing organization",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=255)),
                (
                    "subscriptions",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Marketplace subscription documents (camelCase), unique by id",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
