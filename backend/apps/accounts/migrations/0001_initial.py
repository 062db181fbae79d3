from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("tenant_id", models.CharField(db_index=True, max_length=255)),
                (
                    "user_id",
                    models.CharField(help_text="Directory object id of the user", max_length=255),
                ),
                (
                    "upn",
                    models.CharField(
                        blank=True,
                        help_text="User principal name (usually the email address)",
                        max_length=320,
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("Admin", "Admin"), ("Member", "Member")],
                        default="Member",
                        max_length=20,
                    ),
                ),
                (
                    "license",
                    models.CharField(
                        blank=True,
                        help_text="Plan id granted by the subscription, 'Free', or empty",
                        max_length=255,
                    ),
                ),
                (
                    "subscription_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Marketplace subscription granting the license, or empty",
                        max_length=255,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="user",
            constraint=models.UniqueConstraint(
                fields=("tenant_id", "user_id"), name="accounts_user_tenant_user_unique"
            ),
        ),
    ]
