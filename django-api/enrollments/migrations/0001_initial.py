import django.core.serializers.json
from django.db import migrations, models

import enrollments.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StoredDocument",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("collection", models.CharField(max_length=64)),
                (
                    "key",
                    models.CharField(default=enrollments.models._new_key, max_length=128),
                ),
                (
                    "data",
                    models.JSONField(
                        default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["collection", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["collection", "created_at"], name="document_collection_created"
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("collection", "key"), name="uq_document_collection_key"
                    )
                ],
            },
        ),
    ]
