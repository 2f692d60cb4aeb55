import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='GameSave',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user_id', models.CharField(max_length=64, unique=True)),
                ('data', models.JSONField(default=dict)),
                ('last_saved', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'ordering': ['-last_saved'],
            },
        ),
        migrations.CreateModel(
            name='GlobalEconomy',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner_bank_gold', models.BigIntegerField(default=0)),
                ('spend_count', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name_plural': 'global economy',
            },
        ),
    ]
