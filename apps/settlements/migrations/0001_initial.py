import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('events', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Participant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='participants', to='events.event')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='participations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'settlement_participants',
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['event', 'is_active', 'created_at'], name='participant_event_active_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(user__isnull=False), fields=('event', 'user'), name='unique_participant_per_event_user')],
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('description', models.CharField(max_length=255)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('idempotency_key', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expenses', to='events.event')),
                ('payer', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='expenses_paid', to='settlements.participant')),
            ],
            options={
                'db_table': 'settlement_expenses',
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['event', 'created_at'], name='expense_event_created_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(idempotency_key__isnull=False), fields=('event', 'idempotency_key'), name='unique_expense_idempotency_key')],
            },
        ),
        migrations.CreateModel(
            name='ExpenseShare',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('share_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('position', models.PositiveIntegerField(default=0)),
                ('expense', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='settlements.expense')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='shares', to='settlements.participant')),
            ],
            options={
                'db_table': 'settlement_expense_shares',
                'ordering': ['position'],
                'unique_together': {('expense', 'participant')},
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='settlement_payments', to='events.event')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='payments', to='settlements.participant')),
            ],
            options={
                'db_table': 'settlement_payments',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['event', 'participant', 'status'], name='payment_event_part_status_idx')],
            },
        ),
    ]
