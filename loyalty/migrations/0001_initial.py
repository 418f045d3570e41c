import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_id', models.CharField(help_text="Business-scoped card identifier (e.g. 'MYCO-X7F4P2')", max_length=32)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('points', models.IntegerField(default=0)),
                ('is_activated', models.BooleanField(default=True, help_text='False for pre-created cards not yet claimed by their holder')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('business', models.ForeignKey(help_text='Which business owns this record', on_delete=django.db.models.deletion.CASCADE, related_name='%(class)s_set', to='core.business')),
            ],
            options={
                'verbose_name': 'Client',
                'verbose_name_plural': 'Clients',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['business', 'name'], name='client_business_name'),
                    models.Index(fields=['business', 'phone'], name='client_business_phone'),
                    models.Index(fields=['business', 'email'], name='client_business_email'),
                    models.Index(fields=['client_id'], name='client_client_id'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('business', 'client_id'), name='unique_client_id_per_business'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('points', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('kind', models.CharField(choices=[('earn', 'Earn'), ('redeem', 'Redeem')], max_length=10)),
                ('visible_to_client', models.BooleanField(default=True, help_text='Show on the public client dashboard?')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('business', models.ForeignKey(help_text='Which business owns this record', on_delete=django.db.models.deletion.CASCADE, related_name='%(class)s_set', to='core.business')),
            ],
            options={
                'verbose_name': 'Item',
                'verbose_name_plural': 'Items',
                'ordering': ['kind', 'name'],
                'indexes': [
                    models.Index(fields=['business', 'kind'], name='item_business_kind'),
                    models.Index(fields=['business', 'visible_to_client'], name='item_business_visible'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('points__gte', 1)), name='item_points_at_least_one'),
                    models.CheckConstraint(condition=models.Q(('kind__in', ['earn', 'redeem'])), name='item_kind_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('points', models.IntegerField(help_text='Signed balance change')),
                ('before_points', models.IntegerField()),
                ('after_points', models.IntegerField()),
                ('note', models.CharField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('business', models.ForeignKey(help_text='Which business owns this record', on_delete=django.db.models.deletion.CASCADE, related_name='%(class)s_set', to='core.business')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='loyalty.client')),
                ('item', models.ForeignKey(blank=True, help_text='Item that triggered the change (empty for manual adjustments)', null=True, db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING, related_name='entries', to='loyalty.item')),
                ('performed_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Transaction',
                'verbose_name_plural': 'Transactions',
                'db_table': 'loyalty_transaction',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['client', '-created_at'], name='ledger_client_recent'),
                    models.Index(fields=['business', '-created_at'], name='ledger_business_recent'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('after_points', models.F('before_points') + models.F('points'))), name='ledger_entry_balanced'),
                ],
            },
        ),
    ]
