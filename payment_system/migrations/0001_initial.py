# Generated manually for payment_system app

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auctions', '0001_initial'),
        ('marketplace', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('currency', models.CharField(default='usd', max_length=3)),
                ('payment_method', models.CharField(default='stripe_checkout', max_length=50)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='completed', max_length=20)),
                ('invoice_number', models.CharField(max_length=64, unique=True)),
                ('payment_reference', models.CharField(blank=True, db_index=True, max_length=255)),
                ('checkout_session_id', models.CharField(blank=True, db_index=True, max_length=255)),
                ('transaction_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transactions_as_buyer', to=settings.AUTH_USER_MODEL)),
                ('ledger', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transaction', to='auctions.auctionledger')),
                ('listing', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transactions', to='marketplace.listing')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transactions_as_seller', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-transaction_date'],
                'indexes': [
                    models.Index(fields=['seller', '-transaction_date'], name='payment_txn_seller_date_idx'),
                    models.Index(fields=['buyer', '-transaction_date'], name='payment_txn_buyer_date_idx'),
                ],
            },
        ),
    ]
