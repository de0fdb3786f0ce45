# Generated manually for auctions app

import uuid
from decimal import Decimal

import auctions.domain.models.ledger
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('marketplace', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuctionLedger',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('highest_bid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('minimum_bid_increment', models.DecimalField(decimal_places=2, default=auctions.domain.models.ledger.default_bid_increment, max_digits=10)),
                ('status', models.CharField(choices=[('open', 'Open'), ('closed', 'Closed')], default='open', max_length=10)),
                ('seller_accepted', models.BooleanField(default=False)),
                ('buyer_accepted', models.BooleanField(default=False)),
                ('close_reason', models.CharField(blank=True, choices=[('buyer_selected', 'Buyer Selected'), ('auction_ended', 'Auction Ended'), ('seller_cancelled', 'Seller Cancelled'), ('payment_completed', 'Payment Completed')], max_length=20)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('is_paid', models.BooleanField(default=False)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('payment_reference', models.CharField(blank=True, max_length=255)),
                ('checkout_session_id', models.CharField(blank=True, db_index=True, max_length=255)),
                ('invoice_number', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('buyer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='won_auction_ledgers', to=settings.AUTH_USER_MODEL)),
                ('listing', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='auction_ledger', to='marketplace.listing')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='auction_ledgers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['is_paid', 'status'], name='auction_ledger_paid_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('is_paid', False), ('status', 'closed'), _connector='OR'), name='auction_ledger_paid_implies_closed'),
                    models.CheckConstraint(condition=models.Q(('highest_bid__gte', 0)), name='auction_ledger_highest_bid_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Bid',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('placed_at', models.DateTimeField(auto_now_add=True)),
                ('bidder', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bids', to=settings.AUTH_USER_MODEL)),
                ('ledger', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bids', to='auctions.auctionledger')),
            ],
            options={
                'ordering': ['placed_at', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('ledger', 'bidder'), name='auction_bid_one_active_per_bidder'),
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='auction_bid_amount_positive'),
                ],
            },
        ),
    ]
