"""
Loyalty Models - Client cards, reward items and the points ledger
Every record is scoped to exactly one Business
"""
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import BusinessScopedModel

from .exceptions import ImmutableLedgerError


# ============================================================================
# CLIENT - Loyalty card holder
# ============================================================================

class Client(BusinessScopedModel):
    """
    Loyalty card holder. `points` is the authoritative balance and is only
    changed through loyalty.operations.
    """
    client_id = models.CharField(
        max_length=32,
        help_text="Business-scoped card identifier (e.g. 'MYCO-X7F4P2')"
    )
    name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)

    points = models.IntegerField(default=0)
    is_activated = models.BooleanField(
        default=True,
        help_text="False for pre-created cards not yet claimed by their holder"
    )
    metadata = models.JSONField(default=dict, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['business', 'name'], name='client_business_name'),
            models.Index(fields=['business', 'phone'], name='client_business_phone'),
            models.Index(fields=['business', 'email'], name='client_business_email'),
            models.Index(fields=['client_id'], name='client_client_id'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['business', 'client_id'],
                name='unique_client_id_per_business'
            )
        ]
        verbose_name = 'Client'
        verbose_name_plural = 'Clients'

    def __str__(self):
        return f"{self.client_id} ({self.name or 'unnamed'})"


# ============================================================================
# ITEM - Earn / redeem catalog rule
# ============================================================================

class Item(BusinessScopedModel):
    """Reward rule: a fixed point award (earn) or cost (redeem)"""

    KIND_EARN = 'earn'
    KIND_REDEEM = 'redeem'
    KIND_CHOICES = [
        (KIND_EARN, 'Earn'),
        (KIND_REDEEM, 'Redeem'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    points = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    visible_to_client = models.BooleanField(
        default=True,
        help_text="Show on the public client dashboard?"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['kind', 'name']
        indexes = [
            models.Index(fields=['business', 'kind'], name='item_business_kind'),
            models.Index(fields=['business', 'visible_to_client'], name='item_business_visible'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(points__gte=1),
                name='item_points_at_least_one'
            ),
            models.CheckConstraint(
                condition=models.Q(kind__in=['earn', 'redeem']),
                name='item_kind_valid'
            ),
        ]
        verbose_name = 'Item'
        verbose_name_plural = 'Items'

    def __str__(self):
        return f"{self.name} ({self.kind} {self.points})"

    @property
    def signed_points(self):
        """Balance delta this item produces"""
        return self.points if self.kind == self.KIND_EARN else -self.points


# ============================================================================
# LEDGER ENTRY - Immutable record of one balance change
# ============================================================================

class LedgerEntry(BusinessScopedModel):
    """
    Append-only audit record. after_points == before_points + points always
    holds (enforced in the database). Rows leave the table only when their
    business is deleted.
    """
    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name='entries'
    )
    # No database constraint: deleting an item leaves recorded entries untouched
    item = models.ForeignKey(
        Item,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='entries',
        help_text="Item that triggered the change (empty for manual adjustments)"
    )

    points = models.IntegerField(help_text="Signed balance change")
    before_points = models.IntegerField()
    after_points = models.IntegerField()

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='ledger_entries'
    )
    note = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'loyalty_transaction'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['client', '-created_at'], name='ledger_client_recent'),
            models.Index(fields=['business', '-created_at'], name='ledger_business_recent'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(after_points=models.F('before_points') + models.F('points')),
                name='ledger_entry_balanced'
            )
        ]
        verbose_name = 'Transaction'
        verbose_name_plural = 'Transactions'

    def __str__(self):
        sign = '+' if self.points > 0 else ''
        return f"{self.client.client_id}: {sign}{self.points} ({self.before_points} -> {self.after_points})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableLedgerError("Ledger entries cannot be modified once recorded.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableLedgerError("Ledger entries cannot be deleted; append a counter-entry instead.")

    @property
    def item_or_none(self):
        """Triggering item, or None for manual adjustments and deleted items"""
        if self.item_id is None:
            return None
        try:
            return self.item
        except Item.DoesNotExist:
            return None
