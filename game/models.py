"""
Remote store for game snapshots and the shared gold economy
"""
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
import uuid


class BaseModel(models.Model):
    """Base model with UUID and timestamps"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class GameSave(BaseModel):
    """Latest GameState snapshot per user (one row per user)"""
    user_id = models.CharField(max_length=64, unique=True)
    data = models.JSONField(default=dict)
    last_saved = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-last_saved']

    def __str__(self):
        return f"GameSave({self.user_id} @ {self.last_saved:%Y-%m-%d %H:%M:%S})"


class GlobalEconomy(BaseModel):
    """Single-row ledger of gold spent by all players"""
    owner_bank_gold = models.BigIntegerField(default=0)
    spend_count = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name_plural = 'global economy'

    def __str__(self):
        return f"GlobalEconomy(bank={self.owner_bank_gold})"

    @classmethod
    def current(cls) -> 'GlobalEconomy':
        obj = cls.objects.order_by('created_at').first()
        if obj is None:
            obj = cls.objects.create()
        return obj

    @classmethod
    def record_spend(cls, amount: int) -> int:
        """Add spent gold to the bank atomically; returns the new bank total."""
        with transaction.atomic():
            econ = cls.current()
            cls.objects.filter(pk=econ.pk).update(
                owner_bank_gold=F('owner_bank_gold') + amount,
                spend_count=F('spend_count') + 1,
            )
            econ.refresh_from_db()
        return econ.owner_bank_gold
