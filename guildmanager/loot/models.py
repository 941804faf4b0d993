# loot/models.py
from django.db import models


class LootItem(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        SOLD = "SOLD", "Sold"
        SETTLED = "SETTLED", "Settled"

    name = models.CharField(max_length=255)
    # Guild currency; salary distribution treats it as a whole number of units
    value = models.FloatField()
    date_acquired = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)

    boss = models.ForeignKey(
        'boss.Boss',
        on_delete=models.PROTECT,
        related_name='loot_items'
    )
    participants = models.ManyToManyField(
        'member.Member',
        through='Participation',
        related_name='loot_items',
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'loot_item'
        ordering = ['-date_acquired', '-id']

    def __str__(self):
        return f"{self.name} ({self.value:g}, {self.status})"


class Participation(models.Model):
    """Pivot table: loot item <-> member who took part in acquiring it"""
    loot_item = models.ForeignKey(
        LootItem,
        on_delete=models.CASCADE,
        related_name='participations'
    )
    member = models.ForeignKey(
        'member.Member',
        on_delete=models.CASCADE,
        related_name='participations'
    )

    class Meta:
        db_table = 'loot_participation'
        unique_together = ('loot_item', 'member')
        ordering = ['id']

    def __str__(self):
        return f'Loot {self.loot_item_id} ↔ Member {self.member_id}'


class Salary(models.Model):
    """One member's share of one loot item. Rows for SOLD items are owned by the recalculation."""
    member = models.ForeignKey(
        'member.Member',
        on_delete=models.CASCADE,
        related_name='salaries'
    )
    loot_item = models.ForeignKey(
        LootItem,
        on_delete=models.CASCADE,
        related_name='salaries'
    )
    amount = models.BigIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'loot_salary'
        ordering = ['id']
        indexes = [
            models.Index(fields=['loot_item']),
            models.Index(fields=['member']),
        ]

    def __str__(self):
        return f"{self.member_id} ← {self.amount} from loot {self.loot_item_id}"


class GuildFinancials(models.Model):
    """Snapshot written by the last full salary recalculation; a single row keyed MAIN."""
    MAIN = "main"

    key = models.CharField(max_length=16, unique=True, default=MAIN)
    total_loot_value = models.FloatField(default=0)
    total_distributed = models.FloatField(default=0)
    guild_fund = models.FloatField(default=0)
    admin_fee = models.FloatField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'guild_financials'
        verbose_name_plural = 'guild financials'

    def __str__(self):
        return (f"loot={self.total_loot_value:g} distributed={self.total_distributed:g} "
                f"fund={self.guild_fund:g} fee={self.admin_fee:g}")

    @classmethod
    def main(cls):
        """Current snapshot for reading; an unsaved all-zero row before the first recalculation."""
        return cls.objects.filter(key=cls.MAIN).first() or cls(key=cls.MAIN)
