from datetime import timedelta

from django.db import models


class Boss(models.Model):
    class BossType(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        FIXED = "FIXED", "Fixed"

    name = models.CharField(max_length=255, unique=True)
    type = models.CharField(max_length=10, choices=BossType.choices, default=BossType.NORMAL)
    respawn_time = models.PositiveIntegerField(help_text="Respawn interval in minutes")
    last_killed = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'boss'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.type}, {self.respawn_time}m)"

    @property
    def next_spawn(self):
        if self.last_killed is None:
            return None
        return self.last_killed + timedelta(minutes=self.respawn_time)
