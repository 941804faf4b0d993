from django.db import models


class MemberRole(models.TextChoices):
    GUILD_MASTER = "GUILD_MASTER", "Guild Master"
    CORE = "CORE", "Core"
    MEMBER = "MEMBER", "Member"


class Member(models.Model):
    name = models.CharField(max_length=255, unique=True)

    # Cached copy of the role timeline's current role; only role_timeline writes it after creation.
    role = models.CharField(max_length=16, choices=MemberRole.choices, default=MemberRole.MEMBER)

    # Informational only, salary logic reads RolePeriod
    promotion_date = models.DateTimeField(null=True, blank=True)
    demotion_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'member'
        ordering = ['id']

    def __str__(self):
        return f'{self.name} ({self.get_role_display()})'


class RolePeriod(models.Model):
    """
    One validity interval of a member's role. Both ends are inclusive;
    end_date NULL means the period is still open.
    """
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='role_periods'
    )
    role = models.CharField(max_length=16, choices=MemberRole.choices)
    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField(null=True, blank=True, db_index=True)
    reason = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'member_role_history'
        ordering = ['start_date', 'id']
        indexes = [
            models.Index(fields=['member', 'start_date']),
            models.Index(fields=['role', 'start_date']),
        ]

    def __str__(self):
        end = self.end_date.isoformat() if self.end_date else 'open'
        return f'{self.member_id} {self.role} {self.start_date.isoformat()} → {end}'

    @property
    def is_open(self):
        return self.end_date is None

    def covers(self, when):
        return self.start_date <= when and (self.end_date is None or self.end_date >= when)


class Attendance(models.Model):
    """Weekly attendance flag; a missing row means the member did not attend that week."""
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='attendances'
    )
    week = models.CharField(max_length=7)  # "YYYY-WW"
    attended = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'member_attendance'
        unique_together = ('member', 'week')
        ordering = ['-week']

    def __str__(self):
        return f'{self.member_id} {self.week} {"✓" if self.attended else "✗"}'
