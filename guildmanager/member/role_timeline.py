# member/role_timeline.py
"""
Role timeline: every member's role as a sequence of validity periods.

Member.role is only a cache of current_role(); anything that needs the role a
member held on a given date (salary distribution in particular) must go through
role_at() or a TimelineSnapshot instead of reading the cached field.
"""
import logging
from collections import defaultdict
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Prefetch, Q
from django.utils import timezone

from .models import Member, MemberRole, RolePeriod

logger = logging.getLogger(__name__)

# An open period is closed this long before its successor starts.
CLOSE_GAP = timedelta(milliseconds=1)

UPDATABLE_FIELDS = ("role", "start_date", "end_date", "reason")


def _aware(value):
    if value is not None and timezone.is_naive(value):
        return timezone.make_aware(value, timezone.get_default_timezone())
    return value


def _validate_role(role):
    if not role:
        raise ValidationError({"role": "Role is required."})
    if role not in MemberRole.values:
        raise ValidationError({"role": f"Invalid role {role!r}. Use one of: {', '.join(MemberRole.values)}."})


def resolve_role(periods, when):
    """
    Pick the role of the period covering `when` out of an iterable of periods.
    When more than one covers it (overlapping data), the latest start wins,
    then the highest id.
    """
    best = None
    for period in periods:
        if not period.covers(when):
            continue
        if best is None or (period.start_date, period.pk or 0) > (best.start_date, best.pk or 0):
            best = period
    return best.role if best else None


def _covering(qs, when):
    return qs.filter(start_date__lte=when).filter(Q(end_date__isnull=True) | Q(end_date__gte=when))


def role_at(member_id, when):
    period = (
        _covering(RolePeriod.objects.filter(member_id=member_id), when)
        .order_by('-start_date', '-id')
        .first()
    )
    return period.role if period else None


def current_role(member_id, now=None):
    return role_at(member_id, now or timezone.now())


def history(member_id):
    """All periods of a member, oldest first."""
    if not Member.objects.filter(pk=member_id).exists():
        raise Member.DoesNotExist(f"Member {member_id} not found.")
    return list(RolePeriod.objects.filter(member_id=member_id).order_by('start_date', 'id'))


def refresh_member_role(member, now=None):
    """
    Re-derive Member.role from the timeline. A timeline with nothing covering
    `now` leaves the stored value untouched.
    """
    role = current_role(member.pk, now)
    if role and role != member.role:
        member.role = role
        member.save(update_fields=['role'])
    return role


@transaction.atomic
def add_period(member_id, role, start_date, end_date=None, reason=None, now=None):
    """
    Start a new role period for a member.

    If the period starts now or in the past, whatever period is still open is
    closed one millisecond before `start_date`. Closed periods are left alone,
    so backdating before them can produce overlaps.
    """
    _validate_role(role)
    if start_date is None:
        raise ValidationError({"start_date": "Start date is required."})
    start_date = _aware(start_date)
    end_date = _aware(end_date)
    now = now or timezone.now()

    member = Member.objects.select_for_update().get(pk=member_id)

    closed = 0
    if start_date <= now:
        closed = (RolePeriod.objects
                  .filter(member=member, end_date__isnull=True)
                  .update(end_date=start_date - CLOSE_GAP))

    period = RolePeriod.objects.create(
        member=member,
        role=role,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
    )
    refresh_member_role(member, now)

    logger.info("Member %s: added %s period from %s (closed %d open period(s))",
                member.pk, role, start_date.isoformat(), closed)
    return period


@transaction.atomic
def update_period(period_id, now=None, **changes):
    """
    Apply a partial update to one period exactly as given. Neighbouring
    periods are not re-validated or re-closed.
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")
    if "role" in changes:
        _validate_role(changes["role"])
    if "start_date" in changes and changes["start_date"] is None:
        raise ValidationError({"start_date": "Start date cannot be cleared."})

    period = RolePeriod.objects.select_for_update().select_related('member').get(pk=period_id)
    for field, value in changes.items():
        if field in ("start_date", "end_date"):
            value = _aware(value)
        setattr(period, field, value)
    if changes:
        period.save(update_fields=list(changes))

    refresh_member_role(period.member, now)
    logger.info("Role period %s updated: %s", period.pk, ", ".join(sorted(changes)) or "nothing")
    return period


@transaction.atomic
def delete_period(period_id, now=None):
    period = RolePeriod.objects.select_for_update().select_related('member').get(pk=period_id)
    member = period.member
    period.delete()

    # May resolve to None, in which case the cached role stays as it was
    refresh_member_role(member, now)
    logger.info("Role period %s of member %s deleted", period_id, member.pk)
    return member


@transaction.atomic
def initialize_role_history():
    """Give every member without a timeline an open period starting at creation."""
    created = 0
    for member in Member.objects.filter(role_periods__isnull=True):
        RolePeriod.objects.create(
            member=member,
            role=member.role,
            start_date=member.created_at,
            end_date=None,
            reason='Initial role assignment',
        )
        created += 1
    return created


def members_with_current_roles():
    """Members with `current_role` taken from their open period, else the stored role."""
    open_periods = RolePeriod.objects.filter(end_date__isnull=True).order_by('-start_date', '-id')
    members = Member.objects.prefetch_related(
        Prefetch('role_periods', queryset=open_periods, to_attr='open_periods')
    ).order_by('id')

    out = []
    for member in members:
        member.current_role = member.open_periods[0].role if member.open_periods else member.role
        out.append(member)
    return out


class TimelineSnapshot:
    """
    Every role period loaded once, for callers that resolve many (member, date)
    pairs in one go. Resolution follows the same rule as role_at().
    """

    def __init__(self, periods):
        self._by_member = defaultdict(list)
        for period in periods:
            self._by_member[period.member_id].append(period)

    @classmethod
    def load(cls):
        return cls(RolePeriod.objects.order_by('member_id', 'start_date', 'id'))

    def role_at(self, member_id, when):
        return resolve_role(self._by_member.get(member_id, ()), when)

    def guild_master_at(self, when):
        """First member, by id, whose resolved role on `when` is GUILD_MASTER."""
        for member_id in sorted(self._by_member):
            periods = self._by_member[member_id]
            if not any(p.role == MemberRole.GUILD_MASTER and p.covers(when) for p in periods):
                continue
            if resolve_role(periods, when) == MemberRole.GUILD_MASTER:
                return member_id
        return None
