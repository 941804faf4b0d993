# member/attendance.py
import logging
import math
from datetime import datetime, timedelta

import pytz
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Attendance

logger = logging.getLogger(__name__)


def guild_timezone():
    return pytz.timezone(settings.GUILD_TIME_ZONE)


def _jan1(year, tz):
    return tz.localize(datetime(year, 1, 1))


def _sunday_based_weekday(d):
    """0=Sunday ... 6=Saturday"""
    return d.isoweekday() % 7


def week_key(now=None):
    """
    Guild week number of `now` as "YYYY-WW":
        ceil((days since Jan 1 + weekday of Jan 1 + 1) / 7)
    with fractional days, evaluated in the guild's time zone.
    This is the guild's own numbering, not ISO 8601.
    """
    tz = guild_timezone()
    local_now = timezone.localtime(now or timezone.now(), tz)
    jan1 = _jan1(local_now.year, tz)
    days = (local_now - jan1).total_seconds() / 86400
    week = math.ceil((days + _sunday_based_weekday(jan1) + 1) / 7)
    return f"{local_now.year}-{week:02d}"


def week_window(key):
    """
    (start, end) of a week key: start is local midnight of the Monday-aligned
    first day, end is exactly six days later.
    """
    year, week = (int(part) for part in key.split("-"))
    tz = guild_timezone()
    offset = (week - 1) * 7 - _sunday_based_weekday(_jan1(year, tz)) + 1
    start = tz.localize(datetime(year, 1, 1) + timedelta(days=offset))
    return start, start + timedelta(days=6)


@transaction.atomic
def sync_attendance(now=None):
    """
    Mark every member who took part in loot acquired during the current week
    as attended. Only ever writes attended=True; absence is the lack of a row.
    """
    from loot.models import Participation

    week = week_key(now)
    start, end = week_window(week)

    member_ids = set(
        Participation.objects
        .filter(loot_item__date_acquired__gte=start, loot_item__date_acquired__lte=end)
        .values_list('member_id', flat=True)
    )

    for member_id in sorted(member_ids):
        Attendance.objects.update_or_create(
            member_id=member_id,
            week=week,
            defaults={'attended': True},
        )

    logger.info("Attendance synced for week %s (%s → %s): %d member(s)",
                week, start.isoformat(), end.isoformat(), len(member_ids))
    return {
        "week_processed": week,
        "attendance_recorded": len(member_ids),
    }


def weeks_between(start, end):
    """Distinct week keys touched by [start, end], in order."""
    keys = []
    cursor = start
    while cursor <= end:
        key = week_key(cursor)
        if not keys or keys[-1] != key:
            keys.append(key)
        cursor += timedelta(days=1)
    last = week_key(end)
    if not keys or keys[-1] != last:
        keys.append(last)
    return keys


def attendance_rate(member, attendances, now=None):
    """
    Percentage of weeks since the member joined with an attended row.
    Weeks without any row count as not attended.
    """
    weeks = weeks_between(member.created_at, now or timezone.now())
    attended = {a.week for a in attendances if a.attended}
    return round(100 * len(attended.intersection(weeks)) / len(weeks))
