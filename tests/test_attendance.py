import pytest

from member.attendance import attendance_rate, sync_attendance, week_key, week_window, weeks_between
from member.models import Attendance, Member, MemberRole

from conftest import at

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def utc_guild(settings):
    settings.GUILD_TIME_ZONE = "UTC"


def test_week_key_for_a_monday_noon():
    assert week_key(at(2026, 10, 19)) == "2026-43"
    assert week_key(at(2026, 10, 21)) == "2026-43"


def test_week_key_uses_guild_time_zone(settings):
    settings.GUILD_TIME_ZONE = "Asia/Manila"
    # 20:00 UTC on Monday is already Tuesday 04:00 in Manila; same guild week
    assert week_key(at(2026, 10, 19, 20)) == "2026-43"
    # Sunday 20:00 UTC is Monday 04:00 in Manila, the first day of week 43
    assert week_key(at(2026, 10, 18, 20)) == "2026-43"


def test_week_window_starts_at_local_midnight():
    start, end = week_window("2026-43")
    assert start == at(2026, 10, 19, 0)
    assert end == at(2026, 10, 25, 0)


def test_sync_marks_participants_of_the_current_week(make_member, make_loot):
    carl = make_member("Carl", MemberRole.CORE)
    lem = make_member("Lemuel", MemberRole.MEMBER)
    idle = make_member("Idle", MemberRole.MEMBER)
    make_loot("Fire Ruby", 100, at(2026, 10, 19, 10), participants=[carl, lem])
    make_loot("Old Ruby", 100, at(2026, 10, 10, 10), participants=[idle])

    result = sync_attendance(now=at(2026, 10, 19))

    assert result == {"week_processed": "2026-43", "attendance_recorded": 2}
    rows = Attendance.objects.filter(week="2026-43")
    assert {r.member_id for r in rows} == {carl.pk, lem.pk}
    assert all(r.attended for r in rows)
    assert not Attendance.objects.filter(member=idle).exists()


def test_sync_is_idempotent(make_member, make_loot):
    carl = make_member("Carl", MemberRole.CORE)
    make_loot("Fire Ruby", 100, at(2026, 10, 20), participants=[carl])
    make_loot("Ice Shard", 100, at(2026, 10, 21), participants=[carl])

    sync_attendance(now=at(2026, 10, 21))
    second = sync_attendance(now=at(2026, 10, 21))

    assert second["attendance_recorded"] == 1
    assert Attendance.objects.filter(member=carl, week="2026-43").count() == 1
    assert Attendance.objects.count() == 1


def test_sync_never_clears_attendance(make_member):
    carl = make_member("Carl", MemberRole.CORE)
    Attendance.objects.create(member=carl, week="2026-43", attended=True)

    result = sync_attendance(now=at(2026, 10, 19))

    assert result["attendance_recorded"] == 0
    assert Attendance.objects.get(member=carl, week="2026-43").attended


def test_weeks_between_covers_each_week_once():
    assert weeks_between(at(2026, 10, 5), at(2026, 10, 19)) == ["2026-41", "2026-42", "2026-43"]


def test_attendance_rate_counts_missing_weeks_as_absent(make_member):
    carl = make_member("Carl", MemberRole.CORE)
    Member.objects.filter(pk=carl.pk).update(created_at=at(2026, 10, 5))
    carl.refresh_from_db()
    Attendance.objects.create(member=carl, week="2026-41", attended=True)
    Attendance.objects.create(member=carl, week="2026-43", attended=True)

    assert attendance_rate(carl, carl.attendances.all(), now=at(2026, 10, 19)) == 67
