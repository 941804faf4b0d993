"""
Shared fixtures for the guildmanager test suite.

Times are fixed, timezone-aware datetimes in the past so that adding a role
period always closes the open one (start <= now).
"""
from datetime import datetime

import pytest
import pytz
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from boss.models import Boss
from loot.models import LootItem, Participation
from member.models import Member, MemberRole
from member.role_timeline import add_period

User = get_user_model()


def at(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=pytz.UTC)


@pytest.fixture
def api_client():
    return APIClient()


def _bearer_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username="boksme", password="boksme123", is_staff=True)


@pytest.fixture
def plain_user(db):
    return User.objects.create_user(username="visitor", password="visitor123")


@pytest.fixture
def admin_client(admin_user):
    return _bearer_client(admin_user)


@pytest.fixture
def user_client(plain_user):
    return _bearer_client(plain_user)


@pytest.fixture
def boss(db):
    return Boss.objects.create(name="Dragon King", type=Boss.BossType.NORMAL, respawn_time=120)


@pytest.fixture
def make_member(db):
    """make_member("Carl", MemberRole.CORE, since=at(2025, 1, 1)) -> member with one open period"""
    def _make(name, role=MemberRole.MEMBER, since=None):
        member = Member.objects.create(name=name, role=role)
        if since is not None:
            add_period(member.pk, role, since, None, "Initial member creation")
        return member
    return _make


@pytest.fixture
def make_loot(boss):
    def _make(name, value, acquired, participants=(), status=LootItem.Status.SOLD, loot_boss=None):
        item = LootItem.objects.create(
            name=name,
            value=value,
            date_acquired=acquired,
            status=status,
            boss=loot_boss or boss,
        )
        for member in participants:
            Participation.objects.create(loot_item=item, member=member)
        return item
    return _make
