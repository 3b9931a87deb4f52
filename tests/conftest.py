"""
Shared pytest fixtures for RestroBoard.

Engine tests only need the ``at`` helper; API tests use the clients and the
catalog factories, which require the ``db`` fixture.
"""

from datetime import datetime, timedelta

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from availability.timeofday import Weekday, parse_hhmm
from inventory.models import FoodCategory, MenuItem, SpecialItem

# 5 January 2025 was a Sunday, the first day of the wire week
_SUNDAY = datetime(2025, 1, 5)


def moment(day, hhmm):
    """Naive local datetime falling on ``day`` at ``"HH:MM"``."""
    return _SUNDAY + timedelta(days=int(Weekday(day)), minutes=parse_hhmm(hhmm))


@pytest.fixture
def at():
    return moment


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username='manager', password='secret-pass', is_staff=True)


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def customer_client(db):
    user = User.objects.create_user(username='guest', password='secret-pass')
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def make_category(db):
    def _make(name, schedule=None, **fields):
        category = FoodCategory.objects.create(name=name, **fields)
        if schedule is not None:
            category.schedule = schedule
            category.save(update_fields=['schedule'])
        return category
    return _make


@pytest.fixture
def make_item(db):
    def _make(name, *categories, **fields):
        fields.setdefault('price', '120.00')
        item = MenuItem.objects.create(name=name, **fields)
        item.categories.set(categories)
        return item
    return _make


@pytest.fixture
def make_special(db):
    def _make(name, days, **fields):
        fields.setdefault('price', '150.00')
        return SpecialItem.objects.create(name=name, days=list(days), **fields)
    return _make


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin ``inventory.services.local_now`` to a chosen instant."""
    from inventory import services

    def _freeze(day, hhmm):
        pinned = moment(day, hhmm)
        monkeypatch.setattr(services, 'local_now', lambda: pinned)
        return pinned
    return _freeze
