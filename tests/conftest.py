"""Pytest configuration and shared fixtures."""

import random
import uuid
from datetime import datetime, timedelta

import pytest
from dateutil import tz

from opendecks_core.config import DEFAULT_CONFIG
from opendecks_core.domain.clock import ZoneClock
from opendecks_core.domain.models import Category, Participant
from opendecks_core.domain.timegrid import NightGrid
from opendecks_core.service import KioskService

ZONE_NAME = "Europe/London"
LONDON = tz.gettz(ZONE_NAME)


def local(y, mo, d, h=0, mi=0, s=0):
    return tz.resolve_imaginary(datetime(y, mo, d, h, mi, s, tzinfo=LONDON))


def person(name, category=Category.FEMALE, at=None):
    return Participant(
        id=str(uuid.uuid4()),
        display_name=name,
        category=category,
        signed_up_at=at or local(2025, 9, 5, 20, 0),
    )


class FakeNow:
    """Callable clock source; always returns a UTC instant."""

    def __init__(self, instant):
        self.instant = instant.astimezone(tz.UTC)

    def __call__(self):
        return self.instant

    def set(self, instant):
        self.instant = instant.astimezone(tz.UTC)

    def advance(self, **kwargs):
        self.instant = self.instant + timedelta(**kwargs)


@pytest.fixture
def grid() -> NightGrid:
    return NightGrid(cfg=DEFAULT_CONFIG, zone=LONDON)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1796)


@pytest.fixture
def fake_now() -> FakeNow:
    return FakeNow(local(2025, 9, 5, 20, 0))


@pytest.fixture
def service(fake_now, rng) -> KioskService:
    return KioskService(DEFAULT_CONFIG, clock=ZoneClock(ZONE_NAME, source=fake_now), rng=rng)


@pytest.fixture
def tonight(grid):
    return grid.windows_for(local(2025, 9, 5))
