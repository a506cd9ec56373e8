# opendecks_core/domain/clock.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Optional

from dateutil import tz


def zone_for(name: str) -> tzinfo:
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


@dataclass
class ZoneClock:
    """Current time in a fixed civil timezone (DST rules from the tz database).

    `source` returns a UTC-aware instant; tests swap it for a fixed value.
    """
    timezone_name: str
    source: Optional[Callable[[], datetime]] = None
    zone: tzinfo = field(init=False)

    def __post_init__(self) -> None:
        self.zone = zone_for(self.timezone_name)

    def now(self) -> datetime:
        if self.source is None:
            return datetime.now(tz=self.zone)
        return self.source().astimezone(self.zone)

    def localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            # naive values are local wall-clock times
            return tz.resolve_imaginary(instant.replace(tzinfo=self.zone))
        return instant.astimezone(self.zone)
