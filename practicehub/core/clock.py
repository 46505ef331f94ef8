"""Reference clock used for timestamps and calendar-day computations.

Stored datetimes are UTC; a value read back without tzinfo (SQLite) is taken
as UTC. Calendar days are evaluated in the configured reference timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo

from practicehub.core.config import get_settings


class ReferenceClock:
    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()

    def local_date(self, moment: datetime) -> date:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()


def get_clock() -> ReferenceClock:
    return ReferenceClock(get_settings().tz)
