from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from personal_os.domain.ports import Clock


class SystemClock(Clock):
    def __init__(self, tz_name: str) -> None:
        self._tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        # local calendar day, used for overdue due dates
        return self.now().date()
