import datetime as dt
import re
from typing import Any
from zoneinfo import ZoneInfo

from sitework.core.config import settings

_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_DMY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def local_today() -> dt.date:
    return dt.datetime.now(ZoneInfo(settings.TZ)).date()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def coerce_date(v: Any) -> dt.date | None:
    """Accept date/datetime, ``YYYY-MM-DD[...]`` or ``DD/MM/YYYY``; blank and "null" mean no date."""
    if v is None:
        return None
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    s = str(v).strip()
    if not s or s.lower() == "null":
        return None
    m = _ISO.match(s)
    if m:
        return dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _DMY.match(s)
    if m:
        return dt.date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    raise ValueError(f"Unrecognized date: {s!r}")


def is_delayed(planned_end_date: dt.date | None, status: str, today: dt.date | None = None) -> bool:
    """Advisory flag, never written back to ``status``."""
    if planned_end_date is None or status == "Completed":
        return False
    return planned_end_date < (today or local_today())
