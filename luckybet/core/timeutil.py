import pytz
from datetime import datetime

from luckybet.core.config import settings

TZ = pytz.timezone(settings.DAY_TZ)


def utc_now() -> datetime:
    # 库里统一存 naive UTC
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo:
        return dt.astimezone(pytz.utc).replace(tzinfo=None)
    return dt


def day_start(now: datetime, tz=TZ) -> datetime:
    """Start of the day containing ``now`` (naive UTC in, naive UTC out)."""
    local = pytz.utc.localize(now).astimezone(tz)
    midnight = tz.localize(datetime(local.year, local.month, local.day))
    return to_naive_utc(midnight)


def from_nanos(ns: int) -> datetime:
    return datetime.fromtimestamp(ns / 1e9, pytz.utc).replace(tzinfo=None)
