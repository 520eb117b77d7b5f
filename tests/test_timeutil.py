from datetime import datetime

import pytz

from luckybet.core import timeutil
from luckybet.core.config import settings
from luckybet.core.timeutil import day_start, from_nanos


def test_day_zone_comes_from_day_tz():
    assert timeutil.TZ.zone == pytz.timezone(settings.DAY_TZ).zone


def test_day_start_in_zone():
    # 上海 00:00 = UTC 前一天 16:00
    shanghai = pytz.timezone("Asia/Shanghai")
    assert day_start(datetime(2026, 10, 19, 3, 0), tz=shanghai) == datetime(2026, 10, 18, 16, 0)
    assert day_start(datetime(2026, 10, 19, 17, 0), tz=shanghai) == datetime(2026, 10, 19, 16, 0)
    assert day_start(datetime(2026, 10, 19, 17, 0), tz=pytz.utc) == datetime(2026, 10, 19)


def test_from_nanos():
    assert from_nanos(1_760_832_000 * 10**9) == datetime(2025, 10, 19)
