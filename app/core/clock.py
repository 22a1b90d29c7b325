"""
app.core.clock
~~~~~~~~~~~~~~

消息时间戳格式化。

时间戳在广播时生成，统一使用配置的固定时区（``settings.DISPLAY_TIMEZONE``），
不跟随服务器本地时区，这样不同部署下客户端看到的时间一致。
"""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from app.core.config import settings

# 两位小时 + 两位分钟，例如 "03:07 PM"
_TIME_FORMAT: str = "%I:%M %p"


def display_time(now: datetime | None = None, tz_name: str | None = None) -> str:
    """返回展示用的时刻字符串。

    Args:
        now: 指定时刻（测试用）。不带时区信息时按 UTC 处理。
        tz_name: IANA 时区名，默认读取 ``settings.DISPLAY_TIMEZONE``。
    """
    tz = ZoneInfo(tz_name or settings.DISPLAY_TIMEZONE)
    if now is None:
        moment = datetime.now(tz)
    elif now.tzinfo is None:
        moment = now.replace(tzinfo=ZoneInfo("UTC")).astimezone(tz)
    else:
        moment = now.astimezone(tz)
    return moment.strftime(_TIME_FORMAT)
