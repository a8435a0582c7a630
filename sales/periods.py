"""统计周期截止时间计算。

截止时间总是 `now` 所在时区的零点：
- today: 当天零点
- week:  最近一个周日零点（周日为一周第一天）
- month: 当月1日零点
"""
from datetime import datetime, time, timedelta
from typing import Optional, Union

from .models import Period


def period_cutoff(period: Union[Period, str, None], now: datetime) -> datetime:
    """计算统计周期的起始时间。

    Args:
        period: 统计周期，无法识别时按 today 处理。
        now: 参考时间（由调用方注入）。

    Returns:
        截止时间，保留 now 的 tzinfo。
    """
    period = Period.parse(period)
    today = now.date()

    if period is Period.WEEK:
        # date.weekday(): 周一为0，换算成距离上一个周日的天数
        start = today - timedelta(days=(today.weekday() + 1) % 7)
    elif period is Period.MONTH:
        start = today.replace(day=1)
    else:
        start = today

    return datetime.combine(start, time.min, tzinfo=now.tzinfo)


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    """解析时间戳，支持 datetime 对象和 ISO-8601 字符串，无法解析返回 None。"""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            # 兼容 JavaScript toISOString() 的 "Z" 后缀
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def occurred_since(value: Union[datetime, str, None], cutoff: datetime) -> bool:
    """判断时间戳是否不早于截止时间。

    按时间值比较，不对记录做按天截断。naive 时间与带时区的截止时间
    比较时，naive 时间视为截止时间所在时区的本地时间。
    """
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return False

    if timestamp.tzinfo is None and cutoff.tzinfo is not None:
        timestamp = timestamp.replace(tzinfo=cutoff.tzinfo)
    elif timestamp.tzinfo is not None and cutoff.tzinfo is None:
        timestamp = timestamp.astimezone().replace(tzinfo=None)

    return timestamp >= cutoff
