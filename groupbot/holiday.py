"""Holiday countdowns for the daily slacking-off reminder."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as _date_type
from datetime import datetime, timedelta
from typing import Iterable

__all__ = ["Holiday", "parse_holiday", "format_holiday", "weekend", "moyu_message"]

_GREETING = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，去厕所，"
    "去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
_CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_FIELDS = re.compile(
    r"\s*([+-]?\d+)(?:_\s*([+-]?\d+)(?:_\s*([+-]?\d+)(?:_\s*([+-]?\d+))?)?)?"
)


@dataclass
class Holiday:
    """A holiday starting at ``date`` and lasting ``dur``."""

    name: str
    date: datetime
    dur: timedelta

    def describe(self, now: datetime | None = None) -> str:
        """How far away the holiday is, or whether it is on or over."""
        if now is None:
            now = datetime.now()
        remaining = self.date - now
        if remaining >= timedelta(0):
            days = remaining.total_seconds() / 86400
            return f"距离{self.name}还有: {days:.2f}天！"
        if remaining + self.dur >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"


def _normalized_date(year: int, month: int, day: int) -> datetime:
    carry, month0 = divmod(month - 1, 12)
    year += carry
    if year < 1:
        return datetime.min
    if year > 9999:
        return datetime.max
    try:
        return datetime(year, month0 + 1, 1) + timedelta(days=day - 1)
    except OverflowError:
        return datetime.min if day < 1 else datetime.max


def parse_holiday(name: str, value: str) -> Holiday:
    """Read ``dur_year_month_day``; fields that cannot be read count as 0."""
    numbers = [0, 0, 0, 0]
    match = _FIELDS.match(value)
    if match:
        numbers = [int(group) if group is not None else 0 for group in match.groups()]
    dur, year, month, day = numbers
    return Holiday(name, _normalized_date(year, month, day), timedelta(days=dur))


def format_holiday(name: str, dur: int, year: int, month: int, day: int) -> tuple[str, str]:
    """The registry key and value under which a holiday is published."""
    return f"holiday/{name}", f"{dur}_{year}_{month}_{day}"


def weekend(today: _date_type) -> str:
    """Days left until the weekend, or a greeting on a weekend day."""
    weekday = (today.weekday() + 1) % 7
    if weekday in (0, 6):
        return "好好享受周末吧！"
    return f"距离周末还有:{5 - weekday}天！"


def moyu_message(today: datetime, holidays: Iterable[Holiday]) -> str:
    """The full daily reminder text."""
    parts = [today.strftime("%Y-%m-%d"), _GREETING, weekend(today)]
    for holiday in holidays:
        parts.append("\n")
        parts.append(holiday.describe(today))
    parts.append("\n")
    parts.append(_CLOSING)
    return "".join(parts)