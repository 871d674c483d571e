"""Group reminder timers: packed schedule fields and parsing of Chinese date text."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

__all__ = [
    "Timer",
    "get_filled_timer",
    "get_filled_cron_timer",
    "chinese_num_to_int",
    "chinese_char_to_int",
]

log = logging.getLogger(__name__)

_EN_MASK = 0x800000
_ALL_BITS = 0xFFFFFF

_CHINESE_DIGITS = "零一二三四五六七八九十"


@dataclass
class Timer:
    """A reminder for one group.

    The schedule lives in ``emdwhm``, a 24-bit word holding the enabled flag
    (1 bit), month (4), day (5), weekday (3), hour (5) and minute (6).  A field
    whose bits are all set reads back as -1, meaning "every".  Weekdays count
    from Sunday as 0.
    """

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    grp_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    def _field(self, shift: int, mask: int) -> int:
        value = (self.emdwhm & mask) >> shift
        return -1 if value == mask >> shift else value

    def _store(self, value: int, shift: int, mask: int) -> None:
        self.emdwhm = ((value << shift) & mask) | (self.emdwhm & (_ALL_BITS ^ mask))

    @property
    def en(self) -> bool:
        return self.emdwhm & _EN_MASK != 0

    @en.setter
    def en(self, enabled: bool) -> None:
        if enabled:
            self.emdwhm |= _EN_MASK
        else:
            self.emdwhm &= 0x7FFFFF

    @property
    def month(self) -> int:
        return self._field(19, 0x780000)

    @month.setter
    def month(self, value: int) -> None:
        self._store(value, 19, 0x780000)

    @property
    def day(self) -> int:
        return self._field(14, 0x07C000)

    @day.setter
    def day(self, value: int) -> None:
        self._store(value, 14, 0x07C000)

    @property
    def week(self) -> int:
        return self._field(11, 0x003800)

    @week.setter
    def week(self, value: int) -> None:
        self._store(value, 11, 0x003800)

    @property
    def hour(self) -> int:
        return self._field(6, 0x0007C0)

    @hour.setter
    def hour(self, value: int) -> None:
        self._store(value, 6, 0x0007C0)

    @property
    def minute(self) -> int:
        return self._field(0, 0x00003F)

    @minute.setter
    def minute(self, value: int) -> None:
        self._store(value, 0, 0x00003F)

    def timer_info(self) -> str:
        """Canonical text describing the group and the schedule."""
        if self.cron:
            return f"[{self.grp_id}]{self.cron}"
        return (
            f"[{self.grp_id}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def timer_id(self) -> int:
        """First four bytes of the MD5 of :meth:`timer_info`, little endian."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")


def get_filled_cron_timer(croncmd: str, alert: str, img: str, botqq: int, gid: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(self_id=botqq, grp_id=gid, alert=alert, cron=croncmd, url=img)


def _drop_middle_ten(text: str) -> str:
    return text[0] + text[2]


def get_filled_timer(date_strs, botqq: int, grp: int, match_date_only: bool) -> Timer:
    """Build a timer from the groups of a reminder command match.

    ``date_strs`` holds the whole match followed by month, day-or-week, hour,
    minute and, unless ``match_date_only``, the optional ``用<url>`` part and
    the alert text.  An invalid field leaves the timer disabled with the
    reason in ``alert``.
    """
    month_str, day_week_str, hour_str, minute_str = date_strs[1:5]
    t = Timer()

    mon = chinese_num_to_int(month_str)
    if (mon != -1 and mon <= 0) or mon > 12:
        t.alert = "月份非法！"
        return t
    t.month = mon

    if not day_week_str:
        raise ValueError("empty day or week field")
    if len(day_week_str) == 4:
        d = chinese_num_to_int(_drop_middle_ten(day_week_str))
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法1！"
            return t
        t.day = d
    elif day_week_str[-1] == "日":
        d = chinese_num_to_int(day_week_str[:-1])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法2！"
            return t
        t.day = d
    elif day_week_str[0] == "每":
        t.week = -1
    else:
        w = chinese_num_to_int(day_week_str[1:])
        if w == 7:
            w = 0
        if w < 0 or w > 6:
            t.alert = "星期非法！"
            return t
        t.week = w

    if len(hour_str) == 3:
        hour_str = _drop_middle_ten(hour_str)
    h = chinese_num_to_int(hour_str)
    if h < -1 or h > 23:
        t.alert = "小时非法！"
        return t
    t.hour = h

    if len(minute_str) == 3:
        minute_str = _drop_middle_ten(minute_str)
    minute = chinese_num_to_int(minute_str)
    if minute < -1 or minute > 59:
        t.alert = "分钟非法！"
        return t
    t.minute = minute

    if not match_date_only:
        url_str = date_strs[5]
        if url_str:
            # drop the leading "用", three bytes in UTF-8
            t.url = url_str.encode("utf-8")[3:].decode("utf-8", errors="replace")
            log.debug("timer url: %s", t.url)
            if not t.url.startswith("http"):
                t.url = "illegal"
                log.debug("timer url is illegal")
                return t
        t.alert = date_strs[6]
        t.en = True
    t.self_id = botqq
    t.grp_id = grp
    return t


def chinese_num_to_int(text: str) -> int:
    """Convert a number of at most two Chinese or ASCII digits.

    ``每`` alone reads as -1 and ``每二`` as -2; anything unparsable falls back
    to 0 or -1 as the digit rules give.
    """
    if not text:
        raise ValueError("empty number")
    first = text[0]
    if first.isdecimal():
        return int(text) if text.isascii() and text.isdigit() else 0
    if first == "每":
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(first)
    ten = chinese_char_to_int(first)
    if ten != 10:
        ten *= 10
    ge = chinese_char_to_int(text[1])
    if ge == 10:
        ge = 0
    return ten + ge


def chinese_char_to_int(c: str) -> int:
    """Map one Chinese numeral to 0..10; 日 and 天 (Sunday) map to 7."""
    if c in ("日", "天"):
        return 7
    index = _CHINESE_DIGITS.find(c)
    return index if index >= 0 and len(c) == 1 else 0