"""A clock that runs group reminders, driven either by cron expressions or by dates."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timedelta
from typing import Callable

from groupbot.schedule import next_wake_time, should_fire
from groupbot.timer import Timer

__all__ = ["Clock"]

log = logging.getLogger(__name__)

#: Called as ``sender(self_id, grp_id, message)``; ``message`` is a list of
#: ``{"type": ..., "data": {...}}`` segments.  A ``self_id`` of 0 means any bot.
Sender = Callable[[int, int, list], None]

_MONTH_NAMES = {
    name: number
    for number, name in enumerate("jan feb mar apr may jun jul aug sep oct nov dec".split(), 1)
}
_WEEKDAY_NAMES = {name: number for number, name in enumerate("sun mon tue wed thu fri sat".split())}
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS timer ("
    "id INTEGER PRIMARY KEY, emdwhm INTEGER NOT NULL, sid INTEGER NOT NULL, "
    "gid INTEGER NOT NULL, alert TEXT NOT NULL, cron TEXT NOT NULL, url TEXT NOT NULL)"
)


def _cron_value(text: str, names: dict[str, int]) -> int:
    lowered = text.lower()
    if lowered in names:
        return names[lowered]
    if not text.isdigit():
        raise ValueError(f"invalid cron value: {text!r}")
    return int(text)


def _cron_field(text: str, low: int, high: int, names: dict[str, int]) -> frozenset[int]:
    values: set[int] = set()
    for part in text.split(","):
        if not part:
            raise ValueError(f"empty cron field part in {text!r}")
        span, slash, step_text = part.partition("/")
        step = 1
        if slash:
            if not step_text.isdigit() or int(step_text) == 0:
                raise ValueError(f"invalid cron step: {part!r}")
            step = int(step_text)
        if span in ("*", "?"):
            start, end = low, high
        else:
            first, dash, last = span.partition("-")
            start = _cron_value(first, names)
            if dash:
                end = _cron_value(last, names)
            else:
                end = high if slash else start
        if start < low or end > high or start > end:
            raise ValueError(f"cron value out of range [{low}, {high}]: {part!r}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


class _CronSchedule:
    """A five-field cron expression: minute, hour, day of month, month, weekday."""

    def __init__(self, spec: str) -> None:
        spec = spec.strip()
        if spec.startswith("@"):
            if spec.lower() not in _DESCRIPTORS:
                raise ValueError(f"unrecognized descriptor: {spec}")
            spec = _DESCRIPTORS[spec.lower()]
        fields = spec.split()
        if len(fields) != 5:
            raise ValueError(f"expected exactly 5 fields, found {len(fields)}: {spec}")
        self._minutes = _cron_field(fields[0], 0, 59, {})
        self._hours = _cron_field(fields[1], 0, 23, {})
        self._days = _cron_field(fields[2], 1, 31, {})
        self._months = _cron_field(fields[3], 1, 12, _MONTH_NAMES)
        self._weekdays = _cron_field(fields[4], 0, 6, _WEEKDAY_NAMES)
        self._day_any = fields[2].startswith(("*", "?"))
        self._weekday_any = fields[4].startswith(("*", "?"))

    def matches(self, moment: datetime) -> bool:
        if (
            moment.minute not in self._minutes
            or moment.hour not in self._hours
            or moment.month not in self._months
        ):
            return False
        day_ok = moment.day in self._days
        weekday_ok = (moment.weekday() + 1) % 7 in self._weekdays
        if self._day_any or self._weekday_any:
            return day_ok and weekday_ok
        return day_ok or weekday_ok


def _message_for(t: Timer) -> list[dict]:
    message = [
        {"type": "at", "data": {"qq": "all"}},
        {"type": "text", "data": {"text": t.alert}},
    ]
    if t.url:
        message.append({"type": "image", "data": {"file": t.url, "cache": "0"}})
    return message


class Clock:
    """Keeps reminders in memory and in SQLite and sends them when due."""

    def __init__(self, db_path, sender: Sender) -> None:
        self._sender = sender
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._db_lock = threading.Lock()
        self._timers: dict[int, Timer] = {}
        self._timers_lock = threading.RLock()
        self._entries: dict[int, _CronSchedule] = {}
        self._entries_lock = threading.Lock()
        self._wake = threading.Condition()
        self._closed = False
        with self._db_lock:
            self._db.execute(_SCHEMA)
            self._db.commit()
        self._load_timers()
        self._cron_thread = threading.Thread(target=self._run_cron, name="clock-cron", daemon=True)
        self._cron_thread.start()

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def register_timer(self, ts: Timer, save: bool, isinit: bool) -> bool:
        """Register a timer.

        A cron timer is scheduled and the call returns whether that worked.
        A date timer is stored and then watched in the calling thread until it
        is cancelled or the clock closes; that call returns False.  ``isinit``
        marks timers being restored from storage.
        """
        if save:
            key = ts.timer_id()
            ts.id = key
        else:
            key = ts.id
        old = self.get_timer(key)
        if old is not None and old is not ts:
            self._disable(old)
            with self._entries_lock:
                self._entries.pop(key, None)
        log.info("registering timer %08x%s", key, " (restored)" if isinit else "")
        if ts.cron:
            try:
                schedule = _CronSchedule(ts.cron)
            except ValueError as err:
                ts.alert = str(err)
                return False
            with self._entries_lock:
                self._entries[key] = schedule
            try:
                if save:
                    self.add_timer_into_db(ts)
                self.add_timer_into_map(ts)
            except sqlite3.Error as err:
                log.error("cannot store timer %08x: %s", key, err)
                return False
            return True
        if save:
            try:
                self.add_timer_into_db(ts)
            except sqlite3.Error as err:
                log.error("cannot store timer %08x: %s", key, err)
        self.add_timer_into_map(ts)
        self._run_date_timer(ts, key)
        return False

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget a timer; False if it is unknown or cannot be deleted."""
        t = self.get_timer(key)
        if t is None:
            return False
        if t.cron:
            with self._entries_lock:
                self._entries.pop(key, None)
        else:
            self._disable(t)
        with self._timers_lock:
            self._timers.pop(key, None)
        try:
            with self._db_lock:
                self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                self._db.commit()
        except sqlite3.Error as err:
            log.error("cannot delete timer %08x: %s", key, err)
            return False
        return True

    def list_timers(self, grp_id: int) -> list[str]:
        """Human-readable schedules of the timers of one group."""
        with self._timers_lock:
            timers = list(self._timers.values())
        lines = []
        for t in timers:
            if t.grp_id != grp_id:
                continue
            info = t.timer_info()
            msg = info[info.index("]") + 1 :] + "\n"
            msg = msg.replace("-1", "每")
            msg = msg.replace("月0日0周", "月周天")
            msg = msg.replace("月0日", "月")
            msg = msg.replace("日0周", "日")
            lines.append(msg)
        return lines

    def get_timer(self, key: int) -> Timer | None:
        with self._timers_lock:
            return self._timers.get(key)

    def add_timer_into_db(self, t: Timer) -> None:
        """Store a timer, replacing one with the same id."""
        with self._db_lock:
            self._db.execute(
                "INSERT OR REPLACE INTO timer (id, emdwhm, sid, gid, alert, cron, url) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (t.id, t.emdwhm, t.self_id, t.grp_id, t.alert, t.cron, t.url),
            )
            self._db.commit()

    def add_timer_into_map(self, t: Timer) -> None:
        with self._timers_lock:
            self._timers[t.id] = t

    def close(self) -> None:
        """Stop every timer thread and close the database."""
        with self._wake:
            if self._closed:
                return
            self._closed = True
            self._wake.notify_all()
        self._cron_thread.join()
        with self._db_lock:
            self._db.close()

    def _disable(self, t: Timer) -> None:
        with self._wake:
            t.en = False
            self._wake.notify_all()

    def _load_timers(self) -> None:
        with self._db_lock:
            rows = self._db.execute(
                "SELECT id, emdwhm, sid, gid, alert, cron, url FROM timer"
            ).fetchall()
        for row in rows:
            t = Timer(*row)
            if t.cron:
                self.register_timer(t, False, True)
            else:
                self.add_timer_into_map(t)
                threading.Thread(
                    target=self._run_date_timer, args=(t, t.id), daemon=True
                ).start()

    def _run_date_timer(self, ts: Timer, key: int) -> None:
        while ts.en and not self._closed:
            delay = (next_wake_time(ts) - datetime.now()).total_seconds()
            log.info("timer %08x sleeps %ds", key, int(delay))
            with self._wake:
                self._wake.wait_for(
                    lambda: self._closed or not ts.en,
                    timeout=min(max(delay, 0.0), threading.TIMEOUT_MAX),
                )
            if self._closed:
                break
            if should_fire(ts, datetime.now()):
                self._send(ts)

    def _run_cron(self) -> None:
        while True:
            now = datetime.now()
            due = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
            with self._wake:
                if self._wake.wait_for(
                    lambda: self._closed, timeout=(due - now).total_seconds()
                ):
                    return
            self._dispatch_due(due)

    def _dispatch_due(self, moment: datetime) -> None:
        with self._entries_lock:
            entries = list(self._entries.items())
        for key, schedule in entries:
            if schedule.matches(moment):
                t = self.get_timer(key)
                if t is not None:
                    self._send(t)

    def _send(self, t: Timer) -> None:
        try:
            self._sender(t.self_id, t.grp_id, _message_for(t))
        except Exception:
            log.exception("sending timer %08x failed", t.id)