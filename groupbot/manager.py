"""Group management storage: welcome and farewell texts and gist-verified members."""

from __future__ import annotations

import hashlib
import logging
import re
import sqlite3
import threading
import time
from typing import Callable

__all__ = ["ManagerStore", "parse_gist_answer", "gist_url"]

log = logging.getLogger(__name__)

GIST_RAW = "https://gist.githubusercontent.com/{}/{}/raw/{}"
ANSWER_MARKER = "答案："
MAX_SKEW_SECONDS = 600

_INT64 = re.compile(r"[+-]?[0-9]+")

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS welcome (gid INTEGER PRIMARY KEY, msg TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS farewell (gid INTEGER PRIMARY KEY, msg TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT NOT NULL)",
)

Fetch = Callable[[str], bytes]


def gist_url(ghun: str, gist_hash: str, gid: int) -> str:
    """Raw URL of the gist file named after the MD5 of the group number."""
    gidhex = hashlib.md5(str(gid).encode("utf-8")).hexdigest()
    return GIST_RAW.format(ghun, gist_hash, gidhex)


def parse_gist_answer(comment: str) -> tuple[str, str]:
    """Split the answer of a join request into GitHub user name and gist hash.

    The answer follows ``答案：`` and has the form ``username/gisthash``.
    """
    raw = comment.encode("utf-8")
    marker = ANSWER_MARKER.encode("utf-8")
    ans = raw[raw.find(marker) + len(marker):]
    divi = ans.find(b"/")
    if divi <= 0:
        raise ValueError("格式错误!")
    ghun = ans[:divi].decode("utf-8", errors="replace")
    gist_hash = ans[divi + 1:].decode("utf-8", errors="replace")
    return ghun, gist_hash


def _default_fetch(url: str) -> bytes:
    import requests

    resp = requests.get(url, timeout=30)
    resp.raise_for_status()
    return resp.content


class ManagerStore:
    """SQLite-backed welcome and farewell messages and verified members."""

    def __init__(self, db_path) -> None:
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            for statement in _SCHEMA:
                self._db.execute(statement)
            self._db.commit()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _set_message(self, table: str, gid: int, msg: str) -> None:
        with self._lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO {table} (gid, msg) VALUES (?, ?)", (gid, msg)
            )
            self._db.commit()

    def _message(self, table: str, gid: int) -> str | None:
        with self._lock:
            row = self._db.execute(
                f"SELECT msg FROM {table} WHERE gid = ?", (gid,)
            ).fetchone()
        return row[0] if row else None

    def set_welcome(self, gid: int, msg: str) -> None:
        """Store the welcome template of a group, replacing any earlier one."""
        self._set_message("welcome", gid, msg)

    def welcome(self, gid: int) -> str | None:
        """The welcome template of a group, or None if none is set."""
        return self._message("welcome", gid)

    def set_farewell(self, gid: int, msg: str) -> None:
        """Store the farewell template of a group, replacing any earlier one."""
        self._set_message("farewell", gid, msg)

    def farewell(self, gid: int) -> str | None:
        """The farewell template of a group, or None if none is set."""
        return self._message("farewell", gid)

    def has_member(self, ghun: str) -> bool:
        """Whether a GitHub user has already joined through gist verification."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM member WHERE ghun = ? LIMIT 1", (ghun,)
            ).fetchone()
        return row is not None

    def check_new_user(
        self,
        qq: int,
        gid: int,
        ghun: str,
        gist_hash: str,
        fetch: Fetch | None = None,
        now: float | None = None,
    ) -> tuple[bool, str]:
        """Verify a join request against the applicant's gist.

        The gist must hold a unix timestamp within ten minutes of ``now``.
        Returns whether to accept and, if not, the reason.
        """
        if self.has_member(ghun):
            return False, "该github用户已入群"
        if fetch is None:
            fetch = _default_fetch
        if now is None:
            now = time.time()
        url = gist_url(ghun, gist_hash, gid)
        log.debug("visit gist url: %s", url)
        try:
            data = fetch(url)
        except Exception as err:  # any transport failure is reported to the applicant
            return False, f"无法连接到gist: {err}"
        text = data.decode("utf-8", errors="replace")
        log.debug("gist data: %s", text)
        if not _INT64.fullmatch(text):
            return False, "时间戳格式错误: " + text
        stamp = int(text)
        if not -(2**63) <= stamp < 2**63:
            return False, "时间戳格式错误: " + text
        if abs(int(now) - stamp) >= MAX_SKEW_SECONDS:
            return False, "时间戳超时"
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, ghun)
            )
            self._db.commit()
        return True, ""

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()