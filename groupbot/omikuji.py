"""Senso-ji fortune slips: the explanation texts and the slip pictures."""

from __future__ import annotations

import sqlite3
import threading

__all__ = ["KujiStore", "omikuji_image_urls"]

KUJI_COUNT = 100


def omikuji_image_urls(number: int) -> tuple[str, str]:
    """Paths, relative to the collection's base, of the two sides of a slip."""
    if not 1 <= number <= KUJI_COUNT:
        raise ValueError(f"slip number out of range: {number}")
    return f"{number}_0.jpg", f"{number}_1.jpg"


class KujiStore:
    """Explanations of the fortune slips, read from SQLite."""

    def __init__(self, path) -> None:
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS kuji (id INTEGER PRIMARY KEY, text TEXT NOT NULL)"
            )
            self._db.commit()

    def __enter__(self) -> "KujiStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, bango: int) -> str:
        """The explanation of slip ``bango``; LookupError if it is missing."""
        with self._lock:
            row = self._db.execute("SELECT text FROM kuji WHERE id = ?", (bango,)).fetchone()
        if row is None:
            raise LookupError(f"no slip numbered {bango}")
        return row[0]

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM kuji").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()