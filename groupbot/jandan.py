"""A store of picture links, keyed by the CRC-64 of each link."""

from __future__ import annotations

import sqlite3
import threading

__all__ = ["crc64_iso", "PictureStore"]

_ISO_POLY_REFLECTED = 0xD800000000000000
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _make_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ _ISO_POLY_REFLECTED if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _make_table()


def crc64_iso(data: bytes) -> int:
    """CRC-64 with the ISO 3309 polynomial, reflected, inverted in and out."""
    crc = _MASK64
    for byte in data:
        crc = _TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK64


def _signed(value: int) -> int:
    """Fit an unsigned 64-bit id into SQLite's signed integer."""
    return value - (1 << 64) if value >= 1 << 63 else value


class PictureStore:
    """Picture URLs in SQLite, each under the CRC-64 of its text."""

    def __init__(self, path) -> None:
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.RLock()
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS picture (id INTEGER PRIMARY KEY, url TEXT NOT NULL)"
            )
            self._db.commit()

    def __enter__(self) -> "PictureStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def add(self, url: str) -> bool:
        """Store a URL; False if it was already there."""
        picture_id = crc64_iso(url.encode("utf-8"))
        with self._lock:
            if self.contains(picture_id):
                return False
            self._db.execute(
                "INSERT INTO picture (id, url) VALUES (?, ?)", (_signed(picture_id), url)
            )
            self._db.commit()
        return True

    def contains(self, picture_id: int) -> bool:
        """Whether a picture with this id is stored."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM picture WHERE id = ?", (_signed(picture_id),)
            ).fetchone()
        return row is not None

    def random_url(self) -> str:
        """One stored URL picked at random; LookupError when there is none."""
        with self._lock:
            row = self._db.execute(
                "SELECT url FROM picture ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError("no pictures stored")
        return row[0]

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM picture").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()