"""The Ogura Hyakunin Isshu: one hundred poems read from a CSV table."""

from __future__ import annotations

import csv
from dataclasses import astuple, dataclass
from pathlib import Path

__all__ = ["Poem", "load_poems", "image_urls"]

POEM_COUNT = 100

_LABELS = (
    ("●", "番号"),
    ("◉", "歌人"),
    ("○", "上の句"),
    ("○", "下の句"),
    ("◎", "上の句ひらがな"),
    ("◎", "下の句ひらがな"),
)


@dataclass(frozen=True)
class Poem:
    """One poem with its number, poet, both halves and their kana readings."""

    number: str
    poet: str
    kami: str
    shimo: str
    kami_kana: str
    shimo_kana: str

    def __str__(self) -> str:
        return "".join(
            f"{mark}{label}：{value}\n" for (mark, label), value in zip(_LABELS, astuple(self))
        )


def load_poems(path) -> list[Poem]:
    """Read the table; it must hold a title row and poems 1 to 100 in order."""
    with Path(path).open(newline="", encoding="utf-8-sig") as f:
        records = list(csv.reader(f))
    records = records[1:]
    if len(records) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for index, record in enumerate(records):
        if len(record) != len(_LABELS):
            raise ValueError("invalid csvfile")
        if int(record[0]) - 1 != index:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*record))
    return poems


def image_urls(number: int) -> tuple[str, str]:
    """Paths, relative to the collection's base, of a poem's two pictures."""
    if not 1 <= number <= POEM_COUNT:
        raise ValueError("超出范围")
    return f"img/{number:03d}.jpg", f"img/{number:03d}.png"