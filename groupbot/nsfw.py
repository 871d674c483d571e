"""Wording of image content ratings."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Picture", "judge", "auto_judge"]

_THRESHOLD = 0.3


@dataclass
class Picture:
    """Class probabilities reported by an image classifier."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _flags(p: Picture) -> list[str]:
    flags = []
    if p.hentai > _THRESHOLD:
        flags.append("hentai")
    if p.porn > _THRESHOLD:
        flags.append("porn")
    if p.sexy > _THRESHOLD:
        flags.append("hso")
    return flags


def judge(p: Picture) -> str:
    """A rating for an explicitly requested check."""
    if p.neutral > _THRESHOLD:
        return "普通哦"
    kind = "二次元" if p.drawings > _THRESHOLD or p.neutral < _THRESHOLD else "三次元"
    return " ".join([kind, *_flags(p)])


def auto_judge(p: Picture) -> str | None:
    """A rating for automatic checks, or None when nothing is worth saying."""
    if p.neutral > _THRESHOLD:
        return None
    flags = _flags(p)
    if not flags:
        return None
    kind = "二次元" if p.drawings > _THRESHOLD else "三次元"
    return " ".join([kind, *flags])