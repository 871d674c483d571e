"""Helpers behind the group administration commands."""

from __future__ import annotations

import random
from typing import Callable, Sequence

__all__ = [
    "mute_minutes",
    "self_mute_minutes",
    "welcome_to_cq",
    "unescape_forward",
    "set_verify_flag",
    "set_gist_flag",
    "pick_member",
    "farewell_text",
]

#: The longest mute the chat service accepts is just under a month, in minutes.
MAX_MUTE_MINUTES = 43199

_ENABLE = frozenset({"开启", "打开", "启用"})
_DISABLE = frozenset({"关闭", "关掉", "禁用"})

_MUTE_FACTORS = {"分钟": 1, "小时": 60, "天": 60 * 24}
_SELF_MUTE_FACTORS = {
    **{unit: 1 for unit in ("分钟", "min", "mins", "m")},
    **{unit: 60 for unit in ("小时", "hour", "hours", "h")},
    **{unit: 60 * 24 for unit in ("天", "day", "days", "d")},
}

AVATAR_URL = "http://q4.qlogo.cn/g?b=qq&nk={}&s=640"
RECENT_MEMBERS = 10


def _cap(minutes: int) -> int:
    return MAX_MUTE_MINUTES if minutes >= MAX_MUTE_MINUTES + 1 else minutes


def mute_minutes(amount, unit: str) -> int:
    """Minutes to mute a member for; an unknown unit counts as minutes."""
    return _cap(int(amount) * _MUTE_FACTORS.get(unit, 1))


def self_mute_minutes(amount, unit: str) -> int:
    """Minutes a member asked to mute themselves for; English units are accepted too."""
    return _cap(int(amount) * _SELF_MUTE_FACTORS.get(unit, 1))


def welcome_to_cq(template: str, uid: int, nickname: str, gid: int, groupname: str) -> str:
    """Fill the placeholders of a welcome or farewell template with CQ codes and values."""
    uid_text = str(uid)
    replacements = (
        ("{at}", f"[CQ:at,qq={uid_text}]"),
        ("{nickname}", nickname),
        ("{avatar}", "[CQ:image,file=" + AVATAR_URL.format(uid_text) + "]"),
        ("{uid}", uid_text),
        ("{gid}", str(gid)),
        ("{groupname}", groupname),
    )
    text = template
    for placeholder, value in replacements:
        text = text.replace(placeholder, value)
    return text


def unescape_forward(content: str) -> str:
    """Undo the escaping of square brackets so forwarded CQ codes take effect."""
    return content.replace("&#91;", "[").replace("&#93;", "]")


def _switch(data: int, option: str, on_bits: int, off_mask: int) -> int | None:
    if option in _ENABLE:
        return data | on_bits
    if option in _DISABLE:
        return data & off_mask
    return None


def set_verify_flag(data: int, option: str) -> int | None:
    """Turn the join-quiz flag on or off; None when the option is not understood."""
    return _switch(data, option, 0x1, 0x7FFFFFFF_FFFFFFFE)


def set_gist_flag(data: int, option: str) -> int | None:
    """Turn gist-verified join approval on or off; None when the option is not understood."""
    return _switch(data, option, 0x10, 0x7FFFFFFF_FFFFFFFD)


def pick_member(
    members: Sequence[dict],
    choose: Callable[[Sequence[dict]], dict] | None = None,
) -> dict:
    """Pick one of the ten members who spoke most recently."""
    if not members:
        raise ValueError("no members to pick from")
    if choose is None:
        choose = random.choice
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    recent = ordered[max(0, len(ordered) - RECENT_MEMBERS):]
    return choose(recent)


def farewell_text(name: str, uid: int) -> str:
    """Default notice when a member leaves and no farewell is set."""
    return f"{name}({uid})离开了我们..."