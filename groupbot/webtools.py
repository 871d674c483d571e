"""Small web lookups: expanding pinyin abbreviations and the juejuezi phrase generator."""

from __future__ import annotations

import json

import requests

__all__ = ["guess_abbreviation", "juejuezi"]

NBNHHSH_API = "https://lab.magiconch.com/api/nbnhhsh/guess"
JUEJUEZI_API = "https://www.offjuan.com/api/juejuezi/text"
JUEJUEZI_REFERER = "https://juejuezi.offjuan.com/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)


def _as_text(value) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def guess_abbreviation(text: str) -> list[str]:
    """Possible meanings of an abbreviation made of pinyin initials.

    Known translations are preferred; otherwise the service's suggestions
    while typing are returned.  Transport failures raise.
    """
    resp = requests.post(NBNHHSH_API, data={"text": text}, timeout=30)
    try:
        result = json.loads(resp.content)
    except ValueError:
        return []
    if not isinstance(result, list) or not result or not isinstance(result[0], dict):
        return []
    first = result[0]
    values = first["trans"] if "trans" in first else first.get("inputting")
    if not isinstance(values, list):
        return []
    return [_as_text(value) for value in values]


def juejuezi(verb: str, noun: str) -> str:
    """Ask the generator for a juejuezi phrase built from a verb and a noun."""
    body = json.dumps({"verb": verb, "noun": noun}, ensure_ascii=False, separators=(",", ":"))
    resp = requests.post(
        JUEJUEZI_API,
        data=body.encode("utf-8"),
        headers={"Referer": JUEJUEZI_REFERER, "User-Agent": USER_AGENT},
        timeout=30,
    )
    try:
        result = json.loads(resp.content)
    except ValueError:
        return ""
    if not isinstance(result, dict):
        return ""
    return _as_text(result.get("text"))