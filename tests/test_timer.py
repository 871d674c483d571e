import pytest

from groupbot.timer import (
    Timer,
    chinese_char_to_int,
    chinese_num_to_int,
    get_filled_cron_timer,
    get_filled_timer,
)


@pytest.mark.parametrize("field", ["month", "day", "week", "hour", "minute"])
@pytest.mark.parametrize("value", [-1, 0, 1, 5])
def test_field_round_trip(field, value):
    t = Timer()
    setattr(t, field, value)
    assert getattr(t, field) == value


def test_fields_do_not_interfere():
    t = Timer()
    t.en = True
    t.month = 12
    t.day = 31
    t.week = 6
    t.hour = 23
    t.minute = 59
    assert (t.en, t.month, t.day, t.week, t.hour, t.minute) == (True, 12, 31, 6, 23, 59)
    t.day = -1
    t.en = False
    assert (t.en, t.month, t.day, t.week, t.hour, t.minute) == (False, 12, -1, 6, 23, 59)


def test_enable_flag_bit():
    t = Timer()
    t.en = True
    assert t.emdwhm == 0x800000
    t.en = False
    assert t.emdwhm == 0


def test_filled_timer_from_source_case():
    t = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False)
    assert t.month == 12
    assert t.day == 0
    assert t.week == 1
    assert t.hour == 12
    assert t.minute == 0
    assert t.alert == "test"
    assert t.en is True
    assert t.timer_info() == "[0]12月0日1周12:0"


def test_timer_id_is_stable_and_depends_on_group():
    a = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 1, False)
    b = get_filled_timer(["", "12", "-1", "12", "0", "", "other"], 0, 1, False)
    c = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 2, False)
    assert a.timer_id() == b.timer_id()
    assert a.timer_id() != c.timer_id()
    assert 0 <= a.timer_id() < 2**32


def test_cron_timer():
    t = get_filled_cron_timer("0 10 * * *", "hello", "http://img.example.com/a.png", 9, 7)
    assert t.cron == "0 10 * * *"
    assert t.alert == "hello"
    assert t.url == "http://img.example.com/a.png"
    assert (t.self_id, t.grp_id) == (9, 7)
    assert t.timer_info() == "[7]0 10 * * *"


def test_every_week_and_every_month():
    t = get_filled_timer(["", "每", "每周", "8", "30", "", "x"], 1, 2, False)
    assert t.month == -1
    assert t.week == -1
    assert t.day == 0
    assert (t.self_id, t.grp_id) == (1, 2)


def test_day_with_chinese_ten():
    t = get_filled_timer(["", "三", "二十五日", "十", "五", "", "x"], 0, 0, False)
    assert t.day == 25
    assert t.month == 3


def test_url_is_taken_after_prefix():
    t = get_filled_timer(["", "1", "1日", "1", "1", "用http://x.example.com", "x"], 0, 0, False)
    assert t.url == "http://x.example.com"
    assert t.en is True


def test_illegal_url():
    t = get_filled_timer(["", "1", "1日", "1", "1", "用ftp://x", "x"], 0, 0, False)
    assert t.url == "illegal"
    assert t.en is False


def test_match_date_only_leaves_disabled():
    t = get_filled_timer(["", "1", "1日", "1", "1"], 5, 6, True)
    assert t.en is False
    assert t.alert == ""
    assert t.grp_id == 6


@pytest.mark.parametrize(
    "strs, alert",
    [
        (["", "十三", "1日", "1", "1", "", "x"], "月份非法！"),
        (["", "每二", "1日", "1", "1", "", "x"], "月份非法！"),
        (["", "1", "三十二日", "1", "1", "", "x"], "日期非法1！"),
        (["", "1", "周日", "1", "1", "", "x"], "日期非法2！"),
        (["", "1", "周八", "1", "1", "", "x"], "星期非法！"),
        (["", "1", "1日", "二十五", "1", "", "x"], "小时非法！"),
        (["", "1", "1日", "1", "六十", "", "x"], "分钟非法！"),
    ],
)
def test_invalid_fields(strs, alert):
    t = get_filled_timer(strs, 0, 0, False)
    assert t.alert == alert
    assert t.en is False


def test_sunday_as_weekday():
    t = get_filled_timer(["", "1", "周天", "1", "1", "", "x"], 0, 0, False)
    assert t.week == 0


def test_chinese_char_digits():
    for i, c in enumerate("零一二三四五六七八九十"):
        assert chinese_char_to_int(c) == i
    assert chinese_char_to_int("日") == 7
    assert chinese_char_to_int("天") == 7
    assert chinese_char_to_int("周") == 0


@pytest.mark.parametrize(
    "text, expected",
    [("每", -1), ("每二", -2), ("十五", 15), ("二十", 20), ("12", 12), ("1a", 0)],
)
def test_chinese_num(text, expected):
    assert chinese_num_to_int(text) == expected


def test_single_chinese_digit_matches_char():
    for c in "一二三四五六七八九":
        assert chinese_num_to_int(c) == chinese_char_to_int(c)


def test_empty_number_raises():
    with pytest.raises(ValueError):
        chinese_num_to_int("")