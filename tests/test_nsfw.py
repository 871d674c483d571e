from groupbot.nsfw import Picture, auto_judge, judge


def test_judge_neutral():
    assert judge(Picture(neutral=0.5)) == "普通哦"


def test_judge_all_flags():
    result = judge(Picture(neutral=0.1, hentai=0.5, porn=0.5, sexy=0.5))
    assert result.split() == ["二次元", "hentai", "porn", "hso"]


def test_judge_low_neutral_counts_as_drawing():
    assert judge(Picture()) == "二次元"


def test_judge_boundary_neutral():
    assert judge(Picture(neutral=0.3)) == "三次元"
    assert judge(Picture(neutral=0.3, drawings=0.4)) == "二次元"


def test_auto_judge_silent_cases():
    assert auto_judge(Picture(neutral=0.5, porn=0.9)) is None
    assert auto_judge(Picture(drawings=0.9)) is None


def test_auto_judge_kinds():
    assert auto_judge(Picture(drawings=0.5, porn=0.9)).split() == ["二次元", "porn"]
    assert auto_judge(Picture(sexy=0.5)).split() == ["三次元", "hso"]


def test_auto_judge_flag_order():
    words = auto_judge(Picture(sexy=0.9, hentai=0.9)).split()
    assert words[1:] == ["hentai", "hso"]