import csv

import pytest

from groupbot.hyaku import Poem, image_urls, load_poems

HEADER = ["番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな"]


def write_table(path, rows):
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        writer.writerows(rows)
    return path


def sample_rows(count=100):
    return [[str(i), f"poet{i}", f"k{i}", f"s{i}", f"kk{i}", f"sk{i}"] for i in range(1, count + 1)]


def test_load_poems(tmp_path):
    poems = load_poems(write_table(tmp_path / "h.csv", sample_rows()))
    assert len(poems) == 100
    assert [p.number for p in poems] == [str(i) for i in range(1, 101)]
    assert poems[41].poet == "poet42"


def test_poem_str(tmp_path):
    poem = Poem("1", "A", "B", "C", "D", "E")
    lines = str(poem).splitlines()
    assert len(lines) == 6
    assert lines[0] == "●番号：1"
    assert [line[0] for line in lines] == ["●", "◉", "○", "○", "◎", "◎"]
    assert [line.split("：")[1] for line in lines] == ["1", "A", "B", "C", "D", "E"]
    assert [line[1:].split("：")[0] for line in lines] == HEADER
    assert str(poem).endswith("\n")


def test_wrong_count(tmp_path):
    with pytest.raises(ValueError):
        load_poems(write_table(tmp_path / "h.csv", sample_rows(99)))


def test_wrong_order(tmp_path):
    rows = sample_rows()
    rows[0][0], rows[1][0] = rows[1][0], rows[0][0]
    with pytest.raises(ValueError):
        load_poems(write_table(tmp_path / "h.csv", rows))


def test_wrong_field_count(tmp_path):
    rows = sample_rows()
    rows[5] = rows[5][:5]
    with pytest.raises(ValueError):
        load_poems(write_table(tmp_path / "h.csv", rows))


def test_image_urls():
    assert image_urls(1) == ("img/001.jpg", "img/001.png")
    jpg, png = image_urls(100)
    assert jpg.endswith("100.jpg") and png.endswith("100.png")


@pytest.mark.parametrize("number", [0, 101, -5])
def test_image_urls_out_of_range(number):
    with pytest.raises(ValueError):
        image_urls(number)