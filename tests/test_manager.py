import pytest

from groupbot.manager import ManagerStore, gist_url, parse_gist_answer

NOW = 1_650_000_000


@pytest.fixture
def store(tmp_path):
    s = ManagerStore(tmp_path / "config.db")
    yield s
    s.close()


def test_welcome_round_trip_and_replace(store):
    assert store.welcome(1) is None
    store.set_welcome(1, "hello {at}")
    assert store.welcome(1) == "hello {at}"
    store.set_welcome(1, "bye")
    assert store.welcome(1) == "bye"


def test_farewell_separate_from_welcome(store):
    store.set_welcome(5, "w")
    assert store.farewell(5) is None
    store.set_farewell(5, "f")
    assert store.farewell(5) == "f"
    assert store.welcome(5) == "w"


def test_persists_across_reopen(tmp_path):
    path = tmp_path / "c.db"
    with ManagerStore(path) as s:
        s.set_welcome(9, "kept")
    with ManagerStore(path) as s:
        assert s.welcome(9) == "kept"


def test_gist_url_uses_md5_of_group():
    assert gist_url("alice", "abc", 1) == (
        "https://gist.githubusercontent.com/alice/abc/raw/c4ca4238a0b923820dcc509a6f75849b"
    )


def test_check_new_user_accepts_fresh_timestamp(store):
    seen = []

    def fetch(url):
        seen.append(url)
        return str(NOW - 100).encode()

    ok, reason = store.check_new_user(10, 20, "alice", "hash", fetch=fetch, now=NOW)
    assert (ok, reason) == (True, "")
    assert seen == [gist_url("alice", "hash", 20)]
    assert store.has_member("alice")


def test_check_new_user_rejects_existing_member(store):
    fetch = lambda url: str(NOW).encode()
    assert store.check_new_user(1, 2, "bob", "h", fetch=fetch, now=NOW)[0]
    assert store.check_new_user(3, 2, "bob", "h", fetch=fetch, now=NOW) == (
        False,
        "该github用户已入群",
    )


def test_check_new_user_timeout(store):
    fetch = lambda url: str(NOW - 600).encode()
    assert store.check_new_user(1, 2, "carol", "h", fetch=fetch, now=NOW) == (
        False,
        "时间戳超时",
    )
    assert not store.has_member("carol")


def test_check_new_user_bad_format(store):
    fetch = lambda url: b"abc"
    assert store.check_new_user(1, 2, "dave", "h", fetch=fetch, now=NOW) == (
        False,
        "时间戳格式错误: abc",
    )


def test_check_new_user_fetch_error(store):
    def fetch(url):
        raise OSError("down")

    ok, reason = store.check_new_user(1, 2, "eve", "h", fetch=fetch, now=NOW)
    assert not ok
    assert reason == "无法连接到gist: down"


def test_parse_gist_answer():
    assert parse_gist_answer("问题：验证\n答案：alice/abc123") == ("alice", "abc123")


@pytest.mark.parametrize("comment", ["答案：/abc", "答案：noslash"])
def test_parse_gist_answer_rejects(comment):
    with pytest.raises(ValueError, match="格式错误"):
        parse_gist_answer(comment)