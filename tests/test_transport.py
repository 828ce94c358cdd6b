import os
from datetime import datetime, timedelta

import pytest

from src.timetable.config import TimetableConfig
from src.timetable.errors import FetchError, TransientFetchError
from src.timetable.fetcher import PlaywrightFetcher, check_status
from src.timetable.session import SessionManager
from src.timetable.utils import is_request_allowed


@pytest.mark.parametrize("status", [200, 204, 299])
def test_success_status_passes(status):
    check_status(status, "https://etis/stu.timetable")


@pytest.mark.parametrize("status", [429, 500, 502, 503])
def test_retryable_status_is_transient(status):
    with pytest.raises(TransientFetchError):
        check_status(status, "https://etis/stu.timetable")


@pytest.mark.parametrize("status", [301, 403, 404])
def test_other_status_is_permanent(status):
    with pytest.raises(FetchError) as excinfo:
        check_status(status, "https://etis/stu.timetable")
    assert not isinstance(excinfo.value, TransientFetchError)


def test_read_only_blocks_mutations_except_login():
    assert is_request_allowed("GET", "https://etis/stu.timetable", read_only=True)
    assert not is_request_allowed("POST", "https://etis/stu.logout", read_only=True)
    assert not is_request_allowed("DELETE", "https://etis/stu.login", read_only=True)
    assert is_request_allowed(
        "POST", "https://etis/stu.login", read_only=True, allowed_posts=["stu.login"]
    )
    assert is_request_allowed("POST", "https://etis/stu.logout", read_only=False)


def test_queries_resolve_against_base_url(tmp_path):
    config = TimetableConfig(
        etis_url="https://student.psu.ru/pls/stu_cus_et/", state_dir=str(tmp_path)
    )
    fetcher = PlaywrightFetcher(config)
    assert (
        fetcher.url_for("stu.timetable?p_cons=n&p_week=3")
        == "https://student.psu.ru/pls/stu_cus_et/stu.timetable?p_cons=n&p_week=3"
    )


def test_config_paths(tmp_path):
    config = TimetableConfig(state_dir=str(tmp_path), snapshot_file="cache.json")
    assert config.snapshot_path == tmp_path / "cache.json"
    assert config.session_path == tmp_path / "etis_session.json"


def test_config_reads_environment(monkeypatch):
    monkeypatch.setenv("ETIS_USER", "student")
    monkeypatch.setenv("MAX_CONCURRENT_FETCHES", "2")
    config = TimetableConfig(_env_file=None)
    assert config.etis_user == "student"
    assert config.max_concurrent_fetches == 2


def test_session_validity_follows_file_age(tmp_path):
    manager = SessionManager(tmp_path / "etis_session.json", max_session_age_hours=24)
    assert not manager.is_session_valid()

    manager.state_file.write_text("{}", encoding="utf-8")
    assert manager.is_session_valid()

    old = (datetime.now() - timedelta(hours=30)).timestamp()
    os.utime(manager.state_file, (old, old))
    assert not manager.is_session_valid()


def test_clear_session(tmp_path):
    manager = SessionManager(tmp_path / "etis_session.json")
    manager.state_file.write_text("{}", encoding="utf-8")
    manager.clear_session()
    assert not manager.state_file.exists()
    manager.clear_session()
