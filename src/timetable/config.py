"""Timetable configuration loaded from environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class TimetableConfig(BaseSettings):
    """Timetable configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # ETIS portal (server-rendered pages behind a login form)
    etis_url: str = Field(
        default="https://student.psu.ru/pls/stu_cus_et/",
        description="ETIS base URL, queries are resolved relative to it",
    )
    etis_user: str = Field(
        default="",
        description="ETIS username for the login form",
    )
    etis_pass: str = Field(
        default="",
        description="ETIS password for the login form",
    )

    # Page queries
    index_query: str = Field(
        default="stu.timetable",
        description="Query of the page listing the published weeks",
    )
    week_query: str = Field(
        default="stu.timetable?p_cons=n&p_week={week}",
        description="Query template of a single week view ({week} = week number)",
    )
    login_query: str = Field(
        default="stu.login",
        description="Query of the login form",
    )

    # Paths
    state_dir: str = Field(
        default="data/state",
        description="Directory for the browser session and the cached snapshot",
    )
    snapshot_file: str = Field(
        default="timetable.json",
        description="File name of the cached snapshot inside state_dir",
    )

    # Session / fetch settings
    max_session_age_hours: int = Field(
        default=24,
        description="Maximum age of the browser session before re-authentication",
    )
    max_concurrent_fetches: int = Field(
        default=4,
        ge=1,
        description="Upper bound on week pages fetched at the same time",
    )
    fetch_timeout_ms: int = Field(
        default=30000,
        description="Timeout for a single page request",
    )
    headless: bool = Field(
        default=True,
        description="Run Chromium without a visible window",
    )

    # Login form selectors
    etis_username_selector: str = Field(
        default="input[name='p_username']",
        description="CSS selector for the username input on the login page",
    )
    etis_password_selector: str = Field(
        default="input[name='p_password']",
        description="CSS selector for the password input on the login page",
    )
    etis_submit_selector: str = Field(
        default="input[type='submit']",
        description="CSS selector for the login submit button",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def snapshot_path(self) -> Path:
        return Path(self.state_dir) / self.snapshot_file

    @property
    def session_path(self) -> Path:
        return Path(self.state_dir) / "etis_session.json"


# Singleton pattern
_config: TimetableConfig | None = None


def get_config() -> TimetableConfig:
    """Get the timetable configuration singleton.

    Returns:
        TimetableConfig: Timetable configuration instance
    """
    global _config
    if _config is None:
        _config = TimetableConfig()
    return _config
