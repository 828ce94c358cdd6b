"""Playwright session management for ETIS authentication.

SessionManager handles storage state persistence, session validation, and
the login form. Reusing the saved state keeps the portal from seeing a
fresh login on every run.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.timetable.errors import AuthenticationError, TransientFetchError
from src.timetable.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

    from src.timetable.config import TimetableConfig

logger = get_logger(__name__)


class SessionManager:
    """Manages Playwright authentication state persistence and validation.

    Saves browser storage state (cookies) to disk after a successful login
    and restores it on later runs.
    """

    def __init__(self, state_file: str | Path, max_session_age_hours: int = 24) -> None:
        """Initialize SessionManager.

        Args:
            state_file: File holding the saved storage state.
            max_session_age_hours: Maximum age of session before considering expired.
        """
        self.state_file = Path(state_file)
        self.max_session_age_hours = max_session_age_hours

        self.state_file.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(
            "session_manager_initialized",
            state_file=str(self.state_file),
            max_age_hours=max_session_age_hours,
        )

    @classmethod
    def from_config(cls, config: "TimetableConfig") -> "SessionManager":
        return cls(config.session_path, config.max_session_age_hours)

    def is_session_valid(self, now: datetime | None = None) -> bool:
        """Check if a saved session exists and is still fresh.

        Returns:
            True if session file exists and is younger than max_session_age_hours.
        """
        if not self.state_file.exists():
            logger.debug("session_check", result="missing", reason="file_not_found")
            return False

        file_mtime = datetime.fromtimestamp(self.state_file.stat().st_mtime)
        age = (now or datetime.now()) - file_mtime
        max_age = timedelta(hours=self.max_session_age_hours)

        if age > max_age:
            logger.info(
                "session_check",
                result="expired",
                age_hours=age.total_seconds() / 3600,
                max_hours=self.max_session_age_hours,
            )
            return False

        logger.debug(
            "session_check",
            result="valid",
            age_hours=age.total_seconds() / 3600,
        )
        return True

    async def save_session(self, context: "BrowserContext") -> None:
        """Save browser context storage state to disk."""
        await context.storage_state(path=str(self.state_file))
        logger.info("session_saved", path=str(self.state_file))

    async def create_context(self, browser: "Browser") -> "BrowserContext":
        """Create a browser context, restoring the saved session if valid."""
        if self.is_session_valid():
            context = await browser.new_context(storage_state=str(self.state_file))
            logger.info(
                "context_created", type="restored", state_file=str(self.state_file)
            )
        else:
            context = await browser.new_context()
            logger.info("context_created", type="fresh", reason="no_valid_session")

        return context

    async def check_page_authenticated(
        self, page: "Page", *, login_query: str, username_selector: str
    ) -> bool:
        """Check whether the page shows content rather than the login form.

        This is a soft check - returns False on any doubt.
        """
        if login_query in page.url:
            logger.debug("auth_check", result="not_authenticated", reason="login_page")
            return False

        try:
            login_field = await page.query_selector(username_selector)
        except PlaywrightError as e:
            logger.warning("auth_check_error", error=str(e), selector=username_selector)
            return False

        if login_field is not None:
            logger.debug(
                "auth_check",
                result="not_authenticated",
                reason="login_form_present",
                selector=username_selector,
            )
            return False

        logger.debug("auth_check", result="authenticated")
        return True

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(5),
        retry=retry_if_exception_type(TransientFetchError),
        reraise=True,
    )
    async def authenticate(
        self,
        page: "Page",
        config: "TimetableConfig",
        *,
        login_url: str,
    ) -> None:
        """Log in to ETIS through the login form and verify success.

        Retries on TransientFetchError but fails fast on AuthenticationError.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
            TransientFetchError: If network/temporary issues prevent login.
        """
        if not config.etis_user or not config.etis_pass:
            raise AuthenticationError("No saved session and no ETIS credentials set")

        logger.info("authentication_started", url=login_url)

        try:
            await page.goto(login_url, wait_until="domcontentloaded")
            await page.fill(config.etis_username_selector, config.etis_user)
            await page.fill(config.etis_password_selector, config.etis_pass)

            async with page.expect_navigation(wait_until="domcontentloaded"):
                await page.click(config.etis_submit_selector)

            if not await self.check_page_authenticated(
                page,
                login_query=config.login_query,
                username_selector=config.etis_username_selector,
            ):
                logger.error("authentication_failed", reason="verification_failed")
                raise AuthenticationError(
                    "Login verification failed - may be invalid credentials"
                )

            logger.info("authentication_succeeded")

        except PlaywrightTimeoutError as e:
            logger.warning("authentication_timeout", error=str(e))
            raise TransientFetchError(f"Authentication timed out: {e}") from e
        except PlaywrightError as e:
            logger.error("authentication_error", error=str(e), type=type(e).__name__)
            raise TransientFetchError(f"Authentication failed: {e}") from e

    def clear_session(self) -> None:
        """Delete saved session state file."""
        if self.state_file.exists():
            self.state_file.unlink()
            logger.info("session_cleared", path=str(self.state_file))
        else:
            logger.debug("session_clear_skipped", reason="file_not_found")
