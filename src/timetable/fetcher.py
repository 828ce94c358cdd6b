"""Transport for ETIS pages.

``HtmlFetcher`` is all the builder needs: page HTML for a query.
``PlaywrightFetcher`` implements it with a logged-in Chromium context; each
fetch opens its own page so several weeks can load at once.
"""

import asyncio
from types import TracebackType
from typing import Protocol
from urllib.parse import urljoin

from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.timetable.config import TimetableConfig, get_config
from src.timetable.errors import AuthenticationError, FetchError, TransientFetchError
from src.timetable.logging import get_logger
from src.timetable.session import SessionManager
from src.timetable.utils import configure_context_for_scraping

log = get_logger(__name__)


class HtmlFetcher(Protocol):
    async def fetch(self, query: str) -> str:
        """Return the HTML of the page for ``query``.

        Raises:
            FetchError: If the page cannot be retrieved.
        """
        ...


def check_status(status: int, url: str) -> None:
    """Raise the matching FetchError for a non-success HTTP status."""
    if 200 <= status < 300:
        return
    if status == 429 or status >= 500:
        raise TransientFetchError(f"HTTP {status} for {url}")
    raise FetchError(f"HTTP {status} for {url}")


class PlaywrightFetcher:
    """Fetches ETIS pages through an authenticated Playwright browser.

    Use as an async context manager. The browser starts on the first fetch,
    so a run served from the cache never launches Chromium; leaving the
    context closes everything.
    """

    def __init__(
        self,
        config: TimetableConfig | None = None,
        session: SessionManager | None = None,
    ) -> None:
        self.config = config or get_config()
        self.session = session or SessionManager.from_config(self.config)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._start_lock = asyncio.Lock()
        self._entered = False

    def url_for(self, query: str) -> str:
        return urljoin(self.config.etis_url, query)

    async def __aenter__(self) -> "PlaywrightFetcher":
        self._entered = True
        return self

    async def _start(self) -> BrowserContext:
        async with self._start_lock:
            if self._context is None:
                await self._launch()
        return self._context

    async def _launch(self) -> None:
        log.info("browser_starting", headless=self.config.headless)
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless
            )
            self._context = await self.session.create_context(self._browser)
            await configure_context_for_scraping(
                self._context,
                read_only=True,
                allowed_posts=[self.config.login_query],
                timeout_ms=self.config.fetch_timeout_ms,
            )
            await self._ensure_logged_in()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._entered = False
        await self.close()

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _ensure_logged_in(self) -> None:
        page = await self._context.new_page()
        try:
            await page.goto(
                self.url_for(self.config.index_query), wait_until="domcontentloaded"
            )
            if await self.session.check_page_authenticated(
                page,
                login_query=self.config.login_query,
                username_selector=self.config.etis_username_selector,
            ):
                log.info("logged_in_via_saved_session")
                return

            await self.session.authenticate(
                page, self.config, login_url=self.url_for(self.config.login_query)
            )
            await self.session.save_session(self._context)
        except PlaywrightError as e:
            raise TransientFetchError(f"Cannot reach ETIS: {e}") from e
        finally:
            await page.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, max=10),
        retry=retry_if_exception_type(TransientFetchError),
        reraise=True,
    )
    async def fetch(self, query: str) -> str:
        """Return the HTML of the page for ``query``.

        Retries transient failures; anything else is raised as is.

        Raises:
            AuthenticationError: If the portal answers with the login form.
            TransientFetchError: On timeouts, 429 or 5xx after all retries.
            FetchError: On any other non-success response.
        """
        if not self._entered:
            raise FetchError("PlaywrightFetcher used outside of 'async with'")

        context = await self._start()
        url = self.url_for(query)
        page = await context.new_page()
        try:
            try:
                response = await page.goto(url, wait_until="domcontentloaded")
            except PlaywrightTimeoutError as e:
                log.warning("fetch_timeout", url=url)
                raise TransientFetchError(f"Timed out loading {url}") from e
            except PlaywrightError as e:
                log.warning("fetch_failed", url=url, error=str(e))
                raise TransientFetchError(f"Failed to load {url}: {e}") from e

            if response is None:
                raise FetchError(f"No response for {url}")
            check_status(response.status, url)

            if self.config.login_query in page.url:
                raise AuthenticationError(f"Redirected to login while loading {url}")

            html = await page.content()
        finally:
            await page.close()

        log.debug("page_fetched", url=url, size=len(html))
        return html
