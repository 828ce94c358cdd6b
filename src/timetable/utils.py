"""Browser context setup for fetching ETIS pages: resource blocking and read-only guardrails."""

from collections.abc import Iterable

from playwright.async_api import BrowserContext, Route

from src.timetable.logging import get_logger

log = get_logger(__name__)

# Only the HTML matters; everything else is dropped before it hits the network.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset(
    {"image", "stylesheet", "font", "media", "other"}
)

# HTTP methods that modify server state, blocked in read-only mode.
_BLOCKED_METHODS: frozenset[str] = frozenset({"POST", "PUT", "DELETE", "PATCH"})


def is_request_allowed(
    method: str, url: str, *, read_only: bool, allowed_posts: Iterable[str] = ()
) -> bool:
    """Whether a request may leave the browser.

    In read-only mode mutating methods are refused, except POSTs to one of
    ``allowed_posts`` (the login form).
    """
    if not read_only or method not in _BLOCKED_METHODS:
        return True
    return method == "POST" and any(path in url for path in allowed_posts)


async def configure_context_for_scraping(
    context: BrowserContext,
    *,
    read_only: bool = True,
    allowed_posts: Iterable[str] = (),
    timeout_ms: int = 30000,
) -> None:
    """Set up a Playwright context for fetching timetable pages.

    Blocks resource types that are never parsed and, in read-only mode,
    requests that could change anything on the portal.

    Args:
        context: Playwright BrowserContext shared by all fetches.
        read_only: If True, block POST/PUT/DELETE/PATCH requests.
        allowed_posts: URL fragments that may still be POSTed to.
        timeout_ms: Default timeout for navigation and actions.
    """
    allowed = tuple(allowed_posts)

    async def _filter_requests(route: Route) -> None:
        request = route.request

        if not is_request_allowed(
            request.method, request.url, read_only=read_only, allowed_posts=allowed
        ):
            log.warning(
                "blocked_mutating_request",
                method=request.method,
                url=request.url,
            )
            await route.abort("blockedbyclient")
            return

        if request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    await context.route("**/*", _filter_requests)
    context.set_default_timeout(timeout_ms)
    context.set_default_navigation_timeout(timeout_ms)
