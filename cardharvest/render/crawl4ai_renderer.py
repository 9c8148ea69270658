"""
crawl4ai-backed renderer.

One ``AsyncWebCrawler`` is started per harvest run.  Every page gets a
fresh crawl4ai ``session_id`` which is killed again when the page is
closed, so a visit never leaks a browser tab into the next one.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence
from uuid import uuid4

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from ..config import DEFAULT_USER_AGENT
from ..errors import NavigationError, NavigationTimeout, RendererError
from .base import ReadyCondition, RenderedPage, Renderer

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")


def soft_wait_script(selector: str, timeout: float) -> str:
    """JS readiness predicate that gives up quietly after ``timeout`` seconds.

    crawl4ai treats a ``wait_for`` that never becomes true as a failed
    crawl.  For optional readiness we want "wait a bit, then use what
    is there", so the predicate also turns true once the deadline has
    passed.
    """
    return (
        "js:() => {"
        " window.__harvestReadyStart = window.__harvestReadyStart || Date.now();"
        f" return document.querySelector({json.dumps(selector)}) !== null"
        f" || Date.now() - window.__harvestReadyStart > {int(timeout * 1000)};"
        " }"
    )


def _is_timeout(message: str) -> bool:
    lowered = message.lower()
    return "timeout" in lowered or "timed out" in lowered


async def _first_result(result: Any) -> Any:
    """``arun`` may hand back a container or an async stream of results."""
    if hasattr(result, "__aiter__"):
        async for r in result:
            return r
        return None
    return result


class Crawl4aiPage(RenderedPage):
    def __init__(self, renderer: "Crawl4aiRenderer") -> None:
        super().__init__()
        self._renderer = renderer
        self.session_id = f"cardharvest-{uuid4().hex}"
        self._opened = False

    def run_config(self, ready: Optional[ReadyCondition], timeout: float) -> CrawlerRunConfig:
        wait_for = None
        wait_for_timeout = None
        if ready is not None:
            if ready.required:
                wait_for = f"css:{ready.selector}"
            else:
                # Slack so the soft deadline fires before crawl4ai's own one.
                wait_for = soft_wait_script(ready.selector, ready.timeout)
            wait_for_timeout = int((ready.timeout + (0 if ready.required else 5)) * 1000)
        return CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            session_id=self.session_id,
            wait_until="domcontentloaded",
            wait_for=wait_for,
            wait_for_timeout=wait_for_timeout,
            page_timeout=int(timeout * 1000),
            delay_before_return_html=self._renderer.settle_delay,
            verbose=False,
        )

    async def _fetch(self, url: str, ready: Optional[ReadyCondition], timeout: float) -> str:
        crawler = self._renderer.crawler
        self._opened = True
        logger.debug("Rendering %s", url)
        try:
            result = await crawler.arun(url=url, config=self.run_config(ready, timeout))
        except Exception as exc:  # noqa: BLE001  crawl4ai/playwright raise many types
            if _is_timeout(str(exc)) or isinstance(exc, TimeoutError):
                raise NavigationTimeout(f"{url}: {exc}") from exc
            raise NavigationError(f"{url}: {exc}") from exc

        result = await _first_result(result)
        if result is None:
            raise NavigationError(f"{url}: renderer returned no result")
        if not getattr(result, "success", False):
            message = getattr(result, "error_message", "") or "unknown error"
            if _is_timeout(message):
                raise NavigationTimeout(f"{url}: {message}")
            raise NavigationError(f"{url}: {message}")
        return result.html or ""

    async def close(self) -> None:
        await super().close()
        if not self._opened or self._renderer.closed:
            return
        self._opened = False
        try:
            await self._renderer.crawler.crawler_strategy.kill_session(self.session_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not close renderer session %s: %s", self.session_id, exc)


class Crawl4aiRenderer(Renderer):
    """Headless Chromium through crawl4ai.

    Args:
        headless: Run the browser without a window.
        user_agent: User agent presented to the site.
        extra_args: Additional Chromium command line flags.
        settle_delay: Seconds to wait after readiness before reading HTML.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        extra_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
        settle_delay: float = 1.0,
    ) -> None:
        self.browser_config = BrowserConfig(
            headless=headless,
            user_agent=user_agent,
            extra_args=list(extra_args),
            verbose=False,
        )
        self.settle_delay = settle_delay
        self._crawler: Optional[AsyncWebCrawler] = None

    @property
    def closed(self) -> bool:
        return self._crawler is None

    @property
    def crawler(self) -> AsyncWebCrawler:
        if self._crawler is None:
            raise RendererError("renderer session is not started")
        return self._crawler

    async def start(self) -> None:
        if self._crawler is not None:
            return
        crawler = AsyncWebCrawler(config=self.browser_config)
        await crawler.start()
        self._crawler = crawler
        logger.debug("Renderer session started (headless=%s)", self.browser_config.headless)

    async def close(self) -> None:
        if self._crawler is None:
            return
        crawler, self._crawler = self._crawler, None
        await crawler.close()
        logger.debug("Renderer session closed")

    def page(self) -> Crawl4aiPage:
        return Crawl4aiPage(self)
