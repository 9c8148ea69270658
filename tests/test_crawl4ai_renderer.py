"""
Unittest suite for the crawl4ai renderer.

``AsyncWebCrawler`` is patched with a mock whose ``arun`` returns stub
crawl results, so no browser is launched.  The tests cover how crawl
outcomes map onto the renderer errors, how readiness turns into
crawl4ai run settings, and how pages release their sessions.
"""

from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest import mock

from cardharvest.errors import NavigationError, NavigationTimeout, RendererError
from cardharvest.render.base import FieldSelector, ReadyCondition
from cardharvest.render.crawl4ai_renderer import Crawl4aiRenderer, soft_wait_script

URL = "https://cards.test/cards/info/1"
PAGE_HTML = "<html><body><div class='cardTitle'>Rem</div></body></html>"


def _ok(html: str = PAGE_HTML) -> SimpleNamespace:
    return SimpleNamespace(success=True, html=html, error_message="")


def _failed(message: str) -> SimpleNamespace:
    return SimpleNamespace(success=False, html="", error_message=message)


class TestCrawl4aiRenderer(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.crawler = mock.MagicMock()
        self.crawler.start = mock.AsyncMock()
        self.crawler.close = mock.AsyncMock()
        self.crawler.arun = mock.AsyncMock(return_value=_ok())
        self.crawler.crawler_strategy.kill_session = mock.AsyncMock()
        patcher = mock.patch(
            "cardharvest.render.crawl4ai_renderer.AsyncWebCrawler", return_value=self.crawler
        )
        self.crawler_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.renderer = Crawl4aiRenderer(settle_delay=0.5)

    async def _load(self, ready=None, timeout: float = 60.0):
        async with self.renderer.page() as page:
            await page.load(URL, ready=ready, timeout=timeout)
            return page.extract({"title": FieldSelector(".cardTitle")})

    def _run_config(self):
        return self.crawler.arun.await_args.kwargs["config"]

    async def test_session_start_and_close(self) -> None:
        async with self.renderer:
            self.crawler_cls.assert_called_once_with(config=self.renderer.browser_config)
            self.crawler.start.assert_awaited_once()
            self.assertFalse(self.renderer.closed)
        self.crawler.close.assert_awaited_once()
        self.assertTrue(self.renderer.closed)

    async def test_load_before_start_fails(self) -> None:
        with self.assertRaises(RendererError):
            await self._load()

    async def test_required_readiness_uses_css_wait(self) -> None:
        async with self.renderer:
            raw = await self._load(ReadyCondition(".cards a", required=True, timeout=2), timeout=30)
        self.assertEqual(raw, {"title": "Rem"})
        self.assertEqual(self.crawler.arun.await_args.kwargs["url"], URL)
        config = self._run_config()
        self.assertEqual(config.wait_for, "css:.cards a")
        self.assertEqual(config.wait_for_timeout, 2000)
        self.assertEqual(config.page_timeout, 30000)
        self.assertEqual(config.delay_before_return_html, 0.5)

    async def test_optional_readiness_uses_soft_deadline(self) -> None:
        async with self.renderer:
            await self._load(ReadyCondition(".cardData img", required=False, timeout=3))
        config = self._run_config()
        self.assertEqual(config.wait_for, soft_wait_script(".cardData img", 3))
        self.assertTrue(config.wait_for.startswith("js:"))
        self.assertIn('".cardData img"', config.wait_for)
        self.assertIn("3000", config.wait_for)
        self.assertEqual(config.wait_for_timeout, 8000)

    async def test_no_readiness_means_no_wait(self) -> None:
        async with self.renderer:
            await self._load()
        self.assertIsNone(self._run_config().wait_for)

    async def test_failed_result_with_timeout_message(self) -> None:
        self.crawler.arun.return_value = _failed("Wait condition failed: Timeout after 2000ms")
        async with self.renderer:
            with self.assertRaises(NavigationTimeout):
                await self._load()

    async def test_failed_result_without_timeout_message(self) -> None:
        self.crawler.arun.return_value = _failed("net::ERR_NAME_NOT_RESOLVED")
        async with self.renderer:
            with self.assertRaises(NavigationError):
                await self._load()

    async def test_raised_timeout_maps_to_navigation_timeout(self) -> None:
        for exc in (RuntimeError("Page.goto: Timeout 60000ms exceeded"), TimeoutError()):
            self.crawler.arun.side_effect = exc
            async with self.renderer:
                with self.assertRaises(NavigationTimeout):
                    await self._load()

    async def test_raised_error_maps_to_navigation_error(self) -> None:
        self.crawler.arun.side_effect = RuntimeError("browser disconnected")
        async with self.renderer:
            with self.assertRaises(NavigationError) as ctx:
                await self._load()
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    async def test_streamed_results_use_first_item(self) -> None:
        async def stream():
            yield _ok("<html><body><div class='cardTitle'>Ram</div></body></html>")
            yield _ok()

        self.crawler.arun.side_effect = lambda **kwargs: stream()
        async with self.renderer:
            raw = await self._load()
        self.assertEqual(raw, {"title": "Ram"})

    async def test_empty_stream_is_navigation_error(self) -> None:
        async def stream():
            return
            yield  # pragma: no cover

        self.crawler.arun.side_effect = lambda **kwargs: stream()
        async with self.renderer:
            with self.assertRaises(NavigationError):
                await self._load()

    async def test_page_close_kills_its_session(self) -> None:
        async with self.renderer:
            async with self.renderer.page() as page:
                await page.load(URL)
            self.assertEqual(self._run_config().session_id, page.session_id)
            self.crawler.crawler_strategy.kill_session.assert_awaited_once_with(page.session_id)
            await page.close()
            self.crawler.crawler_strategy.kill_session.assert_awaited_once()

    async def test_unused_page_does_not_kill_session(self) -> None:
        async with self.renderer:
            async with self.renderer.page():
                pass
        self.crawler.crawler_strategy.kill_session.assert_not_awaited()

    async def test_page_closed_after_renderer_does_not_kill_session(self) -> None:
        await self.renderer.start()
        page = self.renderer.page()
        await page.load(URL)
        await self.renderer.close()
        await page.close()
        self.crawler.crawler_strategy.kill_session.assert_not_awaited()

    async def test_kill_session_failure_is_logged(self) -> None:
        self.crawler.crawler_strategy.kill_session.side_effect = RuntimeError("target closed")
        async with self.renderer:
            with self.assertLogs("cardharvest.render.crawl4ai_renderer", level="WARNING") as logs:
                async with self.renderer.page() as page:
                    await page.load(URL)
        self.assertIn(page.session_id, logs.output[0])


if __name__ == "__main__":
    unittest.main()
