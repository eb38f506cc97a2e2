import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from design_critic.core.browser import WebpageCapturer
from design_critic.exceptions import CaptureError


def _mock_playwright(browser=None, launch_error=None):
    """async_playwright() replacement yielding a mock driver."""
    driver = MagicMock()
    if launch_error:
        driver.chromium.launch = AsyncMock(side_effect=launch_error)
    else:
        driver.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=driver)
    manager.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=manager), driver


def _mock_browser(screenshot=b"\x89PNG\r\n\x1a\nfake", goto_error=None):
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_error)
    page.screenshot = AsyncMock(return_value=screenshot)

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    return browser, context, page


class TestWebpageCapturer:
    async def test_captures_full_page_png(self) -> None:
        browser, context, page = _mock_browser()
        factory, driver = _mock_playwright(browser)
        with patch("design_critic.core.browser.async_playwright", factory):
            shot = await WebpageCapturer(navigation_timeout=30).capture("https://example.com")

        assert shot == b"\x89PNG\r\n\x1a\nfake"
        assert driver.chromium.launch.call_args.kwargs["headless"] is True
        browser.new_context.assert_awaited_once_with(
            viewport={"width": 1920, "height": 1080}, device_scale_factor=2.0
        )
        page.goto.assert_awaited_once_with(
            "https://example.com", wait_until="networkidle", timeout=30000
        )
        page.screenshot.assert_awaited_once_with(type="png", full_page=True)
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    async def test_navigation_failure_closes_browser(self) -> None:
        browser, context, _ = _mock_browser(goto_error=TimeoutError("Timeout 30000ms exceeded"))
        factory, _ = _mock_playwright(browser)
        with patch("design_critic.core.browser.async_playwright", factory):
            with pytest.raises(CaptureError, match="Timeout"):
                await WebpageCapturer().capture("https://slow.example.com")

        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    async def test_launch_failure(self) -> None:
        factory, _ = _mock_playwright(launch_error=RuntimeError("Executable doesn't exist"))
        with patch("design_critic.core.browser.async_playwright", factory):
            with pytest.raises(CaptureError, match="Failed to launch browser"):
                await WebpageCapturer().capture("https://example.com")

    async def test_deadline_during_navigation_closes_browser(self) -> None:
        browser, context, page = _mock_browser()

        async def hang(*args, **kwargs):
            await asyncio.sleep(30)

        page.goto = AsyncMock(side_effect=hang)
        factory, _ = _mock_playwright(browser)
        with patch("design_critic.core.browser.async_playwright", factory):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(
                    WebpageCapturer().capture("https://hanging.example.com"), timeout=0.1
                )

        page.screenshot.assert_not_awaited()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
