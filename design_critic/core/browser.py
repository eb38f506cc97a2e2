"""
Webpage capture for Design Critic
Launches an isolated Playwright browser per call and takes a full-page screenshot
"""

import logging

from playwright.async_api import async_playwright

from design_critic.exceptions import CaptureError

logger = logging.getLogger(__name__)


class WebpageCapturer:
    """
    Captures full-page PNG screenshots of a URL.

    Nothing is shared between calls: every capture starts its own Playwright
    driver, browser and context, and closes all of them before returning.
    """

    def __init__(
        self,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        device_scale_factor: float = 2.0,
        navigation_timeout: float = 30.0,
    ):
        """
        Args:
            viewport_width: Browser viewport width in CSS pixels
            viewport_height: Browser viewport height in CSS pixels
            device_scale_factor: Device pixel ratio for the screenshot
            navigation_timeout: Max seconds to wait for the page to settle
        """
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.device_scale_factor = device_scale_factor
        self.navigation_timeout = navigation_timeout

    async def capture(self, url: str) -> bytes:
        """
        Navigate to a URL and return a full-page PNG screenshot.

        Raises:
            CaptureError: On browser launch failure, navigation error or timeout
        """
        async with async_playwright() as p:
            # Launch browser with error handling
            try:
                browser = await p.chromium.launch(
                    headless=True,
                    args=[
                        "--disable-dev-shm-usage",  # Prevents memory issues in Docker
                        "--no-sandbox",  # Required in some containerized environments
                        "--disable-gpu",
                    ],
                )
            except Exception as e:
                logger.error(f"❌ Browser launch failed: {str(e)}")
                raise CaptureError(f"Failed to launch browser: {str(e)}") from e

            try:
                context = await browser.new_context(
                    viewport={
                        "width": self.viewport_width,
                        "height": self.viewport_height,
                    },
                    device_scale_factor=self.device_scale_factor,
                )
                try:
                    page = await context.new_page()
                    await page.goto(
                        url,
                        wait_until="networkidle",
                        timeout=self.navigation_timeout * 1000,
                    )
                    screenshot = await page.screenshot(type="png", full_page=True)
                finally:
                    await context.close()

                logger.info(f"📸 Captured {url} ({len(screenshot)} bytes)")
                return screenshot

            except Exception as e:
                logger.error(f"❌ Capture failed for {url}: {str(e)}")
                raise CaptureError(f"Failed to capture {url}: {str(e)}") from e

            finally:
                await browser.close()
