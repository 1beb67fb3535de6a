"""Playwright PDF renderer — scoped headless Chromium session."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, suppress
from pathlib import Path
from types import TracebackType
from typing import Callable, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from pydantic import BaseModel

from lhreport.errors import RenderError
from lhreport.schemas.config import RendererSettings

logger = logging.getLogger(__name__)


class PageOptions(BaseModel):
    """Print geometry passed to ``page.pdf``."""

    format: str = "A4"
    print_background: bool = True
    prefer_css_page_size: bool = True
    margin: dict[str, str] = {"top": "0", "right": "0", "bottom": "0", "left": "0"}


A4_FULL_BLEED = PageOptions()


class Renderer(Protocol):
    async def render(
        self, html: str, options: PageOptions, *, base_dir: Path, name: str = "report"
    ) -> bytes: ...


RendererFactory = Callable[[], AbstractAsyncContextManager[Renderer]]
"""Zero-argument callable returning an ``async with``-able renderer session."""


class PdfRenderer:
    """Owns one Playwright Chromium process for the duration of a block.

    Usage::

        async with PdfRenderer(settings) as renderer:
            pdf = await renderer.render(html, A4_FULL_BLEED, base_dir=out_dir)

    The browser is closed and Playwright stopped on every exit path.
    """

    def __init__(self, settings: RendererSettings | None = None, *, keep_html: bool = False) -> None:
        self.settings = settings or RendererSettings()
        self.keep_html = keep_html
        self._pw: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "PdfRenderer":
        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(
                headless=self.settings.headless,
                args=list(self.settings.launch_args),
            )
        except PlaywrightError as exc:
            await self._shutdown()
            raise RenderError(f"Failed to launch browser: {exc}") from exc
        logger.info("Browser launched")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._shutdown()
        logger.info("Browser closed")

    async def _shutdown(self) -> None:
        try:
            if self._browser:
                await self._browser.close()
        finally:
            self._browser = None
            if self._pw:
                await self._pw.stop()
            self._pw = None

    async def _new_page(self) -> Page:
        assert self._browser is not None, "PdfRenderer not entered"
        return await self._browser.new_page(
            viewport={
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
            device_scale_factor=self.settings.device_scale_factor,
        )

    async def render(
        self,
        html: str,
        options: PageOptions,
        *,
        base_dir: Path,
        name: str = "report",
    ) -> bytes:
        """Print ``html`` to PDF bytes.

        The document is written to ``base_dir/<name>.html`` and opened over
        ``file://`` so relative ``assets/`` and ``fonts/`` references resolve.
        Navigation waits for DOM-ready and network-idle, then for web fonts,
        then for the configured settle delay.
        """
        html_path = Path(base_dir) / f"{name}.html"
        try:
            html_path.write_text(html, encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Could not write working HTML {html_path}: {exc}") from exc

        timeout = self.settings.timeout_ms
        try:
            page = await self._new_page()
        except PlaywrightError as exc:
            self._discard(html_path)
            raise RenderError(f"Could not open browser page: {exc}") from exc

        try:
            await page.goto(html_path.resolve().as_uri(), wait_until="domcontentloaded", timeout=timeout)
            await page.wait_for_load_state("networkidle", timeout=timeout)
            await page.evaluate("() => document.fonts.ready.then(() => true)")
            if self.settings.settle_ms:
                await page.wait_for_timeout(self.settings.settle_ms)
            pdf = await page.pdf(
                format=options.format,
                print_background=options.print_background,
                prefer_css_page_size=options.prefer_css_page_size,
                margin=options.margin,
            )
        except PlaywrightError as exc:
            raise RenderError(f"PDF rendering failed: {exc}") from exc
        finally:
            with suppress(PlaywrightError):
                await page.close()
            self._discard(html_path)

        logger.info("Rendered %s (%d bytes)", html_path.name, len(pdf))
        return pdf

    def _discard(self, html_path: Path) -> None:
        if not self.keep_html:
            html_path.unlink(missing_ok=True)
