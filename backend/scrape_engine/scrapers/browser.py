"""Stealth browser capability for JS-heavy scraping targets.

Scrapers only talk to the narrow protocols below, so any automation backend
exposing the same calls can be injected. The default launcher uses Patchright
(Playwright fork with anti-detection patches).
"""

import asyncio
import logging
import random
from typing import Any, Protocol

from scrape_engine.schemas.session import SessionIdentity

logger = logging.getLogger(__name__)

STEALTH_INIT_SCRIPT = """
// Mask navigator.webdriver
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });

// Spoof navigator.deviceMemory
Object.defineProperty(navigator, 'deviceMemory', { get: () => 8 });

// Spoof plugins array
Object.defineProperty(navigator, 'plugins', {
    get: () => {
        const plugins = [
            {name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer'},
            {name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai'},
            {name: 'Native Client', filename: 'internal-nacl-plugin'}
        ];
        plugins.item = (i) => plugins[i];
        plugins.namedItem = (name) => plugins.find(p => p.name === name);
        plugins.refresh = () => {};
        return plugins;
    }
});

// Spoof languages
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });

// Mock window.chrome object
window.chrome = {
    runtime: { connect: () => {}, sendMessage: () => {} },
    loadTimes: () => ({}),
    csi: () => ({})
};

// Fix permissions.query
const origQuery = navigator.permissions.query;
navigator.permissions.query = (p) => p.name === 'notifications'
    ? Promise.resolve({state: Notification.permission}) : origQuery(p);

// Jitter programmatic scrolling slightly
const origScrollTo = window.scrollTo;
window.scrollTo = function(x, y) {
    setTimeout(() => origScrollTo.call(this, x + Math.random() * 2 - 1, y + Math.random() * 2 - 1),
               Math.random() * 100);
};
"""

BROWSER_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-features=VizDisplayCompositor",
    "--disable-infobars",
    "--disable-extensions",
    "--disable-default-apps",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-field-trial-config",
    "--disable-ipc-flooding-protection",
    "--disable-hang-monitor",
    "--disable-prompt-on-repost",
    "--disable-client-side-phishing-detection",
    "--disable-component-extensions-with-background-pages",
    "--disable-sync",
    "--disable-translate",
    "--metrics-recording-only",
    "--no-default-browser-check",
    "--no-pings",
    "--password-store=basic",
    "--use-mock-keychain",
    "--force-color-profile=srgb",
    "--force-device-scale-factor=1",
    "--memory-pressure-off",
]

DEFAULT_EXTRA_HEADERS = {
    "Accept-Encoding": "gzip, deflate, br",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}


class PageHandle(Protocol):
    url: str

    async def goto(self, url: str, *, wait_until: str, timeout: int) -> Any: ...
    async def wait_for_selector(self, selector: str, *, timeout: int) -> Any: ...
    async def query_selector(self, selector: str) -> Any: ...
    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...
    async def content(self) -> str: ...
    async def screenshot(self, *, path: str | None = None, full_page: bool = False) -> bytes: ...
    def set_default_timeout(self, timeout: int) -> None: ...
    async def close(self) -> None: ...


class ContextHandle(Protocol):
    async def add_cookies(self, cookies: list[dict]) -> None: ...
    async def add_init_script(self, script: str) -> None: ...
    async def new_page(self) -> PageHandle: ...
    async def close(self) -> None: ...


class BrowserHandle(Protocol):
    async def new_context(self, **options: Any) -> ContextHandle: ...
    async def close(self) -> None: ...


class BrowserLauncher(Protocol):
    async def launch(self, *, headless: bool, args: list[str], channel: str | None = None) -> BrowserHandle: ...


class PatchrightLauncher:
    """Launches Chromium (or Chrome via ``channel``) through Patchright.

    The Playwright driver is stopped when the returned browser closes.
    """

    async def launch(self, *, headless: bool, args: list[str], channel: str | None = None):
        from patchright.async_api import async_playwright

        playwright = await async_playwright().start()
        launch_kwargs = {"headless": headless, "args": args}
        if channel:
            launch_kwargs["channel"] = channel
        try:
            browser = await playwright.chromium.launch(**launch_kwargs)
        except Exception:
            await playwright.stop()
            raise
        logger.info(f"Launched Patchright {'Chrome' if channel else 'Chromium'}")
        return _OwnedBrowser(browser, playwright)


class _OwnedBrowser:
    """Browser wrapper that also stops its Playwright driver on close."""

    def __init__(self, browser, playwright):
        self._browser = browser
        self._playwright = playwright

    async def new_context(self, **options):
        return await self._browser.new_context(**options)

    async def close(self):
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


def context_options(identity: SessionIdentity) -> dict[str, Any]:
    """Browser context options derived from a session identity."""
    options: dict[str, Any] = {
        "user_agent": identity.user_agent,
        "viewport": {"width": identity.viewport.width, "height": identity.viewport.height},
        "screen": {"width": identity.viewport.width, "height": identity.viewport.height},
        "device_scale_factor": identity.viewport.device_scale_factor,
        "is_mobile": identity.viewport.is_mobile,
        "has_touch": identity.viewport.has_touch,
        "locale": identity.language,
        "timezone_id": identity.timezone,
        "color_scheme": "light",
        "accept_downloads": False,
        "ignore_https_errors": False,
        "extra_http_headers": {"Accept-Language": identity.language, **DEFAULT_EXTRA_HEADERS},
    }
    if identity.proxy:
        options["proxy"] = {"server": identity.proxy}
    return options


async def human_delay(min_ms: int = 100, max_ms: int = 500) -> None:
    """Random delay to appear human."""
    delay = random.uniform(min_ms / 1000, max_ms / 1000)
    await asyncio.sleep(delay)
