"""Scraper factory: builds configured scraper instances per board."""

import logging
import random
import string
import time
from typing import Any

from pydantic import ValidationError

from scrape_engine.config import Settings, get_settings
from scrape_engine.errors import ConfigurationError
from scrape_engine.schemas.scrape_config import ScrapeConfiguration
from scrape_engine.schemas.session import SessionIdentity, Viewport
from scrape_engine.scrapers.base import BaseScraper
from scrape_engine.scrapers.browser import BrowserLauncher, PatchrightLauncher
from scrape_engine.scrapers.registry import JobBoard, get_registration, list_boards
from scrape_engine.services.robots import RobotsPolicy

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]


class ScraperFactory:
    """Creates a fresh scraper per request and tracks what it has issued.

    Instances are never shared between jobs; ``cleanup_all`` tears down any
    issued scraper that still holds browser resources.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        launcher: BrowserLauncher | None = None,
        robots: RobotsPolicy | None = None,
    ):
        self.settings = settings or get_settings()
        self.launcher = launcher or PatchrightLauncher()
        self.robots = robots or RobotsPolicy(
            user_agent=self.settings.robots_user_agent,
            timeout=self.settings.robots_txt_timeout,
        )
        self._issued: list[BaseScraper] = []
        self._issued_counts: dict[str, int] = {}

    def is_scraper_available(self, board_id: str) -> bool:
        return get_registration(board_id) is not None

    def get_available_scrapers(self) -> list[str]:
        known = [board.value for board in JobBoard]
        extra = [b for b in list_boards() if b not in known]
        return [b for b in known if self.is_scraper_available(b)] + extra

    def get_default_config(self, board_id: str) -> ScrapeConfiguration:
        registration = get_registration(board_id)
        if registration is None:
            raise ConfigurationError(f"Unsupported job board: {board_id}", {"board": board_id})
        return ScrapeConfiguration(**registration.default_config)

    def get_default_session(self, config: ScrapeConfiguration | None = None) -> SessionIdentity:
        """Fresh browser identity; a proxy is assigned when the config asks for one."""
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        proxy = None
        if self.settings.proxy_servers and (config is None or config.use_proxies):
            proxy = random.choice(self.settings.proxy_servers)
        user_agent = USER_AGENTS[0]
        if config is None or config.rotate_user_agents:
            user_agent = random.choice(USER_AGENTS)
        return SessionIdentity(
            session_id=f"session_{int(time.time() * 1000)}_{suffix}",
            user_agent=user_agent,
            viewport=Viewport(width=1920, height=1080),
            language="en-US",
            timezone="America/New_York",
            proxy=proxy,
        )

    def build_config(self, board_id: str, overrides: dict[str, Any] | None = None) -> ScrapeConfiguration:
        """Board defaults with ``overrides`` applied per field."""
        config = self.get_default_config(board_id)
        try:
            return config.with_overrides(overrides)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration override for {board_id}: {e.errors(include_url=False)}",
                {"board": board_id, "overrides": overrides},
            ) from e

    def create_scraper(
        self,
        board_id: str,
        config_overrides: dict[str, Any] | ScrapeConfiguration | None = None,
        session: SessionIdentity | None = None,
        cancel_event=None,
    ) -> BaseScraper:
        """Create a configured scraper for ``board_id``.

        Raises ConfigurationError for unknown boards or invalid overrides.
        """
        registration = get_registration(board_id)
        if registration is None:
            raise ConfigurationError(f"Unsupported job board: {board_id}", {"board": board_id})

        if isinstance(config_overrides, ScrapeConfiguration):
            config = config_overrides
        else:
            config = self.build_config(board_id, config_overrides)

        if not config.enabled:
            raise ConfigurationError(f"Scraper for {board_id} is disabled", {"board": board_id})

        scraper = registration.scraper_class(
            config,
            session or self.get_default_session(config),
            launcher=self.launcher,
            settings=self.settings,
            robots=self.robots,
            cancel_event=cancel_event,
        )
        self._issued.append(scraper)
        self._issued_counts[board_id] = self._issued_counts.get(board_id, 0) + 1
        logger.info(f"Created {board_id} scraper with config: {config.name}")
        return scraper

    def get_scraper_stats(self) -> dict[str, dict[str, Any]]:
        stats = {}
        for board_id in list_boards():
            registration = get_registration(board_id)
            stats[board_id] = {
                "available": True,
                "scraper_class": registration.scraper_class.__name__,
                "issued": self._issued_counts.get(board_id, 0),
                "live_sessions": sum(
                    1 for s in self._issued if s.board == board_id and s.has_live_session
                ),
            }
        return stats

    async def cleanup_all(self) -> None:
        """Tear down every issued scraper still holding browser resources."""
        logger.info("Cleaning up all scrapers...")
        for scraper in self._issued:
            if not scraper.has_live_session:
                continue
            try:
                await scraper.cleanup()
                logger.info(f"Cleaned up {scraper.board} scraper")
            except Exception as e:
                logger.error(f"Failed to cleanup {scraper.board} scraper: {e}")
        self._issued.clear()
        logger.info("All scrapers cleaned up")

    def release(self, scraper: BaseScraper) -> None:
        """Forget a scraper whose job has finished."""
        if scraper in self._issued and not scraper.has_live_session:
            self._issued.remove(scraper)
