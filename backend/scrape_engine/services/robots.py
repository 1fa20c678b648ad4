"""robots.txt compliance checks."""

import logging
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx

logger = logging.getLogger(__name__)


class RobotsPolicy:
    """Fetches and caches robots.txt per host.

    Hosts whose robots.txt cannot be fetched, or answer 4xx, are treated as
    allowing everything. 401/403 follow the same convention as 404 here:
    the scraper's own countermeasure detection handles hard blocks.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, user_agent: str = "*", timeout: float = 10.0):
        self.client = client
        self.user_agent = user_agent
        self.timeout = timeout
        self._parsers: dict[str, RobotFileParser | None] = {}

    async def is_allowed(self, url: str) -> bool:
        parsed = urlparse(url)
        host = f"{parsed.scheme}://{parsed.netloc}"
        if host not in self._parsers:
            self._parsers[host] = await self._fetch(host)
        parser = self._parsers[host]
        if parser is None:
            return True
        return parser.can_fetch(self.user_agent, url)

    async def _fetch(self, host: str) -> RobotFileParser | None:
        robots_url = f"{host}/robots.txt"
        try:
            if self.client is not None:
                response = await self.client.get(robots_url, timeout=self.timeout, follow_redirects=True)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(robots_url, timeout=self.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch {robots_url}: {e}")
            return None

        if response.status_code >= 400:
            logger.debug(f"{robots_url} returned {response.status_code}, treating as allow-all")
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        return parser
