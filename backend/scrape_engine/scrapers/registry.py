"""Scraper registry: maps board ids to scraper classes and their default policy."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Type

logger = logging.getLogger(__name__)


class JobBoard(str, Enum):
    """Known job boards. Only those with a registered scraper are available."""

    INDEED = "indeed"
    LINKEDIN = "linkedin"
    GLASSDOOR = "glassdoor"
    NAUKRI = "naukri"
    NAUKRI_GULF = "naukri_gulf"
    GULF_TALENT = "gulf_talent"


BOARD_BASE_URLS: dict[str, str] = {
    JobBoard.INDEED.value: "https://www.indeed.com",
    JobBoard.LINKEDIN.value: "https://www.linkedin.com",
    JobBoard.GLASSDOOR.value: "https://www.glassdoor.com",
    JobBoard.NAUKRI.value: "https://www.naukri.com",
    JobBoard.NAUKRI_GULF.value: "https://www.naukrigulf.com",
    JobBoard.GULF_TALENT.value: "https://www.gulftalent.com",
}


@dataclass
class BoardRegistration:
    board_id: str
    scraper_class: Type
    default_config: dict[str, Any] = field(default_factory=dict)


# Board id -> registration
_REGISTRY: dict[str, BoardRegistration] = {}


def register_scraper(board_id: str, **default_config: Any):
    """Decorator to register a scraper class for a board.

    Keyword arguments become the board's default ScrapeConfiguration fields.
    """
    def decorator(cls):
        defaults = {"name": f"{board_id}_scraper", "base_url": BOARD_BASE_URLS.get(board_id, ""), **default_config}
        _REGISTRY[board_id] = BoardRegistration(board_id, cls, defaults)
        cls.board = board_id
        logger.debug(f"Registered scraper for board: {board_id}")
        return cls
    return decorator


def get_registration(board_id: str) -> BoardRegistration | None:
    """Look up the registration for a given board."""
    return _REGISTRY.get(board_id)


def list_boards() -> list[str]:
    """List all registered boards."""
    return list(_REGISTRY.keys())
