"""Browser identity used for one scraping run."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from scrape_engine.schemas.common import utcnow


class Viewport(BaseModel):
    width: int = 1920
    height: int = 1080
    device_scale_factor: float = 1
    is_mobile: bool = False
    has_touch: bool = False


class SessionCookie(BaseModel):
    name: str
    value: str
    domain: str
    path: str = "/"
    expires: datetime | None = None
    http_only: bool = False
    secure: bool = False
    same_site: Literal["Strict", "Lax", "None"] = "Lax"

    def to_browser_cookie(self) -> dict:
        cookie = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "httpOnly": self.http_only,
            "secure": self.secure,
            "sameSite": self.same_site,
        }
        if self.expires:
            cookie["expires"] = self.expires.timestamp()
        return cookie


class SessionIdentity(BaseModel):
    """Fingerprint and persisted state for a browser session.

    Created fresh (or restored) per job and discarded when the job ends.
    """

    session_id: str
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: datetime | None = None

    user_agent: str
    viewport: Viewport = Field(default_factory=Viewport)
    language: str = "en-US"
    timezone: str = "America/New_York"

    # Behavior simulation
    scroll_speed: int = 100  # pixels per step
    typing_speed: int = 50  # ms per character
    click_delay: int = 200  # ms

    # Persistence
    cookies: list[SessionCookie] = Field(default_factory=list)
    local_storage: dict[str, str] = Field(default_factory=dict)
    session_storage: dict[str, str] = Field(default_factory=dict)

    proxy: str | None = None
