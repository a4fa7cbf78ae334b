"""Abstract base for all pipeline agents."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..page import Page
    from ..session import Session


class Agent(ABC):
    """Every agent subscribes its handlers to the session's dispatcher."""

    ID: str = "agent:unnamed"

    def __init__(self):
        self.session: Optional["Session"] = None
        self.log = logging.getLogger("webrecon." + self.ID.split(":", 1)[-1])

    @abstractmethod
    def register(self, session: "Session") -> None:
        ...

    # ── shared helpers ──────────────────────────────────────────

    def _page_for(self, url: str) -> Optional["Page"]:
        page = self.session.get_page(url)
        if page is None:
            self.log.error("Unable to find page for URL: %s", url)
        return page

    def _read_body(self, page: "Page") -> Optional[bytes]:
        """Stored HTML body for ``page`` or None when there is none."""
        try:
            return self.session.read_file(f"html/{page.base_filename()}.html")
        except OSError as exc:
            self.log.debug("[%s] Error reading HTML body file for %s: %s", self.ID, page.url, exc)
            return None
