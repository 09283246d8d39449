import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger("filemanager.services.banners")

# Success notices hide themselves after this many seconds.
SUCCESS_TTL = 3.0


@dataclass(frozen=True)
class Banner:
    id: int
    level: str  # "error" | "success" | "warning"
    message: str
    expires_at: Optional[float] = None


class BannerBoard:
    """Transient user-visible messages, each dismissable on its own."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._ids = itertools.count(1)
        self._banners: Tuple[Banner, ...] = ()

    def _push(self, level: str, message: str, ttl: Optional[float] = None) -> Banner:
        expires_at = self._clock() + ttl if ttl else None
        banner = Banner(next(self._ids), level, message, expires_at)
        self._banners = self._banners + (banner,)
        logger.debug("Banner #%d [%s] %s", banner.id, level, message)
        return banner

    def error(self, message: str) -> Banner:
        return self._push("error", message)

    def warning(self, message: str) -> Banner:
        return self._push("warning", message)

    def success(self, message: str) -> Banner:
        return self._push("success", message, ttl=SUCCESS_TTL)

    def dismiss(self, banner_id: int):
        self._banners = tuple(b for b in self._banners if b.id != banner_id)

    def clear(self):
        self._banners = ()

    def active(self) -> List[Banner]:
        now = self._clock()
        self._banners = tuple(
            b for b in self._banners if b.expires_at is None or b.expires_at > now
        )
        return list(self._banners)

    def errors(self) -> List[str]:
        return [b.message for b in self.active() if b.level == "error"]
