"""Daily conversion quota for unauthenticated callers.

Registered users are never limited; their ``tts_credits`` counter is shown
in settings but not consulted here.

Scopes:
    shared  - every guest counts against one pool (sentinel owner id)
    client  - guests are counted per client key (the caller's address)
"""
import logging
from datetime import datetime
from typing import Optional

from app.auth.schemas import User
from app.conversions.service import ConversionService

logger = logging.getLogger(__name__)

LIMIT_REACHED_MESSAGE = "Daily limit reached. Please register for unlimited conversions."


class QuotaExceededError(Exception):
    """Raised when a guest has used up today's conversions."""

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(LIMIT_REACHED_MESSAGE)
        self.count = count
        self.limit = limit


class QuotaGate:
    """Request-time check on guest conversions since local midnight."""

    def __init__(
        self,
        limit: int = 3,
        scope: str = "shared",
        conversions: Optional[ConversionService] = None,
    ) -> None:
        self.limit = limit
        self.scope = scope
        self._conversions = conversions

    @classmethod
    def from_config(cls) -> "QuotaGate":
        from app.config import get_config
        quota = get_config().quota
        return cls(limit=quota.guest_daily_limit, scope=quota.guest_scope)

    @property
    def conversions(self) -> ConversionService:
        return self._conversions or ConversionService.get_instance()

    def guest_key_for(self, client_host: Optional[str]) -> Optional[str]:
        """Key under which a guest's rows are recorded, None when shared."""
        if self.scope != "client":
            return None
        return f"guest:{client_host or 'unknown'}"

    def usage(
        self,
        user: Optional[User],
        guest_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Today's conversion count for a guest; 0 for registered users."""
        if user is not None:
            return 0
        return self.conversions.count_guest_today(guest_key, now)

    def check(
        self,
        user: Optional[User],
        guest_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Allow the conversion or raise :class:`QuotaExceededError`."""
        if user is not None:
            return
        count = self.usage(None, guest_key, now)
        if count >= self.limit:
            logger.info("Guest quota reached (key=%s, count=%d)", guest_key or "shared", count)
            raise QuotaExceededError(count, self.limit)
