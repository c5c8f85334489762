"""Guest daily conversion quota."""

from .service import LIMIT_REACHED_MESSAGE, QuotaExceededError, QuotaGate

__all__ = ["LIMIT_REACHED_MESSAGE", "QuotaExceededError", "QuotaGate"]
