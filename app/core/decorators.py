"""
Cross-cutting decorators for service code.

Usage:
    from core.decorators import translate_store_errors

    class AccessRecorder(BaseService):
        @translate_store_errors
        def record_access(self, share, access_type, ip, user_agent):
            ...
"""

from __future__ import annotations

import functools
import logging
from typing import Callable

from django.db import InterfaceError, OperationalError

from core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


def translate_store_errors(func: Callable):
    """
    Re-raise database timeouts and connection failures as TransientStoreError.

    Covers lock wait timeouts ("database is locked" on SQLite),
    PostgreSQL statement_timeout cancellations and dropped connections.
    Integrity errors and programming errors propagate unchanged.

    Returns:
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning(
                f"Transient store failure in {func.__qualname__}: {exc}",
                extra={"operation": func.__qualname__},
            )
            raise TransientStoreError(
                "The data store is temporarily unavailable. Please retry.",
                details={"operation": func.__qualname__},
            ) from exc

    return wrapper
