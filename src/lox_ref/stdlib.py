"""Host-provided natives registered via lox_ref.runtime."""

from __future__ import annotations

import logging
import time

from .runtime import register_native

logger = logging.getLogger(__name__)

@register_native("clock")
def native_clock() -> float:
    """
    Wall-clock seconds. The call itself is the only observable effect: it is
    logged at debug level, and the call boundary discards the return value.
    """
    now = time.time()
    logger.debug("called clock at %.6f", now)
    return now
