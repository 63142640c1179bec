"""
Observability: structured logging and request correlation.

Usage:
    from cosmic_hub.observability import configure_logging, get_logger, RequestContext

    configure_logging("INFO")
    logger = get_logger(__name__)

    with RequestContext() as ctx:
        logger.info("Computing red flags", extra={"scope": "pm"})
"""

from .context import (
    RequestContext,
    generate_request_id,
    get_request_id,
    normalize_request_id,
    set_request_id,
)
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "generate_request_id",
    "get_request_id",
    "normalize_request_id",
    "set_request_id",
]
