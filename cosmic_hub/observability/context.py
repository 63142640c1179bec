"""
Request correlation ids for the dashboard API and CLI runs.

The id lives in a contextvar so it follows a request into the threadpool
FastAPI uses for sync routes. Ids arriving from outside (X-Request-ID) end
up in log lines and response headers, so only a conservative charset is
accepted; anything else is replaced by a freshly generated id.
"""

import contextvars
import logging
import re
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_MAX_LENGTH = 64
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._:-]*")

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cosmic_hub_request_id", default=None
)


def get_request_id() -> str | None:
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> contextvars.Token:
    """Set the request ID in context. Returns token for reset."""
    return _request_id_var.set(request_id)


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


def normalize_request_id(value: str | bytes | None) -> str | None:
    """
    Validate an externally supplied request id.

    Returns the stripped id, or None when it is empty, longer than
    REQUEST_ID_MAX_LENGTH, or contains characters outside
    [A-Za-z0-9._:-] (must start alphanumeric).
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            value = value.decode("ascii")
        except UnicodeDecodeError:
            logger.debug("Dropping non-ASCII request id")
            return None
    value = value.strip()
    if not value:
        return None
    if len(value) > REQUEST_ID_MAX_LENGTH or not _REQUEST_ID_RE.fullmatch(value):
        logger.debug("Dropping malformed request id %r", value[:REQUEST_ID_MAX_LENGTH])
        return None
    return value


class RequestContext:
    """
    Context manager binding a request ID for everything logged inside it.

    Usage:
        with RequestContext() as ctx:
            logger.info("Computing red flags")  # carries ctx.request_id

        with RequestContext.from_header(raw_header_value):
            ...
    """

    def __init__(self, request_id: str | None = None):
        self.request_id = request_id or generate_request_id()
        self._token: contextvars.Token | None = None

    @classmethod
    def from_header(cls, value: str | bytes | None) -> "RequestContext":
        """Reuse a valid incoming id, otherwise generate one."""
        return cls(normalize_request_id(value))

    def __enter__(self) -> "RequestContext":
        self._token = set_request_id(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_id_var.reset(self._token)
            self._token = None
