"""Static API-key guard for mutating routes."""

import logging
import secrets

from fastapi import Header, Request

from movie_api.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def _presented_key(x_api_key: str | None, authorization: str | None) -> str | None:
    if x_api_key:
        return x_api_key
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def require_api_key(
    request: Request,
    x_api_key: str | None = Header(None, description="API key"),
    authorization: str | None = Header(None, description="Bearer <API key>"),
) -> None:
    """Reject the request unless it carries the configured key.

    Runs before the route body. With no key configured the routes are open.
    """
    expected = request.app.state.settings.api_key
    if not expected:
        return
    presented = _presented_key(x_api_key, authorization)
    if presented is None or not secrets.compare_digest(presented.encode(), expected.encode()):
        logger.warning("Rejected %s %s: missing or invalid API key", request.method, request.url.path)
        raise UnauthorizedError()
