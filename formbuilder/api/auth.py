"""
Shared-secret admin authorization.
"""

import hmac

from fastapi import Request

ADMIN_TOKEN_HEADER = "X-Admin-Token"
ADMIN_TOKEN_QUERY_PARAM = "token"


def get_admin_token(request: Request) -> str | None:
    """Return the token from the header, falling back to the query string."""
    token = request.headers.get(ADMIN_TOKEN_HEADER)
    if token:
        return token
    return request.query_params.get(ADMIN_TOKEN_QUERY_PARAM)


def is_authorized(request: Request, admin_secret: str | None) -> bool:
    """Check whether a request carries the admin secret.

    When no secret is configured every request is allowed, which is
    only meant for local development.

    Args:
        request: The incoming request.
        admin_secret: The configured shared secret, or None.

    Returns:
        True if the request may use admin endpoints.
    """
    if not admin_secret:
        return True

    token = get_admin_token(request)
    if token is None:
        return False
    return hmac.compare_digest(token.encode("utf-8"), admin_secret.encode("utf-8"))
