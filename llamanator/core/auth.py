"""
Bearer token authentication for template routes
"""
import secrets
from typing import Optional

from fastapi import Request

from llamanator.core.exceptions import AuthFailure
from llamanator.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def token_hint(header: Optional[str]) -> str:
    """Last character of a presented header, safe to log"""
    if not header:
        return "<none>"
    return header[-1]


def check_bearer_token(header: Optional[str], expected_token: str) -> bool:
    """
    Check an Authorization header against the configured token

    The header must equal "Bearer <token>" exactly. A missing or empty header
    never matches. `header` is the latin-1 decoded value Starlette hands out,
    so its raw bytes are compared to the UTF-8 encoded expected value.
    """
    if not header:
        return False
    expected = f"Bearer {expected_token}"
    try:
        presented = header.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return secrets.compare_digest(presented, expected.encode("utf-8"))


async def require_gateway_token(request: Request) -> None:
    """
    Dependency guarding template routes

    Usage:
        @router.post("/template/{name}", dependencies=[Depends(require_gateway_token)])

    Raises:
        AuthFailure: If the Authorization header does not match
    """
    settings = request.app.state.settings
    header = request.headers.get("Authorization")
    client = request.client.host if request.client else "unknown"

    if not check_bearer_token(header, settings.auth_token):
        logger.warning(
            f"Unauthorized access attempt from token ending in: '{token_hint(header)}', from: {client}"
        )
        raise AuthFailure("Unauthorized")

    logger.info(f"Successful authentication from: {client}")
