"""Bearer token authentication for the API routes."""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from staybase.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

# Principal returned for authenticated (or unauthenticated, when disabled) callers
CLIENT_PRINCIPAL = "mcp-client"


async def verify_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Validate the bearer token against MCP_AUTH_TOKEN.

    When MCP_AUTH_TOKEN is empty the check is disabled.

    Returns:
        The client principal.

    Raises:
        HTTPException: 401 if the token is missing or does not match.
    """
    expected = settings.mcp_auth_token
    if not expected:
        return CLIENT_PRINCIPAL

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )

    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return CLIENT_PRINCIPAL
