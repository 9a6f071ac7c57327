"""
SubTrack Backend: Request Dependencies
=======================================

What:  FastAPI dependency that resolves `Authorization: Bearer <jwt>` to the
       caller's user id.
Who:   Injected into every subscription route and GET /api/auth/me.

The dependency only verifies the token; it does not load the user row.
Every subscription query is filtered by this id, so a token for a deleted
account simply sees an empty list.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from subtrack.exceptions import AuthenticationError
from subtrack.services.auth_service import decode_access_token

# auto_error=False: missing credentials raise our AuthenticationError (401)
# instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")
    user_id = decode_access_token(credentials.credentials)
    # Picked up by RequestLoggingMiddleware for the access log line
    request.state.user_id = str(user_id)
    return user_id
