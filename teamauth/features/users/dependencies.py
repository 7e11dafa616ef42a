"""
FastAPI dependencies for the application and the current user.
"""
from typing import Annotated, Any, Dict, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from teamauth.core.application import Application
from teamauth.core.errors import NotFound
from teamauth.features.users.auth import subject_id_from_payload, verify_jwt_token


security = HTTPBearer(auto_error=False)


def get_application(request: Request) -> Application:
    return request.app.state.application


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    app: Annotated[Application, Depends(get_application)]
) -> Optional[Dict[str, Any]]:
    """
    Get the user document of the bearer token, None for anonymous requests.

    Usage:
        @router.post("/")
        async def register(user: Optional[dict] = Depends(get_optional_user)):
            ...
    """
    if credentials is None:
        return None
    payload = verify_jwt_token(credentials.credentials)
    subject_id = subject_id_from_payload(payload)
    try:
        return await app.get_service("users").get(subject_id)
    except NotFound:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )


async def get_current_user(
    user: Annotated[Optional[Dict[str, Any]], Depends(get_optional_user)]
) -> Dict[str, Any]:
    """Require an authenticated user."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_authorization_header(request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"
