"""
FastAPI dependency functions for owner identity.

Use in routes with Depends() to receive the caller's owner id.
"""

from fastapi import HTTPException, Request, status


def get_current_user(request: Request) -> str:
    """
    Dependency that returns the owner id resolved by `owner_cookie_middleware`.

    Raises:
        HTTPException: 401 if the middleware did not run.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user_id
