"""
HTTP middleware resolving the owner id for every request.

Sets `request.state.user_id` before the route runs and, when a new anonymous
id was issued, attaches the signed cookie to whatever response the route
returns.
"""

import logging

from fastapi import Request

from .config import COOKIE_MAX_AGE, COOKIE_NAME
from .service import issue_token, parse_token

logger = logging.getLogger(__name__)


async def owner_cookie_middleware(request: Request, call_next):
    secret = request.app.state.settings.AUTH_SECRET
    user_id = parse_token(request.cookies.get(COOKIE_NAME), secret)
    token = None
    if user_id is None:
        user_id, token = issue_token(secret)
        logger.debug("Issued new owner id %s", user_id)

    request.state.user_id = user_id
    response = await call_next(request)
    if token is not None:
        response.set_cookie(COOKIE_NAME, token, max_age=COOKIE_MAX_AGE, path="/", httponly=True)
    return response
