"""
Configuration for the auth module.

The signing secret itself comes from `shortener_platform.config`
(SHORTENER_AUTH_SECRET) and is read by the middleware.
"""

COOKIE_NAME = "token"

# One year, in seconds.
COOKIE_MAX_AGE = 365 * 24 * 60 * 60

# Tokens expire together with the cookie that carries them.
TOKEN_TTL = COOKIE_MAX_AGE
