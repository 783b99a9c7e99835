"""
Auth package for the shortener's FastAPI application.

Resolves the opaque owner id of each caller from a signed cookie, issuing a
fresh anonymous id when the cookie is missing or invalid.
"""
