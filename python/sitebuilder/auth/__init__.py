"""Session authentication: token verification and the Viewer it yields."""

from sitebuilder.auth.middleware import AuthMiddleware, Viewer, get_viewer
from sitebuilder.auth.verifier import SessionTokenVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "SessionTokenVerifier",
    "TokenVerifier",
]
