"""Thin API launcher.

This is the uvicorn entrypoint. All application logic lives in the sitebuilder package.
Run with: uvicorn main:app --reload

The app instance is created here (not in sitebuilder.app) so importing
create_app in tests has no side effects and needs no environment.
"""

from sitebuilder.app import add_request_id_middleware, create_app

app = create_app()
# Outermost middleware: every response, auth failures included, gets X-Request-ID
add_request_id_middleware(app)

__all__ = ["app"]
