"""Domain operations called by the route handlers.

Services take a Session and plain values, raise ApiError, and never see a
Request object.
"""

from sitebuilder.services.bootstrap import ensure_user
from sitebuilder.services.projects import get_owned_project, parse_uuid_or_404
from sitebuilder.services.revisions import create_project, make_revision, strip_code_fences

__all__ = [
    "create_project",
    "ensure_user",
    "get_owned_project",
    "make_revision",
    "parse_uuid_or_404",
    "strip_code_fences",
]
