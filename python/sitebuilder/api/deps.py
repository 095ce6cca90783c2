"""Dependencies injected into route handlers; tests override them."""

from pathlib import Path

from fastapi import Request

from sitebuilder.config import get_settings
from sitebuilder.db.session import get_db
from sitebuilder.services.llm import SiteGenerator

__all__ = ["get_db", "get_explorer_root", "get_site_generator"]


def get_site_generator(request: Request) -> SiteGenerator:
    """Get the shared site generator from app state.

    The generator wraps the LLM client built at startup around the shared
    httpx.AsyncClient, so connections are pooled across requests.
    """
    return request.app.state.site_generator


def get_explorer_root() -> Path:
    """Directory served by the file explorer endpoints."""
    return get_settings().resolved_explorer_root
