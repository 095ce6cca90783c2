"""User bootstrap service.

Provides race-safe user creation on first authenticated request.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sitebuilder.config import get_settings
from sitebuilder.db.models import User
from sitebuilder.db.session import transaction

logger = logging.getLogger(__name__)


def ensure_user(db: Session, user_id: UUID, default_credits: int | None = None) -> User:
    """Ensure the user row exists, creating it with the starting credit balance.

    This function is race-safe and idempotent:
    - An existing user is returned untouched (credits are never reset)
    - Losing an insert race to a concurrent request re-reads the winner's row

    Args:
        db: Database session.
        user_id: The user's ID (from the session `sub` claim).
        default_credits: Starting balance; defaults to DEFAULT_USER_CREDITS.

    Returns:
        The User row.

    Raises:
        RuntimeError: If the user cannot be found after race recovery.
    """
    user = db.get(User, user_id)
    if user is not None:
        return user

    if default_credits is None:
        default_credits = get_settings().default_user_credits

    try:
        with transaction(db):
            user = User(id=user_id, credits=default_credits)
            db.add(user)
        logger.info("Created user %s with %d credits", user_id, default_credits)
    except IntegrityError:
        # Lost race: another request inserted the same user
        user = db.get(User, user_id)
        if user is None:
            logger.error("Failed to find user after race recovery: %s", user_id)
            raise RuntimeError(f"Failed to bootstrap user {user_id}") from None
        logger.info("Found existing user %s after race", user_id)

    return user

