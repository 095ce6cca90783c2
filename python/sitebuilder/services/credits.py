"""Credit ledger operations.

Credits are only ever changed through single UPDATE statements of the form
`credits = credits ± n`, so concurrent debits and refunds never lose writes.
Neither helper commits; callers wrap them in transaction(db).
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from sitebuilder.db.models import User
from sitebuilder.logging import get_logger

logger = get_logger(__name__)

# Cost of one enhance + generate round trip
GENERATION_COST = 5


def get_credits(db: Session, user_id: UUID) -> int | None:
    """Read the current balance straight from the database (None if no user)."""
    return db.execute(select(User.credits).where(User.id == user_id)).scalar_one_or_none()


def debit_credits(db: Session, user_id: UUID, amount: int = GENERATION_COST) -> bool:
    """Atomically subtract `amount` credits if the balance covers it.

    Returns:
        True if the debit was applied, False if the balance was too low
        (or the user does not exist).
    """
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.credits >= amount)
        .values(credits=User.credits - amount)
        .execution_options(synchronize_session=False)
    )
    applied = result.rowcount == 1
    logger.info("credits_debited", amount=amount, applied=applied)
    return applied


def refund_credits(db: Session, user_id: UUID, amount: int = GENERATION_COST) -> None:
    """Atomically add `amount` credits back to the user."""
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(credits=User.credits + amount)
        .execution_options(synchronize_session=False)
    )
    logger.info("credits_refunded", amount=amount)
