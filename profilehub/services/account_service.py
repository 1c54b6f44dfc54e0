from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from profilehub.models.user import User
from profilehub.services.portfolio_service import purge_user_portfolio
from profilehub.utils.password_hash import verify_password


logger = logging.getLogger(__name__)


class InvalidPassword(Exception):
    pass


def delete_account(db: Session, user: User, password: str) -> None:
    """Remove ``user`` and everything it owns after re-checking the password."""
    if not verify_password(password, user.password):
        raise InvalidPassword("The password is incorrect.")

    user_id = user.id
    purge_user_portfolio(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("account.deleted user_id=%s", user_id)
