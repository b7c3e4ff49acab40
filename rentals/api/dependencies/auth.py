# rentals/api/dependencies/auth.py
"""
Caller resolution.

Turns the verified token subject into the Account row the services use for
role and ownership checks.
"""

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...database import get_db
from ...models.user import User
from ...repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


def get_current_active_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """
    Load the authenticated account.

    Raises:
        HTTPException: 401 if the account is unknown or deactivated
    """
    user = RepositoryFactory.create_user_repository(db).get_by_id(
        user_id, load_relationships=False
    )
    if user is None or not user.is_active:
        logger.info(f"Token subject {user_id} is unknown or inactive")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
