"""Script to create initial data (the first superuser)."""

import logging

from sqlmodel import Session

from translation_service.auth import UserCreate, create_user, get_user_by_email
from translation_service.core.config import settings
from translation_service.core.db import engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init() -> None:
    """Create the first superuser if it doesn't exist."""
    with Session(engine) as session:
        user = get_user_by_email(session=session, email=settings.FIRST_SUPERUSER_EMAIL)
        if not user:
            user_in = UserCreate(
                email=settings.FIRST_SUPERUSER_EMAIL,
                password=settings.FIRST_SUPERUSER_PASSWORD,
                is_superuser=True,
            )
            user = create_user(session=session, user_create=user_in)
            logger.info(f"Created superuser: {user.email}")
        else:
            logger.info(f"Superuser already exists: {user.email}")


def main() -> None:
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")


if __name__ == "__main__":
    main()
