"""One-time startup steps."""

import logging

from sqlalchemy.orm import Session

from booking_backend.auth.passwords import hash_password
from booking_backend.core import config
from booking_backend.models.admin import Admin

logger = logging.getLogger(__name__)


def seed_default_admin(
    db: Session,
    name: str = config.DEFAULT_ADMIN_NAME,
    email: str = config.DEFAULT_ADMIN_EMAIL,
    password: str = config.DEFAULT_ADMIN_PASSWORD,
) -> bool:
    """Insert the default administrator unless one with that email exists.

    Returns True when a new admin was created.
    """
    email = email.strip().lower()
    if db.query(Admin).filter(Admin.email == email).first() is not None:
        logger.info('Admin %s already exists, skipping initialization', email)
        return False

    db.add(Admin(name=name, email=email, hashed_password=hash_password(password)))
    db.commit()
    logger.info('Default admin %s initialized', email)
    return True
