from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import Session

import officehub.models  # noqa: F401
from officehub.core.logging import configure_logging
from officehub.core.settings import settings
from officehub.db.base import Base
from officehub.db.session import SessionLocal, engine
from officehub.models.enums import Role
from officehub.models.user import User
from officehub.services.users import create_user, normalize_email

logger = logging.getLogger("officehub.seed")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the OfficeHub database with an initial admin")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    return parser.parse_args()


def reset_db() -> None:
    if settings.is_production:
        raise RuntimeError("Refusing to reset the database in production.")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def ensure_admin(db: Session) -> User:
    email = normalize_email(settings.seed_admin_email)
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    return create_user(
        db,
        actor=None,
        email=email,
        full_name=settings.seed_admin_name,
        role=Role.ADMIN,
        password=settings.seed_admin_password,
    )


def main() -> None:
    configure_logging(level=settings.log_level)
    args = parse_args()
    if args.reset:
        reset_db()
        logger.info("database reset")
    else:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin = ensure_admin(db)
        db.commit()
        logger.info("admin account ready: %s", admin.email)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
