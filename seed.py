import logging
from sqlalchemy.orm import Session
from config import ADMIN_USERNAME, ADMIN_PASSWORD, DEFAULT_SHEETS
from core.auth_provider import get_auth_provider
from models.sheets import Sheet
from models.users import AppRole, User, UserRole

logger = logging.getLogger(__name__)


def seed_sheets(db: Session, names=None):
    added = []
    for name in names if names is not None else DEFAULT_SHEETS:
        exists = db.query(Sheet).filter_by(name=name).first()
        if not exists:
            db.add(Sheet(name=name))
            added.append(name)
    db.commit()
    if added:
        logger.info("Added sheets: %s", ", ".join(added))
    return added


def seed_admin(db: Session, username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD):
    """Admin login as a persisted record; an existing admin keeps its password."""
    admin = db.query(User).filter_by(phone_or_username=username).first()
    if not admin:
        admin = User(phone_or_username=username, must_change_password=False)
        admin.auth_id = get_auth_provider(db).create_identity(password)
        db.add(admin)
        db.flush()
        logger.info("Added admin user: %s", username)

    has_role = db.query(UserRole).filter_by(user_id=admin.id, role=AppRole.ADMIN).first()
    if not has_role:
        db.add(UserRole(user_id=admin.id, role=AppRole.ADMIN))
    db.commit()
    return admin


def seed_data(db: Session):
    seed_sheets(db)
    seed_admin(db)


if __name__ == "__main__":
    from database import SessionLocal, engine, Base
    import models.students, models.sessions, models.exams  # noqa: F401  register tables

    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_data(session)
    finally:
        session.close()
