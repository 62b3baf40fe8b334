import logging

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import AuthorizationError
from ..core.security import hash_password
from ..models.operator import Operator
from .gateway import ADMIN, ROLES, VIEWER

logger = logging.getLogger(__name__)


def admin_exists(db: Session) -> bool:
    return db.query(Operator.id).filter(Operator.role == ADMIN).first() is not None


def seed_operator(db: Session, email: str, password: str, role: str = ADMIN) -> bool:
    """Create an operator unless that email is already taken. Returns True if created."""
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    if db.query(Operator).filter(Operator.email == email).first():
        return False
    db.add(Operator(email=email, hashed_password=hash_password(password), role=role))
    db.commit()
    logger.info("Seeded %s operator %s", role, email)
    return True


def bootstrap_admin(db: Session, email: str, password: str) -> bool:
    """Seed the first admin over HTTP; closed once any admin exists."""
    if admin_exists(db):
        raise AuthorizationError("Admin already seeded")
    return seed_operator(db, email, password, ADMIN)


def seed_configured_operators(db: Session) -> list[str]:
    """Seed the admin and viewer named in settings, skipping unset pairs."""
    created = []
    for email, password, role in (
        (settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, ADMIN),
        (settings.VIEWER_EMAIL, settings.VIEWER_PASSWORD, VIEWER),
    ):
        if email and password and seed_operator(db, email, password, role):
            created.append(email)
    return created
