from __future__ import annotations

import logging
import os
from typing import Optional

from sqlalchemy.orm import Session

from auth import get_password_hash
from database import Base, SessionLocal, engine
from models import Admin, AdminRole, CellsAndAssociation

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Super Admin"


def ensure_tables() -> None:
    Base.metadata.create_all(bind=engine)


def ensure_default_superadmin(
    db: Session,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> Optional[Admin]:
    email = (email or os.environ.get("DEFAULT_ADMIN_EMAIL") or "").strip().lower()
    password = password or os.environ.get("DEFAULT_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("DEFAULT_ADMIN_EMAIL/DEFAULT_ADMIN_PASSWORD not set; skipping default super admin.")
        return None

    admin = db.query(Admin).filter(Admin.email == email).first()
    if admin:
        return admin

    admin = Admin(
        name=DEFAULT_ADMIN_NAME,
        email=email,
        hashed_password=get_password_hash(password),
        role=AdminRole.SUPER_ADMIN,
        cells_and_association=CellsAndAssociation.OT,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Default super admin created: email=%s", email)
    return admin


def run_bootstrap(create_admin: bool = True) -> None:
    ensure_tables()
    if not create_admin:
        return
    db = SessionLocal()
    try:
        ensure_default_superadmin(db)
    finally:
        db.close()
