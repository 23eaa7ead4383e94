from sqlalchemy import select
from sqlalchemy.orm import Session

from eduhouse.core.config import settings
from eduhouse.models.rbac import Admin


def ensure_reference_data(db: Session) -> Admin:
    """Make sure the configured super-admin exists and carries the super-admin flag."""
    email = settings.SUPER_ADMIN_EMAIL.lower()
    admin = db.scalar(select(Admin).where(Admin.email == email))
    if not admin:
        admin = Admin(name=settings.SUPER_ADMIN_NAME, email=email, is_super_admin=True)
        db.add(admin)
    elif not admin.is_super_admin:
        admin.is_super_admin = True
    db.flush()
    return admin
