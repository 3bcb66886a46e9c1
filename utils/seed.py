from sqlalchemy import inspect

from models import db
from models.user import ROLE_ADMIN, ROLE_GUEST, Role


def seed_roles():
    """Create the GUEST and ADMIN roles if they are missing. Idempotent."""
    # Fresh database before `flask db upgrade`: nothing to seed yet
    if not inspect(db.engine).has_table(Role.__tablename__):
        return

    existing = {r.name for r in Role.query.all()}
    db.session.add_all(Role(name=name) for name in (ROLE_GUEST, ROLE_ADMIN) if name not in existing)
    db.session.commit()
