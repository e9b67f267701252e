from models import db
from models.user import Role
from security.identity import USER, ADMIN

DEFAULT_ROLES = [USER, ADMIN]


def seed_roles():
    existing = {r.name for r in Role.query.all()}
    created = [name for name in DEFAULT_ROLES if name not in existing]
    for name in created:
        db.session.add(Role(name=name))
    db.session.commit()
    return created
