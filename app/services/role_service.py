import logging
from typing import List
from sqlmodel import Session, select

from app.models.role import Role, RoleNames, UserRole
from app.models.user import User

logger = logging.getLogger(__name__)


def seed_roles(session: Session) -> List[Role]:
    existing = {r.name for r in session.exec(select(Role)).all()}
    for name in RoleNames.ALL:
        if name not in existing:
            session.add(Role(name=name))
            logger.info(f"Seeded role {name}")
    session.commit()
    return session.exec(select(Role)).all()


def get_role_by_name(session: Session, name: str):
    return session.exec(select(Role).where(Role.name == name)).first()


def get_user_role_names(session: Session, user_id: int) -> List[str]:
    return list(session.exec(
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
    ).all())


def user_has_role(session: Session, user_id: int, role_name: str) -> bool:
    return role_name in get_user_role_names(session, user_id)


def user_has_any_role(session: Session, user_id: int, role_names: List[str]) -> bool:
    return any(name in role_names for name in get_user_role_names(session, user_id))


def _sync_admin_flags(session: Session, user_id: int):
    user = session.get(User, user_id)
    if not user:
        return
    names = get_user_role_names(session, user_id)
    user.is_super_admin = RoleNames.SUPER_ADMIN in names
    user.is_admin = user.is_super_admin or RoleNames.ADMIN in names
    session.add(user)


def assign_role(session: Session, user_id: int, role_name: str) -> bool:
    """Returns False when the user or role does not exist."""
    user = session.get(User, user_id)
    role = get_role_by_name(session, role_name)
    if not user or not role:
        return False

    if not session.get(UserRole, (user_id, role.id)):
        session.add(UserRole(user_id=user_id, role_id=role.id))
        session.flush()
        _sync_admin_flags(session, user_id)
        session.commit()
    return True


def remove_role(session: Session, user_id: int, role_name: str) -> bool:
    role = get_role_by_name(session, role_name)
    if not role:
        return False

    link = session.get(UserRole, (user_id, role.id))
    if not link:
        return False

    session.delete(link)
    session.flush()
    _sync_admin_flags(session, user_id)
    session.commit()
    return True
