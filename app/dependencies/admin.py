from fastapi import Depends, HTTPException
from sqlmodel import Session
from app.database import get_session
from app.models.role import RoleNames
from app.models.user import User
from app.services.role_service import user_has_any_role
from app.utils.token import get_current_user

ADMIN_ROLES = [RoleNames.SUPER_ADMIN, RoleNames.ADMIN, RoleNames.OPERATION]


def is_admin_user(session: Session, user: User) -> bool:
    if user.is_admin or user.is_super_admin:
        return True
    return user_has_any_role(session, user.id, ADMIN_ROLES)


def require_admin(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not is_admin_user(session, current_user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def require_super_admin(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if current_user.is_super_admin:
        return current_user
    if not user_has_any_role(session, current_user.id, [RoleNames.SUPER_ADMIN]):
        raise HTTPException(status_code=403, detail="Super admin access required")
    return current_user
