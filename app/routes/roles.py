from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_super_admin
from app.models.role import Role
from app.models.user import User
from app.schemas.role_schemas import RoleAssignment
from app.services import role_service

router = APIRouter()


@router.get("")
def list_roles(
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    return session.exec(select(Role).order_by(Role.id)).all()


@router.get("/users/{user_id}")
def get_user_roles(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    if not session.get(User, user_id):
        raise HTTPException(404, "User not found")
    return {"user_id": user_id, "roles": role_service.get_user_role_names(session, user_id)}


@router.post("/assign")
def assign_role(
    payload: RoleAssignment,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    if not role_service.assign_role(session, payload.user_id, payload.role_name):
        raise HTTPException(404, "User or role not found")
    return {"message": f"Role {payload.role_name} assigned"}


@router.post("/remove")
def remove_role(
    payload: RoleAssignment,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    if not role_service.remove_role(session, payload.user_id, payload.role_name):
        raise HTTPException(404, "User does not have this role")
    return {"message": f"Role {payload.role_name} removed"}


@router.get("/users/{user_id}/has-role/{role_name}")
def has_role(
    user_id: int,
    role_name: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    return {"has_role": role_service.user_has_role(session, user_id, role_name)}


@router.post("/seed")
def seed_roles(
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    roles = role_service.seed_roles(session)
    return {"message": "Roles seeded", "roles": [r.name for r in roles]}
