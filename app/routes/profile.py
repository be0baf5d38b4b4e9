from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.profile_schemas import ChangePasswordRequest, ProfileUpdate
from app.utils.hash import hash_password, verify_password
from app.utils.token import get_current_user

router = APIRouter()


def _profile(user: User) -> dict:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "locale": user.locale,
        "country": user.country,
        "status": user.status.value,
        "created_at": user.created_at,
        "last_login_at": user.last_login_at,
    }


@router.get("")
def get_profile(current_user: User = Depends(get_current_user)):
    return _profile(current_user)


@router.put("")
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    current_user.updated_at = datetime.utcnow()
    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    return _profile(current_user)


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not current_user.password:
        raise HTTPException(400, "This account signs in with Google and has no password")

    if not verify_password(payload.current_password, current_user.password):
        raise HTTPException(400, "Current password is incorrect")

    current_user.password = hash_password(payload.new_password)
    current_user.updated_at = datetime.utcnow()
    session.add(current_user)
    session.commit()
    return {"message": "Password updated successfully"}
