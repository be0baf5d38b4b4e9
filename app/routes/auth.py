import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.dependencies.admin import ADMIN_ROLES
from app.models.role import RoleNames
from app.models.user import User, UserStatus
from app.schemas.auth_schemas import (
    GoogleTokenRequest,
    MeResponse,
    RegisterResponse,
    ResendVerificationRequest,
    Token,
    UserLogin,
    UserRegister,
    VerifyEmailRequest,
)
from app.services import email_service, user_service
from app.services.role_service import get_user_role_names
from app.utils.google_auth import verify_google_token
from app.utils.hash import verify_password
from app.utils.token import create_user_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _authenticate(session: Session, payload: UserLogin) -> User:
    user = user_service.get_user_by_email(session, payload.email)

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    return user


def _issue_token(session: Session, user: User) -> Token:
    user_service.mark_login(session, user)
    return Token(
        access_token=create_user_token(session, user),
        roles=get_user_role_names(session, user.id),
    )


@router.post("/register", response_model=RegisterResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    try:
        user = user_service.create_user(
            session,
            full_name=payload.full_name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
            locale=payload.locale,
            country=payload.country,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    token = user_service.create_verification_token(user)
    if not email_service.send_verification_email(session, user, token):
        logger.warning(f"Verification email could not be sent to user {user.id}")

    return RegisterResponse(
        message="Registration successful. Please check your email to verify your account.",
        user_id=user.id,
        email=user.email,
        status=user.status.value,
    )


@router.post("/verify-email")
def verify_email(payload: VerifyEmailRequest, session: Session = Depends(get_session)):
    user = user_service.verify_email_token(session, payload.token)
    if not user:
        raise HTTPException(400, "Invalid or expired verification token")

    email_service.send_welcome_email(session, user)
    return {"message": "Email verified successfully", "status": user.status.value}


@router.post("/resend-verification")
def resend_verification(payload: ResendVerificationRequest, session: Session = Depends(get_session)):
    user = user_service.get_user_by_email(session, payload.email)

    # same answer either way so the endpoint can't be used to probe accounts
    if user and user.status == UserStatus.pending_email_verification:
        email_service.send_verification_email(session, user, user_service.create_verification_token(user))

    return {"message": "If the account exists and is unverified, a verification email has been sent"}


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = _authenticate(session, payload)
    return _issue_token(session, user)


@router.post("/public-login", response_model=Token)
def public_login(payload: UserLogin, session: Session = Depends(get_session)):
    user = _authenticate(session, payload)

    if RoleNames.PUBLIC_USER not in get_user_role_names(session, user.id):
        raise HTTPException(403, "This login is for customers only")

    return _issue_token(session, user)


@router.post("/admin-login", response_model=Token)
def admin_login(payload: UserLogin, session: Session = Depends(get_session)):
    user = _authenticate(session, payload)

    roles = get_user_role_names(session, user.id)
    if not (user.is_admin or user.is_super_admin or any(r in ADMIN_ROLES for r in roles)):
        raise HTTPException(403, "Admin access required")

    return _issue_token(session, user)


@router.post("/refresh-token", response_model=Token)
def refresh_token(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return Token(
        access_token=create_user_token(session, current_user),
        roles=get_user_role_names(session, current_user.id),
    )


@router.post("/google", response_model=Token)
def google_login(request: GoogleTokenRequest, session: Session = Depends(get_session)):
    google_user = verify_google_token(request.token)
    if not google_user or not google_user.get("email"):
        raise HTTPException(401, "Invalid Google token")

    user = user_service.get_or_create_google_user(session, google_user["email"], google_user["name"])
    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    return _issue_token(session, user)


@router.get("/me", response_model=MeResponse)
def me(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return MeResponse(
        id=current_user.id,
        full_name=current_user.full_name,
        email=current_user.email,
        phone=current_user.phone,
        locale=current_user.locale,
        country=current_user.country,
        status=current_user.status.value,
        is_admin=current_user.is_admin,
        is_super_admin=current_user.is_super_admin,
        roles=get_user_role_names(session, current_user.id),
    )
