import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import Session, select

from app.models.role import RoleNames
from app.models.user import User, UserStatus
from app.services.role_service import assign_role
from app.utils.hash import hash_password
from app.utils.token import create_access_token, decode_access_token

logger = logging.getLogger(__name__)

VERIFICATION_TOKEN_HOURS = 24


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email.lower())).first()


def create_user(
    session: Session,
    *,
    full_name: str,
    email: str,
    password: Optional[str],
    phone: Optional[str] = None,
    locale: str = "en",
    country: Optional[str] = None,
    status: UserStatus = UserStatus.pending_email_verification,
) -> User:
    if get_user_by_email(session, email):
        raise ValueError("Email already registered")

    user = User(
        full_name=full_name,
        email=email.lower(),
        password=hash_password(password) if password else None,
        phone=phone,
        locale=locale,
        country=country,
        status=status,
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    assign_role(session, user.id, RoleNames.PUBLIC_USER)
    session.refresh(user)
    return user


def create_verification_token(user: User) -> str:
    return create_access_token(
        {"user_id": user.id, "action": "verify_email"},
        expires_delta=timedelta(hours=VERIFICATION_TOKEN_HOURS),
    )


def verify_email_token(session: Session, token: str) -> Optional[User]:
    payload = decode_access_token(token)
    if not payload or payload.get("action") != "verify_email":
        return None

    user = session.get(User, int(payload["user_id"]))
    if not user:
        return None

    if user.status == UserStatus.pending_email_verification:
        user.status = UserStatus.active
        user.updated_at = datetime.utcnow()
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def get_or_create_google_user(session: Session, email: str, name: str) -> User:
    user = get_user_by_email(session, email)
    if user:
        if user.status == UserStatus.pending_email_verification:
            # Google already verified the address
            user.status = UserStatus.active
            session.add(user)
            session.commit()
            session.refresh(user)
        return user

    logger.info(f"Creating user from Google sign-in: {email}")
    return create_user(
        session,
        full_name=name,
        email=email,
        password=None,
        status=UserStatus.active,
    )


def mark_login(session: Session, user: User):
    user.last_login_at = datetime.utcnow()
    session.add(user)
    session.commit()
