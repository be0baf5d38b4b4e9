from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import List, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from app.config import settings
from app.database import get_session
from app.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    roles: Optional[List[str]] = None,
):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({
        "exp": expire,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    })
    if roles is not None:
        to_encode["roles"] = roles

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(session: Session, user: User, expires_delta: Optional[timedelta] = None) -> str:
    # roles are embedded so clients can gate UI without another round trip
    from app.services.role_service import get_user_role_names

    return create_access_token(
        {"sub": str(user.id), "user_id": user.id, "email": user.email},
        expires_delta=expires_delta,
        roles=get_user_role_names(session, user.id),
    )


def decode_access_token(token: str):
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None


def _user_from_token(token: str, session: Session) -> User:
    payload = decode_access_token(token)
    user_id = (payload or {}).get("user_id") or (payload or {}).get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = session.get(User, int(user_id))
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "User not found")
    if not user.can_login:
        # suspended and deleted accounts keep their rows but lose access
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User account is disabled")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    return _user_from_token(token, session)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    session: Session = Depends(get_session)
) -> Optional[User]:
    """Anonymous callers (cart before login) get None instead of a 401."""
    if not token:
        return None
    return _user_from_token(token, session)
